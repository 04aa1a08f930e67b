"""EventInterceptor: wraps watched command handlers with the wakeup pipeline.

Each occurrence of a watched event runs, strictly in order:
resolve interval -> rate-limit check -> (maybe) dispatch -> next handler.
The next handler always runs and its result is returned unchanged.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from wakeup import ratelimit
from wakeup.config import WakeupConfig
from wakeup.dispatch import ActionDispatcher
from wakeup.interval import resolve_interval
from wakeup.models import ActionConfig, DispatchOutcome, EventContext, WatchedEvent

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from wakeup.commands import CommandTable

logger = logging.getLogger("wakeup.interceptor")

# Event names must be shorter than this to get a per-event interval key
MAX_EVENT_NAME_LEN = 10

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class EventNameTooLongError(ValueError):
    """Raised when an event name is too long to build its interval key."""


def derive_interval_key(prefix: str, event_name: str) -> str:
    """Build the lowercase ``<prefix>_<event>_interval`` key for *event_name*."""
    if len(event_name) >= MAX_EVENT_NAME_LEN:
        raise EventNameTooLongError(
            f"event name {event_name[:MAX_EVENT_NAME_LEN]!r}... exceeds "
            f"{MAX_EVENT_NAME_LEN - 1} characters"
        )
    return f"{prefix}_{event_name}_interval".lower()


# ---------------------------------------------------------------------------
# EventInterceptor
# ---------------------------------------------------------------------------


class EventInterceptor:
    """Registry of watched events and the pipeline that runs on each of them.

    Parameters
    ----------
    config:
        Process configuration (key prefix, watched events, default interval).
    dispatcher:
        Performs the side effect. Built from *config* when omitted.
    clock:
        Returns the current time in seconds.
    """

    def __init__(
        self,
        config: WakeupConfig | None = None,
        dispatcher: ActionDispatcher | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or WakeupConfig()
        self._dispatcher = dispatcher or ActionDispatcher(
            helper_timeout=self._config.helper_timeout,
        )
        self._clock = clock
        self._watched: dict[str, WatchedEvent] = {}

    @property
    def config(self) -> WakeupConfig:
        return self._config

    def get(self, event_name: str) -> WatchedEvent | None:
        return self._watched.get(event_name.upper())

    def list_watched(self) -> list[WatchedEvent]:
        return list(self._watched.values())

    # ── Registration ───────────────────────────────────────────────────

    def register(
        self,
        event_name: str,
        next_handler: Callable[[EventContext], Any] | None,
        flags: int = 0,
    ) -> WatchedEvent:
        """Watch *event_name*, forwarding each occurrence to *next_handler*.

        Raises :exc:`EventNameTooLongError` if the name is too long.
        """
        interval_key = derive_interval_key(self._config.prefix, event_name)
        watched = WatchedEvent(
            name=event_name.upper(),
            interval_key=interval_key,
            next_handler=next_handler,
            flags=flags,
        )
        self._watched[watched.name] = watched
        return watched

    def unregister(self, event_name: str) -> WatchedEvent | None:
        return self._watched.pop(event_name.upper(), None)

    def install(self, table: CommandTable) -> list[str]:
        """Swap the wakeup wrapper in for each configured event in *table*.

        Events the table has no command for, names that are too long and
        events already intercepted are skipped. Returns the installed names.
        """
        installed: list[str] = []
        for name in self._config.events:
            original = table.find(name)
            if original is None:
                logger.debug("No %s command to intercept, skipping", name)
                continue
            if self.get(name) is not None or original.func == self.on_event:
                logger.debug("%s is already intercepted, skipping", name)
                continue
            try:
                watched = self.register(name, original.func, original.flags)
            except EventNameTooLongError as exc:
                logger.warning("Not intercepting %s: %s", name, exc)
                continue
            table.unregister(name)
            table.register(original.name, self.on_event, original.flags)
            installed.append(watched.name)
        logger.info("Intercepting %s", ", ".join(installed) or "nothing")
        return installed

    def uninstall(self, table: CommandTable) -> None:
        """Restore every original handler in *table* and empty the registry."""
        for watched in self._watched.values():
            current = table.find(watched.name)
            name = current.name if current is not None else watched.name
            table.unregister(watched.name)
            if watched.next_handler is not None:
                table.register(name, watched.next_handler, watched.flags)
        self._watched.clear()
        logger.info("Restored original handlers")

    # ── Runtime ────────────────────────────────────────────────────────

    def interval_for(self, watched: WatchedEvent, settings: Mapping[str, str]) -> int:
        return resolve_interval(
            settings,
            watched.interval_key,
            self._config.interval_key,
            self._config.default_interval,
        )

    def on_event(self, context: EventContext) -> Any:
        """Run the wakeup pipeline for *context*, then the next handler."""
        watched = self.get(context.name)
        if watched is None:
            return False

        try:
            self.trigger(watched, context)
        except Exception:
            logger.exception("Wakeup for %s failed", watched.name)

        if watched.next_handler is None:
            return False
        return watched.next_handler(context)

    def trigger(self, watched: WatchedEvent, context: EventContext) -> DispatchOutcome | None:
        """Resolve, rate-limit and dispatch. Returns None when suppressed."""
        cfg = self._config
        interval = self.interval_for(watched, context.settings)
        if not ratelimit.check(watched.state, interval, self._clock):
            logger.debug("%s: within %ds window, not triggering", watched.name, interval)
            return None

        action = ActionConfig.from_settings(context.settings, cfg.helper_key, cfg.pidfile_key)
        outcome = self._dispatcher.dispatch(action.helper, action.pidfile)
        logger.info("%s: triggered wakeup (%s)", watched.name, outcome.value)
        return outcome
