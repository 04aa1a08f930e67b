"""Data models for the wakeup trigger: enums and dataclasses."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class DispatchOutcome(Enum):
    """What the action dispatcher did for one permitted trigger."""

    NO_ACTION = "no_action"
    INVALID_HELPER = "invalid_helper"
    HELPER_RAN = "helper_ran"
    HELPER_FAILED = "helper_failed"
    HELPER_TIMED_OUT = "helper_timed_out"
    SIGNALLED = "signalled"
    SIGNAL_FAILED = "signal_failed"
    PIDFILE_INVALID = "pidfile_invalid"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass
class RateLimitState:
    """Timestamp of the last permitted trigger for one watched event.

    ``last_allowed`` is ``None`` until the first permit. The lock makes the
    limiter's check-and-update a single atomic step.
    """

    last_allowed: float | None = None
    lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False,
    )

    def reset(self) -> None:
        with self.lock:
            self.last_allowed = None


@dataclass
class WatchedEvent:
    """One intercepted event: its derived interval key and captured handler."""

    name: str
    interval_key: str | None
    next_handler: Callable[[EventContext], Any] | None = None
    flags: int = 0
    state: RateLimitState = field(default_factory=RateLimitState)


@dataclass
class EventContext:
    """A single event occurrence as seen by the interceptor.

    ``settings`` is the session's read-only key/value configuration;
    ``payload`` is whatever the host passes along and is handed to the
    next handler untouched.
    """

    name: str
    settings: Mapping[str, str] = field(default_factory=dict)
    payload: Any = None


@dataclass(frozen=True)
class ActionConfig:
    """Action sources resolved from the session settings at dispatch time."""

    helper: str | None = None
    pidfile: str | None = None

    @classmethod
    def from_settings(
        cls, settings: Mapping[str, str], helper_key: str, pidfile_key: str,
    ) -> ActionConfig:
        return cls(helper=settings.get(helper_key), pidfile=settings.get(pidfile_key))
