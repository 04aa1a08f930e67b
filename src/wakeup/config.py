"""Wakeup configuration: process settings from the environment, session settings from files."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from wakeup.interval import DEFAULT_INTERVAL

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

logger = logging.getLogger("wakeup.config")

DEFAULT_PREFIX = "fetchmail"
DEFAULT_EVENTS: tuple[str, ...] = ("IDLE", "NOOP", "STATUS")
DEFAULT_HELPER_TIMEOUT = 30.0


def _parse_events(raw: str) -> tuple[str, ...]:
    names = (part.strip().upper() for part in raw.split(",") if part.strip())
    return tuple(dict.fromkeys(names))


def _parse_timeout(raw: str) -> float | None:
    value = raw.strip().lower()
    if value in ("", "0", "none"):
        return None
    try:
        timeout = float(value)
    except ValueError:
        raise ValueError(f"WAKEUP_HELPER_TIMEOUT must be a number, got {raw!r}") from None
    if timeout < 0:
        raise ValueError(f"WAKEUP_HELPER_TIMEOUT must not be negative, got {raw!r}")
    return timeout


@dataclass(frozen=True)
class WakeupConfig:
    """Immutable process configuration. Construct via ``from_env()`` or directly for tests."""

    prefix: str = DEFAULT_PREFIX
    events: tuple[str, ...] = DEFAULT_EVENTS
    default_interval: int = DEFAULT_INTERVAL
    helper_timeout: float | None = DEFAULT_HELPER_TIMEOUT

    @property
    def helper_key(self) -> str:
        return f"{self.prefix}_helper".lower()

    @property
    def pidfile_key(self) -> str:
        return f"{self.prefix}_pidfile".lower()

    @property
    def interval_key(self) -> str:
        return f"{self.prefix}_interval".lower()

    @classmethod
    def from_env(cls) -> WakeupConfig:
        """Build config from ``os.environ``. Raises ``ValueError`` on malformed values."""
        prefix = os.environ.get("WAKEUP_PREFIX", "").strip() or DEFAULT_PREFIX

        raw_events = os.environ.get("WAKEUP_EVENTS")
        events = _parse_events(raw_events) if raw_events is not None else DEFAULT_EVENTS

        raw_interval = os.environ.get("WAKEUP_DEFAULT_INTERVAL", "").strip()
        if raw_interval:
            try:
                default_interval = int(raw_interval)
            except ValueError:
                raise ValueError(
                    f"WAKEUP_DEFAULT_INTERVAL must be an integer, got {raw_interval!r}"
                ) from None
            if default_interval <= 0:
                raise ValueError("WAKEUP_DEFAULT_INTERVAL must be positive")
        else:
            default_interval = DEFAULT_INTERVAL

        raw_timeout = os.environ.get("WAKEUP_HELPER_TIMEOUT")
        helper_timeout = (
            _parse_timeout(raw_timeout) if raw_timeout is not None else DEFAULT_HELPER_TIMEOUT
        )

        config = cls(
            prefix=prefix,
            events=events,
            default_interval=default_interval,
            helper_timeout=helper_timeout,
        )
        logger.info(
            "Config loaded, prefix=%s, events=%s, default_interval=%d",
            prefix, ",".join(events), default_interval,
        )
        return config


class SessionSettings(Mapping[str, str]):
    """Read-only key/value settings for one session or user."""

    def __init__(self, values: Mapping[str, object] | None = None) -> None:
        self._values: dict[str, str] = {
            str(k): str(v) for k, v in (values or {}).items()
        }

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"SessionSettings({self._values!r})"

    @classmethod
    def load(cls, path: Path) -> SessionSettings:
        """Load from a JSON object at *path*."""
        data = json.loads(path.read_text())
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object, got {type(data).__name__}")
        return cls(data)

    @classmethod
    def from_pairs(cls, pairs: Iterable[str]) -> SessionSettings:
        """Build from ``KEY=VALUE`` strings. Raises ``ValueError`` on a missing ``=``."""
        values: dict[str, str] = {}
        for pair in pairs:
            key, sep, value = pair.partition("=")
            if not sep or not key.strip():
                raise ValueError(f"expected KEY=VALUE, got {pair!r}")
            values[key.strip()] = value
        return cls(values)

    def merged(self, other: Mapping[str, str]) -> SessionSettings:
        """Return new settings with *other* layered on top."""
        return SessionSettings({**self._values, **other})
