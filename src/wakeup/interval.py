"""Interval resolution: per-event key, then global key, then a compiled default."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger("wakeup.interval")

DEFAULT_INTERVAL = 60

# Optional minus sign and ASCII digits, nothing else
_INTEGER = re.compile(r"-?[0-9]+")


class InvalidIntervalError(ValueError):
    """Raised when a configured interval is not a positive integer."""


def parse_interval(raw: str) -> int:
    """Parse *raw* as a positive whole number of seconds.

    Only ASCII digits with an optional leading ``-`` are accepted, with
    surrounding whitespace tolerated. Anything else, or a value ``<= 0``,
    raises :exc:`InvalidIntervalError`.
    """
    text = raw.strip() if isinstance(raw, str) else ""
    if not _INTEGER.fullmatch(text):
        raise InvalidIntervalError(f"not an integer: {raw!r}")
    value = int(text)
    if value <= 0:
        raise InvalidIntervalError(f"must be positive: {value}")
    return value


def resolve_interval(
    lookup: Mapping[str, str],
    event_key: str | None,
    global_key: str,
    default: int = DEFAULT_INTERVAL,
) -> int:
    """Return the effective minimum re-trigger interval in seconds.

    Tries *event_key*, then *global_key*, then returns *default*. A key that
    is present but invalid logs a warning and falls through to the next tier.
    """
    for key in (event_key, global_key):
        if key is None:
            continue
        raw = lookup.get(key)
        if raw is None:
            continue
        try:
            return parse_interval(raw)
        except InvalidIntervalError:
            logger.warning("%s must be a positive number (got %r)", key, raw)
    return default
