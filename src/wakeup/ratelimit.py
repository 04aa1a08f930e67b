"""Edge-triggered rate limiter for watched events.

Only a permitted trigger moves the window forward; suppressed calls leave
the stored timestamp alone.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from wakeup.models import RateLimitState

logger = logging.getLogger("wakeup.ratelimit")


def allow(state: RateLimitState, now: float, interval_seconds: int) -> bool:
    """Return True and record *now* if more than *interval_seconds* have passed.

    *now* is in seconds (``time.time()`` scale). The comparison is done in
    milliseconds. A first call with no recorded permit always succeeds.
    """
    with state.lock:
        if state.last_allowed is not None:
            elapsed_ms = (now - state.last_allowed) * 1000
            if elapsed_ms <= interval_seconds * 1000:
                return False
        state.last_allowed = now
        return True


def check(
    state: RateLimitState,
    interval_seconds: int,
    clock: Callable[[], float] = time.time,
) -> bool:
    """Read the clock and call :func:`allow`; suppress if the clock fails."""
    try:
        now = clock()
    except OSError:
        logger.warning("Could not read the clock, suppressing trigger", exc_info=True)
        return False
    return allow(state, now, interval_seconds)
