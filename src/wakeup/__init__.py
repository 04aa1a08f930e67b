"""Rate-limited wakeup trigger: run a helper or signal a process on watched events."""

from wakeup.commands import Command, CommandTable
from wakeup.config import SessionSettings, WakeupConfig
from wakeup.dispatch import ActionDispatcher, PidfileError, read_pid
from wakeup.interceptor import EventInterceptor, EventNameTooLongError, derive_interval_key
from wakeup.interval import DEFAULT_INTERVAL, InvalidIntervalError, resolve_interval
from wakeup.models import DispatchOutcome, EventContext, RateLimitState, WatchedEvent
from wakeup.ratelimit import allow

__all__ = [
    "DEFAULT_INTERVAL",
    "ActionDispatcher",
    "Command",
    "CommandTable",
    "DispatchOutcome",
    "EventContext",
    "EventInterceptor",
    "EventNameTooLongError",
    "InvalidIntervalError",
    "PidfileError",
    "RateLimitState",
    "SessionSettings",
    "WakeupConfig",
    "WatchedEvent",
    "allow",
    "derive_interval_key",
    "read_pid",
    "resolve_interval",
]
