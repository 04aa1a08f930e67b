"""Action dispatcher: run a helper program or signal a pidfile process.

Exactly one action source is used per call: the helper command when set,
otherwise the pidfile. All failures are logged and absorbed; the caller
only ever sees a :class:`~wakeup.models.DispatchOutcome`.

The helper runs synchronously. The triggering event is held until the
helper exits, fails to start, or hits ``helper_timeout``.
"""

from __future__ import annotations

import logging
import os
import re
import signal
import subprocess
from typing import TYPE_CHECKING, Any

from wakeup.models import DispatchOutcome

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

logger = logging.getLogger("wakeup.dispatch")

WAKEUP_SIGNAL = signal.SIGUSR1

# pid 0 addresses the caller's process group and pid 1 is init
_MIN_PID = 2
# pid_t is a signed 32-bit int
_MAX_PID = 2**31 - 1

# what fscanf("%d") would consume from the start of the first token
_LEADING_INT = re.compile(r"[+-]?[0-9]+")

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class PidfileError(ValueError):
    """Raised when a pidfile cannot be read or holds no usable process id."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def split_helper(command: str) -> list[str]:
    """Split a helper command line on whitespace. No quoting, no shell."""
    return command.split()


def read_pid(path: str | Path) -> int:
    """Return the integer at the start of the pidfile at *path*.

    Like ``fscanf("%d")``, trailing non-digits in the first token are ignored.

    Raises :exc:`PidfileError` if the file can't be opened, the first token
    is not an integer, or the pid would address a reserved process.
    """
    try:
        with open(path, encoding="ascii", errors="replace") as fh:
            content = fh.read(4096)
    except OSError as exc:
        raise PidfileError(f"error opening {path}: {exc.strerror or exc}") from exc

    tokens = content.split(maxsplit=1)
    if not tokens:
        raise PidfileError(f"error reading valid pid from {path}: file is empty")
    match = _LEADING_INT.match(tokens[0])
    if match is None:
        raise PidfileError(
            f"error reading valid pid from {path}: {tokens[0]!r} is not a number"
        )
    pid = int(match.group())
    if not _MIN_PID <= pid <= _MAX_PID:
        raise PidfileError(f"error reading valid pid from {path}: refusing pid {pid}")
    return pid


# ---------------------------------------------------------------------------
# ActionDispatcher
# ---------------------------------------------------------------------------


class ActionDispatcher:
    """Performs the wakeup side effect for a permitted trigger.

    Parameters
    ----------
    helper_timeout:
        Seconds to wait for the helper before killing it. ``None`` waits
        indefinitely.
    runner:
        Replacement for :func:`subprocess.run` (tests).
    kill:
        Replacement for :func:`os.kill` (tests).
    """

    def __init__(
        self,
        helper_timeout: float | None = 30.0,
        runner: Callable[..., Any] | None = None,
        kill: Callable[[int, int], None] | None = None,
    ) -> None:
        self._helper_timeout = helper_timeout
        self._run = runner or subprocess.run
        self._kill = kill or os.kill

    def dispatch(self, helper: str | None, pidfile: str | None) -> DispatchOutcome:
        """Run *helper* if non-empty, else signal the pid in *pidfile*."""
        if helper:
            return self.run_helper(helper)
        if pidfile:
            return self.signal_pidfile(pidfile)
        logger.warning("Neither a pidfile nor a helper is configured")
        return DispatchOutcome.NO_ACTION

    def run_helper(self, command: str) -> DispatchOutcome:
        """Spawn *command* as an argument vector and wait for it to exit."""
        argv = split_helper(command)
        if not argv or not argv[0]:
            logger.warning("Illegal helper command line: %r", command)
            return DispatchOutcome.INVALID_HELPER

        try:
            result = self._run(
                argv,
                shell=False,
                stdin=subprocess.DEVNULL,
                timeout=self._helper_timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning(
                "Helper %s did not exit within %ss and was killed",
                argv[0], self._helper_timeout,
            )
            return DispatchOutcome.HELPER_TIMED_OUT
        except (OSError, ValueError) as exc:
            logger.warning(
                "Failed to start helper %s: %s", argv[0], getattr(exc, "strerror", None) or exc,
            )
            return DispatchOutcome.HELPER_FAILED

        logger.debug("Helper %s exited with %s", argv[0], getattr(result, "returncode", None))
        return DispatchOutcome.HELPER_RAN

    def signal_pidfile(self, path: str) -> DispatchOutcome:
        """Send the wakeup signal to the process named in the pidfile."""
        try:
            pid = read_pid(path)
        except PidfileError as exc:
            logger.warning("%s", exc)
            return DispatchOutcome.PIDFILE_INVALID

        try:
            self._kill(pid, WAKEUP_SIGNAL)
        except (OSError, OverflowError) as exc:
            logger.warning(
                "Could not signal pid %d: %s", pid, getattr(exc, "strerror", None) or exc,
            )
            return DispatchOutcome.SIGNAL_FAILED

        logger.debug("Sent %s to pid %d", WAKEUP_SIGNAL.name, pid)
        return DispatchOutcome.SIGNALLED
