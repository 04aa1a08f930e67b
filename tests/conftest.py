"""Shared test fixtures for wakeup."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from wakeup.commands import CommandTable
from wakeup.config import WakeupConfig
from wakeup.dispatch import ActionDispatcher

if TYPE_CHECKING:
    from pathlib import Path


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wakeup_config() -> WakeupConfig:
    return WakeupConfig(prefix="fetchmail", events=("IDLE", "NOOP", "STATUS"))


@pytest.fixture
def mock_runner() -> MagicMock:
    runner = MagicMock()
    runner.return_value = MagicMock(returncode=0)
    return runner


@pytest.fixture
def mock_kill() -> MagicMock:
    return MagicMock()


@pytest.fixture
def dispatcher(mock_runner: MagicMock, mock_kill: MagicMock) -> ActionDispatcher:
    return ActionDispatcher(helper_timeout=5.0, runner=mock_runner, kill=mock_kill)


@pytest.fixture
def pidfile(tmp_path: Path) -> Path:
    """A pidfile naming pid 4242."""
    path = tmp_path / "fetchmail.pid"
    path.write_text("4242\n")
    return path


@pytest.fixture
def command_table() -> CommandTable:
    """A host command table with IMAP-style handlers that report their name."""
    table = CommandTable()
    table.register("IDLE", lambda ctx: "idle-ok", flags=1)
    table.register("NOOP", lambda ctx: "noop-ok", flags=2)
    table.register("STATUS", lambda ctx: "status-ok", flags=3)
    table.register("LOGOUT", lambda ctx: "logout-ok")
    return table
