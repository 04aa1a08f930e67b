"""Command table: the host's catalog of named event handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from wakeup.models import EventContext


@dataclass(frozen=True)
class Command:
    """A registered handler and the flags it was registered with."""

    name: str
    func: Callable[[EventContext], Any]
    flags: int = 0


class CommandTable:
    """Stores and retrieves command handlers by case-insensitive name."""

    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}

    def register(
        self, name: str, func: Callable[[EventContext], Any], flags: int = 0,
    ) -> None:
        self._commands[name.upper()] = Command(name=name, func=func, flags=flags)

    def unregister(self, name: str) -> Command | None:
        return self._commands.pop(name.upper(), None)

    def find(self, name: str) -> Command | None:
        return self._commands.get(name.upper())

    def list_all(self) -> list[Command]:
        return list(self._commands.values())

    def execute(self, context: EventContext) -> Any:
        """Run the handler for ``context.name``; unknown commands return False."""
        command = self.find(context.name)
        if command is None:
            return False
        return command.func(context)
