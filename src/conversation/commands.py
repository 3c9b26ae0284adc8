"""Command alias table and resolver.

Adding a command is a change to COMMAND_ALIASES, not to control flow.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum


class Command(str, Enum):
    """Business actions reachable by typed command or menu button.

    Values are also the callback tokens carried by menu buttons.
    """

    START = "cmd_start"
    SERVICES = "cmd_services"
    APPOINTMENTS = "cmd_appointments"
    BOOK = "cmd_book"
    CANCEL = "cmd_cancel"
    RESCHEDULE = "cmd_reschedule"
    HOURS = "cmd_hours"
    HELP = "cmd_help"


COMMAND_ALIASES: dict[Command, tuple[str, ...]] = {
    Command.START: ("/start", "start", "menu", "main menu", "hi", "hello", "hey"),
    Command.SERVICES: ("/services", "services", "view services", "show services"),
    Command.APPOINTMENTS: (
        "/appointments", "appointments", "my appointments", "view appointments",
    ),
    Command.BOOK: ("/book", "book", "book appointment", "schedule appointment", "book now"),
    Command.CANCEL: ("/cancel", "cancel", "cancel appointment", "cancel booking"),
    Command.RESCHEDULE: ("/reschedule", "reschedule", "reschedule appointment"),
    Command.HOURS: ("/hours", "hours", "business hours", "opening hours", "location"),
    Command.HELP: ("/help", "help", "commands"),
}


class CommandRegistry:
    """Resolves free text to a Command via the alias table."""

    def __init__(self, aliases: Mapping[Command, tuple[str, ...]] = COMMAND_ALIASES) -> None:
        self._lookup: dict[str, Command] = {}
        for command, names in aliases.items():
            for name in names:
                key = name.lower().strip()
                existing = self._lookup.get(key)
                if existing is not None and existing is not command:
                    raise ValueError(
                        f"Alias '{key}' maps to both {existing.name} and {command.name}"
                    )
                self._lookup[key] = command

    def resolve(self, raw_text: str) -> Command | None:
        """Match the whole phrase, then its first word, against the aliases.

        First-word matching is deliberately permissive: "book a stylist named
        Amy" resolves to BOOK.
        """
        normalized = raw_text.lower().strip()
        if not normalized:
            return None
        command = self._lookup.get(normalized)
        if command is not None:
            return command
        return self._lookup.get(normalized.split()[0])

    @staticmethod
    def from_callback(token: str) -> Command | None:
        try:
            return Command(token)
        except ValueError:
            return None
