"""Tests for the command alias table."""

from __future__ import annotations

import pytest

from src.conversation.commands import COMMAND_ALIASES, Command, CommandRegistry


@pytest.fixture
def registry() -> CommandRegistry:
    return CommandRegistry()


class TestResolve:
    def test_slash_command(self, registry: CommandRegistry) -> None:
        assert registry.resolve("/services") is Command.SERVICES

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Main Menu", Command.START),
            ("hi", Command.START),
            ("my appointments", Command.APPOINTMENTS),
            ("BOOK NOW", Command.BOOK),
            ("opening hours", Command.HOURS),
            ("commands", Command.HELP),
            ("/reschedule", Command.RESCHEDULE),
        ],
    )
    def test_aliases(self, registry: CommandRegistry, text: str, expected: Command) -> None:
        assert registry.resolve(text) is expected

    def test_first_word_match(self, registry: CommandRegistry) -> None:
        assert registry.resolve("book a stylist named Amy") is Command.BOOK

    def test_surrounding_whitespace(self, registry: CommandRegistry) -> None:
        assert registry.resolve("  /help  ") is Command.HELP

    def test_unknown_text(self, registry: CommandRegistry) -> None:
        assert registry.resolve("do you do perms?") is None

    def test_empty_text(self, registry: CommandRegistry) -> None:
        assert registry.resolve("   ") is None


class TestTable:
    def test_every_command_has_aliases(self) -> None:
        assert set(COMMAND_ALIASES) == set(Command)

    def test_conflicting_alias_rejected(self) -> None:
        with pytest.raises(ValueError, match="maps to both"):
            CommandRegistry({Command.BOOK: ("go",), Command.HELP: ("go",)})

    def test_new_command_is_data_only(self) -> None:
        registry = CommandRegistry({**COMMAND_ALIASES, Command.HOURS: ("when are you open",)})
        assert registry.resolve("when are you open") is Command.HOURS
        assert registry.resolve("/hours") is None


class TestFromCallback:
    def test_command_token(self) -> None:
        assert CommandRegistry.from_callback("cmd_book") is Command.BOOK

    def test_non_command_token(self) -> None:
        assert CommandRegistry.from_callback("book_service_haircut") is None
