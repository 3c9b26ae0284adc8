"""Tests for resolving replies against pending options."""

from __future__ import annotations

from src.conversation.option_resolver import normalize_phrase, resolve_option
from src.models import CommandOption

BOOKING_CONFIRMATION = [
    CommandOption(id="1", label="✅ Confirm Booking", callback_data="confirm_booking"),
    CommandOption(id="2", label="❌ Cancel", callback_data="cancel_booking"),
]


def _opt(id: str, label: str, callback: str) -> CommandOption:
    return CommandOption(id=id, label=label, callback_data=callback)


class TestPrecedence:
    def test_tapped_callback_matches_exact_entry(self) -> None:
        """A button tap carries its callback data and resolves to that option."""
        option = resolve_option(BOOKING_CONFIRMATION, "confirm_booking")
        assert option is not None
        assert option.callback_data == "confirm_booking"

    def test_numeric_text_selects_by_id(self) -> None:
        options = [_opt("1", "Haircut", "book_service_a"), _opt("2", "Color", "book_service_b")]
        option = resolve_option(options, "2")
        assert option is not None
        assert option.id == "2"

    def test_numeric_text_with_whitespace(self) -> None:
        options = [_opt("1", "Haircut", "book_service_a"), _opt("2", "Color", "book_service_b")]
        assert resolve_option(options, "  1 ").id == "1"

    def test_unknown_number_matches_nothing(self) -> None:
        options = [_opt("1", "Haircut", "book_service_a")]
        assert resolve_option(options, "7") is None

    def test_number_never_falls_through_to_label(self) -> None:
        options = [_opt("1", "2", "first"), _opt("2", "other", "second")]
        assert resolve_option(options, "2").callback_data == "second"

    def test_label_match_ignores_case_and_punctuation(self) -> None:
        assert resolve_option(BOOKING_CONFIRMATION, "confirm booking!").id == "1"

    def test_label_beats_synonym(self) -> None:
        """'cancel' is the label of option 2, not a synonym search."""
        options = [
            _opt("1", "Cancel my haircut", "cancel_apt_1"),
            _opt("2", "Cancel", "go_back"),
        ]
        assert resolve_option(options, "Cancel").id == "2"

    def test_callback_beats_synonym(self) -> None:
        options = [_opt("1", "Yes", "confirm_removal_x"), _opt("2", "Back", "go_back")]
        assert resolve_option(options, "go_back").id == "2"


class TestSynonyms:
    def test_yes_selects_confirm(self) -> None:
        assert resolve_option(BOOKING_CONFIRMATION, "yes").callback_data == "confirm_booking"

    def test_ok_selects_confirm(self) -> None:
        assert resolve_option(BOOKING_CONFIRMATION, "OK").callback_data == "confirm_booking"

    def test_no_selects_cancel(self) -> None:
        assert resolve_option(BOOKING_CONFIRMATION, "no").callback_data == "cancel_booking"

    def test_stop_selects_cancel(self) -> None:
        assert resolve_option(BOOKING_CONFIRMATION, "stop").callback_data == "cancel_booking"

    def test_change_selects_reschedule(self) -> None:
        options = [_opt("1", "Reschedule", "reschedule_apt_1"), _opt("2", "Back", "go_back")]
        assert resolve_option(options, "change").id == "1"

    def test_back_selects_go_back(self) -> None:
        options = [_opt("1", "Book", "cmd_book"), _opt("2", "Menu", "go_back")]
        assert resolve_option(options, "back").id == "2"

    def test_first_matching_option_wins(self) -> None:
        options = [_opt("1", "A", "cancel_apt_1"), _opt("2", "B", "cancel_apt_2")]
        assert resolve_option(options, "no").id == "1"

    def test_synonym_without_matching_option(self) -> None:
        options = [_opt("1", "Book", "cmd_book")]
        assert resolve_option(options, "yes") is None

    def test_removal_prompt_no_keeps_appointment(self) -> None:
        options = [
            _opt("1", "✅ Yes, Cancel It", "confirm_removal_apt1"),
            _opt("2", "❌ No, Keep It", "cancel_removal"),
        ]
        assert resolve_option(options, "no").callback_data == "cancel_removal"
        assert resolve_option(options, "yes").callback_data == "confirm_removal_apt1"


class TestEdgeCases:
    def test_empty_options(self) -> None:
        assert resolve_option([], "1") is None

    def test_empty_text(self) -> None:
        assert resolve_option(BOOKING_CONFIRMATION, "   ") is None

    def test_unrelated_text(self) -> None:
        assert resolve_option(BOOKING_CONFIRMATION, "what time do you open?") is None

    def test_non_ascii_digits_are_not_ids(self) -> None:
        options = [_opt("1", "Book", "cmd_book")]
        assert resolve_option(options, "١") is None

    def test_deterministic(self) -> None:
        results = {resolve_option(BOOKING_CONFIRMATION, "yes") for _ in range(20)}
        assert len(results) == 1

    def test_normalize_phrase(self) -> None:
        assert normalize_phrase("  ✅ Confirm--Booking! ") == "confirm booking"
