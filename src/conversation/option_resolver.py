"""Match a sender's reply against the options they were last shown."""

from __future__ import annotations

import re
from collections.abc import Sequence

from src.models import CommandOption

# Synonym word -> substring the option's callback data must contain.
SYNONYMS: dict[str, str] = {
    "yes": "confirm",
    "confirm": "confirm",
    "ok": "confirm",
    "okay": "confirm",
    "no": "cancel",
    "cancel": "cancel",
    "stop": "cancel",
    "reschedule": "reschedule",
    "change": "reschedule",
    "back": "go_back",
}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_phrase(text: str) -> str:
    """Lowercase, collapse runs of non-alphanumerics to one space, trim."""
    return _NON_ALNUM.sub(" ", text.lower()).strip()


def resolve_option(
    pending_options: Sequence[CommandOption],
    raw_text: str,
) -> CommandOption | None:
    """Return the option ``raw_text`` selects, or None.

    Precedence, first match wins: numeric id, label, callback data, then
    synonyms. Exact structural matches always beat synonyms, so a button
    labelled "Cancel" is chosen by its label rather than by the first option
    whose callback contains "cancel". A number that is not an option id
    matches nothing.
    """
    if not pending_options:
        return None
    text = raw_text.strip()
    if not text:
        return None

    if text.isascii() and text.isdigit():
        return next((o for o in pending_options if o.id == text), None)

    phrase = normalize_phrase(text)
    for option in pending_options:
        if normalize_phrase(option.label) == phrase:
            return option
    for option in pending_options:
        if normalize_phrase(option.callback_data) == phrase:
            return option

    needle = SYNONYMS.get(phrase)
    if needle is None:
        return None
    return next((o for o in pending_options if needle in o.callback_data), None)
