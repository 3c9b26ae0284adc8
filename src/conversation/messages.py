"""Fixed user-facing texts sent outside the command handlers."""

from __future__ import annotations

APOLOGY = (
    "😔 Sorry, something went wrong while handling your request. "
    "Please try again in a moment, or type /help."
)

NOT_UNDERSTOOD = (
    "🤔 I'm having trouble understanding that. "
    "Type /help to see what I can do, or /start for the main menu."
)


def rate_limited(retry_after_seconds: int | None) -> str:
    if retry_after_seconds is None:
        return "⏳ You're sending messages too quickly. Please slow down and try again shortly."
    if retry_after_seconds >= 60:
        minutes = -(-retry_after_seconds // 60)
        wait = f"{minutes} minute{'s' if minutes != 1 else ''}"
    else:
        wait = f"{retry_after_seconds} second{'s' if retry_after_seconds != 1 else ''}"
    return f"⏳ You're sending messages too quickly. Please wait {wait} before trying again."
