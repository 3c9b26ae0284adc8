"""Render a CommandResponse into a channel's native message body."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from src.models import Button, Channel, CommandOption, CommandResponse
from src.webhook.channels import ChannelCapabilities

CAPABILITIES: dict[Channel, ChannelCapabilities] = {
    # Plain WhatsApp text messages have no buttons but render *bold*/_italic_.
    Channel.WHATSAPP: ChannelCapabilities(native_buttons=False, markup=True),
    Channel.TELEGRAM: ChannelCapabilities(native_buttons=True, markup=True),
}

_MARKUP_TOKENS = re.compile(r"[*_`]")


@dataclass(frozen=True)
class FormattedReply:
    """A rendered reply plus the options it presented to the sender.

    ``keyboard`` is set only for channels with native buttons; ``parse_mode``
    only when the text carries markup the channel should render.
    """

    text: str
    options: tuple[CommandOption, ...] = ()
    keyboard: list[list[dict[str, str]]] = field(default_factory=list)
    parse_mode: str | None = None


def strip_markup(text: str) -> str:
    return _MARKUP_TOKENS.sub("", text)


def flatten_buttons(
    rows: list[list[Button]],
) -> tuple[list[CommandOption], list[Button]]:
    """Number action buttons "1".."n" in row order; collect link buttons.

    A repeated callback token keeps its first number so the option list stays
    unique.
    """
    options: list[CommandOption] = []
    links: list[Button] = []
    seen: set[str] = set()
    for row in rows:
        for button in row:
            if button.callback_data is None:
                links.append(button)
                continue
            if button.callback_data in seen:
                continue
            seen.add(button.callback_data)
            options.append(CommandOption(
                id=str(len(options) + 1),
                label=button.label,
                callback_data=button.callback_data,
            ))
    return options, links


def _plain_text_body(
    text: str, options: list[CommandOption], links: list[Button], markup: bool,
) -> str:
    heading = "*Options:*" if markup else "Options:"
    if options:
        lines = "\n".join(f"{o.id}. {o.label}" for o in options)
        text += f"\n\n{heading}\n{lines}\n\nReply with the option number."
    if links:
        link_heading = "*Links:*" if markup else "Links:"
        lines = "\n".join(f"• {b.label}: {b.url}" for b in links)
        text += f"\n\n{link_heading}\n{lines}"
    return text


def _inline_keyboard(rows: list[list[Button]]) -> list[list[dict[str, str]]]:
    keyboard: list[list[dict[str, str]]] = []
    for row in rows:
        rendered: list[dict[str, str]] = []
        for button in row:
            if button.callback_data is None:
                rendered.append({"text": button.label, "url": button.url or ""})
            else:
                rendered.append({"text": button.label, "callback_data": button.callback_data})
        if rendered:
            keyboard.append(rendered)
    return keyboard


def format_response(
    channel: Channel,
    response: CommandResponse,
    capabilities: ChannelCapabilities | None = None,
) -> FormattedReply:
    """Render ``response`` for ``channel``.

    Channels without native buttons get the actions as a numbered list in the
    text so a typed number selects them. Markup survives only when both the
    response carries it and the channel can display it.
    """
    caps = capabilities or CAPABILITIES[channel]
    markup = response.is_markup and caps.markup
    text = response.text
    if response.is_markup and not caps.markup:
        text = strip_markup(text)

    options, links = flatten_buttons(response.buttons)
    parse_mode = "Markdown" if markup else None

    if caps.native_buttons:
        return FormattedReply(
            text=text,
            options=tuple(options),
            keyboard=_inline_keyboard(response.buttons),
            parse_mode=parse_mode,
        )

    return FormattedReply(
        text=_plain_text_body(text, options, links, markup),
        options=tuple(options),
        parse_mode=parse_mode,
    )
