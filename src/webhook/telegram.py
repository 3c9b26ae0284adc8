"""Telegram Bot API channel.

Verifies the webhook secret token, maps updates (text messages and inline
keyboard callback queries) to InboundMessage, and sends replies with inline
keyboards.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from src.models import Channel, InboundMessage
from src.webhook.channels import ChannelCapabilities, SendError
from src.webhook.formatter import CAPABILITIES, FormattedReply
from src.webhook.signature import TELEGRAM_SECRET_HEADER, verify_secret_token

logger = logging.getLogger(__name__)

_TELEGRAM_API_BASE = "https://api.telegram.org"
_HTTP_TIMEOUT_SECONDS = 15.0


def _callback_chat_id(callback: dict[str, Any]) -> Any:
    # Keyed like text messages: by the chat that holds the keyboard.
    origin = callback.get("message")
    chat = origin.get("chat") if isinstance(origin, dict) else None
    if isinstance(chat, dict) and chat.get("id") is not None:
        return chat["id"]
    from_user = callback.get("from")
    return from_user.get("id") if isinstance(from_user, dict) else None


class TelegramChannel:
    """Adapter for the Telegram Bot API."""

    channel = Channel.TELEGRAM
    capabilities: ChannelCapabilities = CAPABILITIES[Channel.TELEGRAM]

    def __init__(self, bot_token: str, secret_token: str | None = None) -> None:
        self._bot_token = bot_token
        self.secret_token = secret_token

    def _url(self, method: str) -> str:
        return f"{_TELEGRAM_API_BASE}/bot{self._bot_token}/{method}"

    def verify_webhook(self, headers: Mapping[str, str]) -> bool:
        return verify_secret_token(headers.get(TELEGRAM_SECRET_HEADER), self.secret_token)

    async def normalize(self, payload: Any) -> InboundMessage | None:
        if not isinstance(payload, dict):
            return None
        update_id = payload.get("update_id")
        message_id = str(update_id) if update_id is not None else None

        callback = payload.get("callback_query")
        if isinstance(callback, dict):
            data = callback.get("data")
            sender = _callback_chat_id(callback)
            if not isinstance(data, str) or not data.strip() or sender is None:
                return None
            from_user = callback.get("from")
            return InboundMessage(
                channel=self.channel,
                sender_id=str(sender),
                text=data.strip(),
                selected_option_id=data,
                message_id=message_id,
                display_name=from_user.get("first_name") if isinstance(from_user, dict) else None,
                callback_query_id=callback.get("id"),
            )

        message = payload.get("message") or payload.get("edited_message")
        if not isinstance(message, dict):
            return None
        text = message.get("text")
        chat = message.get("chat")
        chat_id = chat.get("id") if isinstance(chat, dict) else None
        if not isinstance(text, str) or not text.strip() or chat_id is None:
            return None
        from_user = message.get("from")

        date = message.get("date")
        return InboundMessage(
            channel=self.channel,
            sender_id=str(chat_id),
            text=text.strip(),
            message_id=message_id,
            sent_at=date if "message" in payload and isinstance(date, int) else None,
            display_name=from_user.get("first_name") if isinstance(from_user, dict) else None,
        )

    async def _call(self, method: str, payload: dict[str, Any]) -> httpx.Response:
        try:
            async with httpx.AsyncClient(verify=True, timeout=_HTTP_TIMEOUT_SECONDS) as client:
                resp = await client.post(self._url(method), json=payload)
        except httpx.HTTPError as exc:
            raise SendError(f"Telegram {method} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise SendError(f"Telegram {method} returned {resp.status_code}")
        return resp

    async def send(self, recipient_id: str, reply: FormattedReply) -> None:
        payload: dict[str, Any] = {"chat_id": recipient_id, "text": reply.text}
        if reply.parse_mode:
            payload["parse_mode"] = reply.parse_mode
        if reply.keyboard:
            payload["reply_markup"] = {"inline_keyboard": reply.keyboard}
        await self._call("sendMessage", payload)

    async def acknowledge(self, message: InboundMessage) -> None:
        """Stop the loading spinner on a tapped inline button."""
        if not message.callback_query_id:
            return
        try:
            await self._call("answerCallbackQuery", {"callback_query_id": message.callback_query_id})
        except SendError as exc:
            logger.warning("Could not answer Telegram callback query: %s", exc)

    async def set_webhook(self, url: str) -> dict[str, Any]:
        """Register ``url`` as the bot's webhook along with the secret token."""
        payload: dict[str, Any] = {
            "url": url,
            "allowed_updates": ["message", "edited_message", "callback_query"],
        }
        if self.secret_token:
            payload["secret_token"] = self.secret_token
        resp = await self._call("setWebhook", payload)
        return resp.json()
