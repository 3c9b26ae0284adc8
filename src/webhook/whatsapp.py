"""WhatsApp Cloud API channel.

Handles the Meta verification handshake, HMAC signature checks, mapping of
webhook payloads to InboundMessage (text, interactive replies, images), and
reply delivery through the Graph API.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from src.models import Channel, InboundMessage, Media
from src.webhook.channels import ChannelCapabilities, SendError
from src.webhook.formatter import CAPABILITIES, FormattedReply
from src.webhook.signature import SIGNATURE_HEADER, verify_signature

logger = logging.getLogger(__name__)

_WHATSAPP_API_BASE = "https://graph.facebook.com/v19.0"
_HTTP_TIMEOUT_SECONDS = 15.0

IMAGE_SENTINEL = "[IMAGE]"


def _object(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _items(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _string(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _first_message(payload: Any) -> dict[str, Any] | None:
    """Return the first user message in a webhook payload, if any.

    Status-only payloads (sent/delivered/read receipts) carry no messages.
    """
    if not isinstance(payload, dict):
        return None
    for entry in _items(payload.get("entry")):
        for change in _items(_object(entry).get("changes")):
            value = _object(_object(change).get("value"))
            for message in _items(value.get("messages")):
                if isinstance(message, dict):
                    return message
    return None


def _contact_name(payload: dict[str, Any], wa_id: str) -> str | None:
    for entry in _items(payload.get("entry")):
        for change in _items(_object(entry).get("changes")):
            value = _object(_object(change).get("value"))
            for contact in _items(value.get("contacts")):
                if isinstance(contact, dict) and contact.get("wa_id") == wa_id:
                    return _string(_object(contact.get("profile")).get("name"))
    return None


def _interactive_selection(message: dict[str, Any]) -> str | None:
    interactive = _object(message.get("interactive"))
    kind = interactive.get("type")
    if kind not in ("button_reply", "list_reply"):
        return None
    reply = _object(interactive.get(kind))
    return _string(reply.get("id")) or _string(reply.get("title"))


class WhatsAppChannel:
    """Adapter for the WhatsApp Business Cloud API."""

    channel = Channel.WHATSAPP
    capabilities: ChannelCapabilities = CAPABILITIES[Channel.WHATSAPP]

    def __init__(
        self,
        verify_token: str,
        phone_number_id: str,
        access_token: str,
        app_secret: str | None = None,
    ) -> None:
        self._verify_token = verify_token
        self._phone_number_id = phone_number_id
        self._access_token = access_token
        self._app_secret = app_secret

    def verify_signature(self, headers: Mapping[str, str], body: bytes) -> bool:
        return verify_signature(body, headers.get(SIGNATURE_HEADER), self._app_secret)

    def handle_verification(self, params: Mapping[str, str]) -> tuple[int, str]:
        """Answer Meta's GET handshake: (200, challenge) or (403, reason)."""
        mode = params.get("hub.mode")
        token = params.get("hub.verify_token", "")
        if mode == "subscribe" and hmac.compare_digest(
            token.encode(), self._verify_token.encode(),
        ):
            return 200, params.get("hub.challenge", "")
        logger.warning("WhatsApp webhook verification rejected (mode=%s)", mode)
        return 403, "Forbidden"

    async def normalize(self, payload: Any) -> InboundMessage | None:
        message = _first_message(payload)
        if message is None:
            return None

        sender = _string(message.get("from"))
        if sender is None:
            return None

        kind = message.get("type")
        text: str | None = None
        selected: str | None = None
        media: Media | None = None

        if kind == "text":
            text = _string(_object(message.get("text")).get("body"))
        elif kind == "interactive":
            selected = _interactive_selection(message)
            text = selected
        elif kind == "button":
            # Quick-reply buttons on template messages
            button = _object(message.get("button"))
            selected = _string(button.get("payload")) or _string(button.get("text"))
            text = selected
        elif kind == "image":
            image = _object(message.get("image"))
            media_id = _string(image.get("id")) or ""
            data = await self.download_media(media_id) if media_id else b""
            media = Media(
                media_id=media_id,
                mime_type=_string(image.get("mime_type")) or "image/jpeg",
                data=data,
            )
            text = IMAGE_SENTINEL

        if text is None or not text.strip():
            logger.info("Ignoring unsupported WhatsApp message type: %s", kind)
            return None

        timestamp = message.get("timestamp")
        return InboundMessage(
            channel=self.channel,
            sender_id=sender,
            text=text.strip(),
            selected_option_id=selected,
            media=media,
            message_id=_string(message.get("id")),
            sent_at=int(timestamp) if str(timestamp or "").isdigit() else None,
            display_name=_contact_name(payload, sender),
        )

    async def download_media(self, media_id: str) -> bytes:
        """Fetch media bytes; returns b"" when the provider cannot serve them."""
        headers = {"Authorization": f"Bearer {self._access_token}"}
        try:
            async with httpx.AsyncClient(verify=True, timeout=_HTTP_TIMEOUT_SECONDS) as client:
                meta = await client.get(f"{_WHATSAPP_API_BASE}/{media_id}", headers=headers)
                meta.raise_for_status()
                url = _string(_object(meta.json()).get("url"))
                if not url:
                    return b""
                resp = await client.get(url, headers=headers)
                resp.raise_for_status()
                return resp.content
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Could not download WhatsApp media %s: %s", media_id, exc)
            return b""

    async def send(self, recipient_id: str, reply: FormattedReply) -> None:
        url = f"{_WHATSAPP_API_BASE}/{self._phone_number_id}/messages"
        payload = {
            "messaging_product": "whatsapp",
            "to": recipient_id,
            "type": "text",
            "text": {"preview_url": False, "body": reply.text},
        }
        headers = {"Authorization": f"Bearer {self._access_token}"}
        try:
            async with httpx.AsyncClient(verify=True, timeout=_HTTP_TIMEOUT_SECONDS) as client:
                resp = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise SendError(f"WhatsApp send failed: {exc}") from exc
        if resp.status_code >= 400:
            raise SendError(f"WhatsApp API returned {resp.status_code}")

    async def acknowledge(self, message: InboundMessage) -> None:
        """WhatsApp needs no per-message acknowledgement beyond the 200."""
