"""Fallback intent engine for free text no command or option matched."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from collections.abc import Sequence
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from src.models import BookingDraft, Button, HistoryTurn, InboundMessage, User

logger = logging.getLogger(__name__)

_TIMEOUT_SECONDS = 30.0

_SYSTEM_PROMPT = (
    "You are the booking assistant for {business}. Reply to the customer in a "
    "short, friendly message. Respond with a JSON object with keys "
    '"reply" (string), "buttons" (list of rows of {{"label", "callback_data"}}) '
    'and "draft" (the updated booking draft). When the draft has a service, '
    "date (YYYY-MM-DD) and time (HH:MM), offer confirm_booking and "
    "cancel_booking buttons; while pending_action is reschedule, offer "
    "confirm_new_time and cancel_new_time instead.\n"
    "Customer: {customer}\nCurrent draft: {draft}"
)


class IntentEngineError(Exception):
    """The intent engine could not produce a reply."""


@dataclass
class IntentResult:
    reply: str
    buttons: list[list[Button]] = field(default_factory=list)
    draft: BookingDraft | None = None


class IntentEngine(Protocol):
    async def interpret(
        self,
        message: InboundMessage,
        user: User | None,
        draft: BookingDraft | None,
        history: Sequence[HistoryTurn] = (),
    ) -> IntentResult: ...


def _parse_buttons(raw: Any) -> list[list[Button]]:
    rows: list[list[Button]] = []
    if not isinstance(raw, list):
        return rows
    for raw_row in raw:
        entries = raw_row if isinstance(raw_row, list) else [raw_row]
        row = []
        for entry in entries:
            try:
                row.append(Button.model_validate(entry))
            except ValidationError:
                logger.warning("Dropping malformed button from intent engine: %r", entry)
        if row:
            rows.append(row)
    return rows


def parse_completion(content: str) -> IntentResult:
    """Build an IntentResult from assistant content (JSON object or plain text)."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        data = None
    if not isinstance(data, dict):
        return IntentResult(reply=content.strip())

    draft: BookingDraft | None = None
    if isinstance(data.get("draft"), dict):
        try:
            draft = BookingDraft.model_validate(data["draft"])
        except ValidationError:
            logger.warning("Ignoring malformed draft from intent engine")
    return IntentResult(
        reply=str(data.get("reply") or "").strip(),
        buttons=_parse_buttons(data.get("buttons")),
        draft=draft,
    )


class HttpIntentEngine:
    """Forwards unresolved text to an OpenAI-compatible chat completions API."""

    def __init__(self, base_url: str, token: str | None = None, business_name: str = "") -> None:
        self._base_url = base_url
        self._token = token
        self._business_name = business_name

    def _request_body(
        self,
        message: InboundMessage,
        user: User | None,
        draft: BookingDraft | None,
        history: Sequence[HistoryTurn],
    ) -> dict[str, Any]:
        customer = "unknown"
        if user is not None:
            customer = f"{user.name or 'unknown name'} <{user.email or 'no email'}>"
        system = _SYSTEM_PROMPT.format(
            business=self._business_name or "the salon",
            customer=customer,
            draft=(draft or BookingDraft()).model_dump_json(),
        )
        return {
            "model": "default",
            "messages": [
                {"role": "system", "content": system},
                *({"role": turn.role, "content": turn.content} for turn in history),
                {"role": "user", "content": message.text},
            ],
            "metadata": {"source": message.channel.value, "sender_id": message.sender_id},
        }

    async def interpret(
        self,
        message: InboundMessage,
        user: User | None,
        draft: BookingDraft | None,
        history: Sequence[HistoryTurn] = (),
    ) -> IntentResult:
        url = f"{self._base_url.rstrip('/')}/v1/chat/completions"
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    url,
                    json=self._request_body(message, user, draft, history),
                    headers=headers,
                    timeout=_TIMEOUT_SECONDS,
                )
        except httpx.HTTPError as exc:
            raise IntentEngineError(f"Intent engine unavailable: {exc}") from exc

        if resp.status_code >= 400:
            raise IntentEngineError(f"Intent engine returned {resp.status_code}")

        try:
            resp_json = resp.json()
            content = resp_json.get("choices", [{}])[0].get("message", {}).get("content")
        except (json.JSONDecodeError, IndexError, KeyError, AttributeError):
            content = resp.text

        if not isinstance(content, str) or not content.strip():
            raise IntentEngineError("Intent engine returned an empty reply")

        result = parse_completion(content)
        if not result.reply:
            raise IntentEngineError("Intent engine returned an empty reply")
        return result
