"""Channel adapter interface and registry.

Everything that depends on a provider's wire format lives behind this
interface: ``normalize`` turns a native payload into an InboundMessage and
``send`` delivers a FormattedReply. The conversation core only ever sees the
canonical models.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import ValidationError

from src.models import Channel, InboundMessage

if TYPE_CHECKING:
    from src.webhook.formatter import FormattedReply

logger = logging.getLogger(__name__)


class SendError(Exception):
    """Raised when a provider rejects or never receives an outbound message."""


@dataclass(frozen=True)
class ChannelCapabilities:
    native_buttons: bool
    markup: bool


class ChannelAdapter(Protocol):
    channel: Channel
    capabilities: ChannelCapabilities

    async def normalize(self, payload: Any) -> InboundMessage | None: ...

    async def send(self, recipient_id: str, reply: FormattedReply) -> None: ...

    async def acknowledge(self, message: InboundMessage) -> None: ...


class ChannelRegistry:
    """Looks up the adapter for a channel."""

    def __init__(self) -> None:
        self._adapters: dict[Channel, ChannelAdapter] = {}

    def register(self, adapter: ChannelAdapter) -> None:
        self._adapters[adapter.channel] = adapter

    def get(self, channel: Channel) -> ChannelAdapter:
        try:
            return self._adapters[channel]
        except KeyError:
            raise LookupError(f"Channel '{channel.value}' is not configured") from None

    def __contains__(self, channel: object) -> bool:
        return channel in self._adapters

    async def normalize(self, channel: Channel, payload: Any) -> InboundMessage | None:
        """Map a native payload to an InboundMessage, or None for a no-op."""
        try:
            return await self.get(channel).normalize(payload)
        except ValidationError as exc:
            logger.warning("Ignoring malformed %s payload: %s", channel.value, exc)
            return None
