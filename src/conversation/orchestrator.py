"""Conversation pipeline for one normalized inbound message.

Stages:
1. Replay check (duplicate provider deliveries are dropped silently)
2. Acknowledge the tap (Telegram callback queries)
3. Per-sender rate limit (rejected senders still get a reply)
4. Route: pending option -> known callback token -> command alias -> intent engine
5. Format for the channel
6. Update the conversation context (only after the handler succeeded)
7. Send, exactly once, and append the exchange to the sender's history

Expired contexts, transcripts and idle rate-limit windows are swept every
`sweep_every` messages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from src.booking.backend import BackendError
from src.conversation import messages
from src.conversation.commands import Command, CommandRegistry
from src.conversation.intent import IntentEngineError
from src.conversation.option_resolver import resolve_option
from src.models import (
    AuditEventType,
    BookingDraft,
    CommandResponse,
    ConversationContext,
    HistoryTurn,
    InboundMessage,
    RiskLevel,
    User,
)
from src.webhook.channels import SendError
from src.webhook.formatter import FormattedReply, format_response

if TYPE_CHECKING:
    from collections.abc import Sequence

    from src.audit.logger import AuditLogger
    from src.booking.backend import BookingBackend
    from src.conversation.context_store import ContextStore
    from src.conversation.handlers import CommandHandlers
    from src.conversation.history import ConversationHistory
    from src.conversation.intent import IntentEngine
    from src.webhook.channels import ChannelAdapter, ChannelRegistry
    from src.webhook.rate_limiter import SenderRateLimiter
    from src.webhook.replay_protection import ReplayProtection

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    REPLIED = "replied"
    RATE_LIMITED = "rate_limited"
    DUPLICATE = "duplicate"
    FAILED = "failed"


class RouteKind(str, Enum):
    CALLBACK = "callback"
    COMMAND = "command"
    INTENT = "intent"


@dataclass(frozen=True)
class _Route:
    kind: RouteKind
    target: str = ""

    @property
    def action(self) -> str:
        return f"{self.kind.value}:{self.target}" if self.target else self.kind.value


class ConversationOrchestrator:
    """Turns each inbound message into exactly one outbound reply."""

    def __init__(
        self,
        channels: ChannelRegistry,
        contexts: ContextStore,
        handlers: CommandHandlers,
        backend: BookingBackend,
        rate_limiter: SenderRateLimiter,
        registry: CommandRegistry | None = None,
        replay: ReplayProtection | None = None,
        intent_engine: IntentEngine | None = None,
        audit_logger: AuditLogger | None = None,
        history: ConversationHistory | None = None,
        sweep_every: int = 500,
    ) -> None:
        self._channels = channels
        self._contexts = contexts
        self._handlers = handlers
        self._backend = backend
        self._rate_limiter = rate_limiter
        self._registry = registry or CommandRegistry()
        self._replay = replay
        self._intent = intent_engine
        self._audit = audit_logger
        self._history = history
        self._sweep_every = sweep_every
        self._received = 0

    def sweep(self) -> None:
        """Drop expired per-sender state."""
        windows = self._rate_limiter.cleanup()
        contexts = self._contexts.sweep()
        transcripts = self._history.sweep() if self._history is not None else 0
        logger.debug(
            "Swept %d rate-limit windows, %d contexts, %d transcripts",
            windows, contexts, transcripts,
        )

    async def handle(self, message: InboundMessage) -> Outcome:
        self._received += 1
        if self._sweep_every > 0 and self._received % self._sweep_every == 0:
            self.sweep()

        if self._replay is not None and not self._replay.check(message):
            logger.info(
                "Dropping duplicate %s delivery %s", message.channel.value, message.message_id,
            )
            self._record(
                AuditEventType.DUPLICATE_DELIVERY, message, "replay_check", "ignored",
                message_id=message.message_id,
            )
            return Outcome.DUPLICATE

        adapter = self._channels.get(message.channel)
        await adapter.acknowledge(message)

        decision = self._rate_limiter.allow(f"{message.channel.value}:{message.sender_id}")
        if not decision.allowed:
            logger.warning(
                "Rate limited %s sender %s (retry after %ss)",
                message.channel.value, message.sender_id, decision.retry_after_seconds,
            )
            self._record(
                AuditEventType.RATE_LIMITED, message, "rate_limit", "blocked",
                risk_level=RiskLevel.MEDIUM,
                retry_after_seconds=decision.retry_after_seconds,
            )
            await self._send(adapter, message, CommandResponse(
                text=messages.rate_limited(decision.retry_after_seconds),
            ))
            return Outcome.RATE_LIMITED

        context = self._contexts.get(message.channel, message.sender_id)
        draft = context.draft if context else None
        user = await self._lookup_user(message)
        route = self._plan(message, context)
        history = (
            self._history.get(message.channel, message.sender_id)
            if self._history is not None else ()
        )

        try:
            response = await self._execute(route, message, user, draft, history)
        except BackendError as exc:
            logger.warning(
                "Booking backend failed for %s sender %s on %s: %s",
                message.channel.value, message.sender_id, route.action, exc,
            )
            return await self._fail(adapter, message, route, str(exc))
        except Exception as exc:
            logger.exception(
                "Unexpected error handling %s sender %s on %s",
                message.channel.value, message.sender_id, route.action,
            )
            return await self._fail(adapter, message, route, type(exc).__name__)

        if response is None:
            response = CommandResponse(text=messages.NOT_UNDERSTOOD)
            sent = await self._send(adapter, message, response)
        else:
            sent = await self._send(adapter, message, response, draft=draft, update_context=True)
        if sent and self._history is not None:
            self._history.add(message.channel, message.sender_id, "user", message.text)
            self._history.add(message.channel, message.sender_id, "assistant", response.text)

        self._record(
            AuditEventType.MESSAGE_HANDLED, message, route.action,
            "success" if sent else "failure",
        )
        return Outcome.REPLIED

    # --- Routing ---

    async def _lookup_user(self, message: InboundMessage) -> User | None:
        try:
            return await self._backend.find_user(message.channel, message.sender_id)
        except BackendError as exc:
            logger.warning(
                "User lookup failed for %s sender %s: %s",
                message.channel.value, message.sender_id, exc,
            )
            return None

    def _plan(self, message: InboundMessage, context: ConversationContext | None) -> _Route:
        if context is not None and context.pending_options:
            option = resolve_option(
                context.pending_options, message.selected_option_id or message.text,
            )
            if option is not None:
                # The context stays until the handler succeeds; its reply then
                # replaces or clears it.
                return _Route(RouteKind.CALLBACK, option.callback_data)

        if message.selected_option_id and self._handlers.knows_callback(message.selected_option_id):
            return _Route(RouteKind.CALLBACK, message.selected_option_id)

        command = self._registry.resolve(message.text)
        if command is not None:
            return _Route(RouteKind.COMMAND, command.value)

        return _Route(RouteKind.INTENT)

    async def _execute(
        self,
        route: _Route,
        message: InboundMessage,
        user: User | None,
        draft: BookingDraft | None,
        history: Sequence[HistoryTurn],
    ) -> CommandResponse | None:
        if route.kind is RouteKind.CALLBACK:
            return await self._handlers.handle_callback(route.target, user, draft)
        if route.kind is RouteKind.COMMAND:
            return await self._handlers.handle(Command(route.target), user, draft)
        return await self._interpret(message, user, draft, history)

    async def _interpret(
        self,
        message: InboundMessage,
        user: User | None,
        draft: BookingDraft | None,
        history: Sequence[HistoryTurn],
    ) -> CommandResponse | None:
        if self._intent is None:
            return None
        try:
            result = await self._intent.interpret(message, user, draft, history)
        except IntentEngineError as exc:
            logger.warning("Intent engine failed for %s: %s", message.channel.value, exc)
            return None
        return CommandResponse(
            text=result.reply,
            buttons=result.buttons,
            is_markup=False,
            draft=result.draft,
        )

    # --- Delivery ---

    async def _fail(
        self, adapter: ChannelAdapter, message: InboundMessage, route: _Route, error: str,
    ) -> Outcome:
        self._record(
            AuditEventType.HANDLER_FAILURE, message, route.action, "failure",
            risk_level=RiskLevel.LOW, error=error,
        )
        await self._send(adapter, message, CommandResponse(text=messages.APOLOGY))
        return Outcome.FAILED

    def _remember(
        self,
        message: InboundMessage,
        reply: FormattedReply,
        response: CommandResponse,
        draft: BookingDraft | None,
    ) -> None:
        new_draft = response.draft if response.draft is not None else draft
        if new_draft is not None and new_draft.is_empty():
            new_draft = None
        if reply.options or new_draft is not None:
            self._contexts.set(message.channel, message.sender_id, reply.options, new_draft)
        else:
            self._contexts.clear(message.channel, message.sender_id)

    async def _send(
        self,
        adapter: ChannelAdapter,
        message: InboundMessage,
        response: CommandResponse,
        draft: BookingDraft | None = None,
        update_context: bool = False,
    ) -> bool:
        """Format and send one reply. Returns False if the provider refused it."""
        reply = format_response(message.channel, response, adapter.capabilities)
        if update_context:
            self._remember(message, reply, response, draft)
        try:
            await adapter.send(message.sender_id, reply)
        except SendError as exc:
            logger.error(
                "Failed to send %s reply to %s: %s",
                message.channel.value, message.sender_id, exc,
            )
            self._record(
                AuditEventType.SEND_FAILURE, message, "send", "failure",
                risk_level=RiskLevel.LOW, error=str(exc),
            )
            return False
        return True

    def _record(
        self,
        event_type: AuditEventType,
        message: InboundMessage,
        action: str,
        result: str,
        risk_level: RiskLevel = RiskLevel.INFO,
        **details: object,
    ) -> None:
        if self._audit is None:
            return
        self._audit.record(
            event_type, action, result,
            risk_level=risk_level,
            channel=message.channel,
            sender_id=message.sender_id,
            **details,
        )
