"""FastAPI application exposing the chat channel webhooks."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from src.audit.logger import AuditLogger
from src.booking.backend import BookingBackend
from src.booking.memory import InMemoryBookingBackend
from src.config import Settings
from src.conversation.commands import CommandRegistry
from src.conversation.context_store import ContextStore, InMemoryContextStore
from src.conversation.handlers import CommandHandlers
from src.conversation.history import ConversationHistory
from src.conversation.intent import HttpIntentEngine, IntentEngine
from src.conversation.orchestrator import ConversationOrchestrator
from src.models import AuditEventType, Channel, RiskLevel
from src.server.body_limit import BodySizeLimitMiddleware
from src.webhook.channels import ChannelRegistry
from src.webhook.rate_limiter import SenderRateLimiter
from src.webhook.replay_protection import ReplayProtection
from src.webhook.telegram import TelegramChannel
from src.webhook.whatsapp import WhatsAppChannel

logger = logging.getLogger(__name__)

_MAX_BODY_SIZE = 1024 * 1024  # 1 MiB; provider payloads are a few KB


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    settings = Settings.from_env()
    audit_logger = (
        AuditLogger.from_env(settings.audit_log_path) if settings.audit_log_path else None
    )
    return create_app(settings, audit_logger=audit_logger)


def _load_backend(catalog_path: str) -> BookingBackend:
    if not os.path.exists(catalog_path):
        logger.warning("Catalog %s not found; starting with an empty catalog", catalog_path)
        return InMemoryBookingBackend()
    return InMemoryBookingBackend.from_catalog(catalog_path)


def create_app(
    settings: Settings,
    backend: BookingBackend | None = None,
    intent_engine: IntentEngine | None = None,
    audit_logger: AuditLogger | None = None,
    context_store: ContextStore | None = None,
) -> FastAPI:
    """Create the webhook app. A channel's routes exist only when it is configured."""
    app = FastAPI(docs_url=None, redoc_url=None)

    backend = backend or _load_backend(settings.catalog_path)
    if intent_engine is None and settings.intent_engine_url:
        token = settings.intent_engine_token
        intent_engine = HttpIntentEngine(
            settings.intent_engine_url,
            token.get_secret_value() if token else None,
            business_name=settings.business.name,
        )

    channels = ChannelRegistry()
    whatsapp: WhatsAppChannel | None = None
    telegram: TelegramChannel | None = None
    if settings.whatsapp is not None:
        wa = settings.whatsapp
        whatsapp = WhatsAppChannel(
            verify_token=wa.verify_token.get_secret_value(),
            phone_number_id=wa.phone_number_id,
            access_token=wa.access_token.get_secret_value(),
            app_secret=wa.app_secret.get_secret_value() if wa.app_secret else None,
        )
        channels.register(whatsapp)
    if settings.telegram_bot_token is not None:
        secret = settings.telegram_webhook_secret
        telegram = TelegramChannel(
            settings.telegram_bot_token.get_secret_value(),
            secret_token=secret.get_secret_value() if secret else None,
        )
        channels.register(telegram)

    orchestrator = ConversationOrchestrator(
        channels=channels,
        contexts=context_store or InMemoryContextStore(settings.context_ttl_seconds),
        handlers=CommandHandlers(backend, settings.business),
        backend=backend,
        rate_limiter=SenderRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
            block_seconds=settings.rate_limit_block_seconds,
        ),
        registry=CommandRegistry(),
        replay=ReplayProtection(settings.replay_db_path),
        intent_engine=intent_engine,
        audit_logger=audit_logger,
        history=ConversationHistory(ttl_seconds=settings.context_ttl_seconds),
    )
    app.state.orchestrator = orchestrator
    app.state.channels = channels

    async def receive(
        request: Request, channel: Channel, verified: Callable[[bytes], bool],
    ) -> Response:
        body = await request.body()
        if len(body) > _MAX_BODY_SIZE:
            return JSONResponse({"error": "Request body too large"}, status_code=413)

        if not verified(body):
            logger.warning("Rejected %s webhook with invalid signature", channel.value)
            if audit_logger:
                audit_logger.record(
                    AuditEventType.SIGNATURE_FAILURE,
                    action="webhook_verify",
                    result="blocked",
                    risk_level=RiskLevel.HIGH,
                    channel=channel,
                    client=request.client.host if request.client else None,
                )
            return JSONResponse({"error": "Invalid webhook signature"}, status_code=403)

        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return JSONResponse({"error": "Invalid JSON"}, status_code=400)

        message = await channels.normalize(channel, payload)
        if message is None:
            return JSONResponse({"status": "ignored"})
        outcome = await orchestrator.handle(message)
        return JSONResponse({"status": outcome.value})

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=_MAX_BODY_SIZE)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    if whatsapp is not None:
        wa_channel = whatsapp

        @app.get("/webhook/whatsapp")
        async def whatsapp_verify(request: Request) -> Response:
            status, body = wa_channel.handle_verification(request.query_params)
            return PlainTextResponse(body, status_code=status)

        @app.post("/webhook/whatsapp")
        async def whatsapp_webhook(request: Request) -> Response:
            return await receive(
                request, Channel.WHATSAPP,
                lambda body: wa_channel.verify_signature(request.headers, body),
            )

    if telegram is not None:
        tg_channel = telegram

        @app.post("/webhook/telegram")
        async def telegram_webhook(request: Request) -> Response:
            return await receive(
                request, Channel.TELEGRAM,
                lambda body: tg_channel.verify_webhook(request.headers),
            )

    return app
