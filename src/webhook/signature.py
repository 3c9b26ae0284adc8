"""Webhook origin checks.

WhatsApp signs the raw request body with the app secret (HMAC-SHA256, sent
as ``X-Hub-Signature-256: sha256=<hex>``). Telegram echoes a shared secret
token in ``X-Telegram-Bot-Api-Secret-Token``. Both comparisons are
constant-time via hmac.compare_digest.
"""

from __future__ import annotations

import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-hub-signature-256"
TELEGRAM_SECRET_HEADER = "x-telegram-bot-api-secret-token"

_SIGNATURE_PREFIX = "sha256="


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Return the ``sha256=<hex>`` signature of a raw body."""
    digest = hmac.new(secret.encode(), raw_body, hashlib.sha256).hexdigest()
    return f"{_SIGNATURE_PREFIX}{digest}"


def verify_signature(
    raw_body: bytes,
    signature_header: str | None,
    secret: str | None,
) -> bool:
    """Verify a body signature against the signing secret.

    With no secret configured verification is skipped (open mode) and a
    warning is logged. With a secret, a missing header fails.
    """
    if not secret:
        logger.warning("No webhook signing secret configured; skipping signature check")
        return True
    if not signature_header:
        return False

    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(signature_header.encode(), expected.encode())


def derive_telegram_secret(bot_token: str) -> str:
    """Default secret token for a bot: SHA-256 hex of the bot token."""
    return hashlib.sha256(bot_token.encode()).hexdigest()


def verify_secret_token(header_value: str | None, secret_token: str | None) -> bool:
    """Compare the echoed secret token; open mode when none is configured."""
    if not secret_token:
        logger.warning("No Telegram secret token configured; skipping webhook check")
        return True
    if not header_value:
        return False
    return hmac.compare_digest(header_value.encode(), secret_token.encode())
