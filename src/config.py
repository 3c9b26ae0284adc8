"""Runtime configuration read from environment variables."""

from __future__ import annotations

import os
from datetime import time

from pydantic import BaseModel, ConfigDict, SecretStr


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_time(name: str, default: time) -> time:
    raw = os.environ.get(name)
    if not raw:
        return default
    hour, _, minute = raw.strip().partition(":")
    return time(int(hour), int(minute or 0))


def _env_secret(name: str) -> SecretStr | None:
    raw = os.environ.get(name)
    return SecretStr(raw) if raw else None


class BusinessInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = "Luxe Cuts Hair Salon"
    address: str = "123 Main St, Your City, ST 12345"
    phone: str = "(555) 123-4567"
    opening_time: time = time(9, 0)
    closing_time: time = time(18, 0)
    saturday_closing: time = time(15, 0)

    @classmethod
    def from_env(cls) -> BusinessInfo:
        defaults = cls()
        return cls(
            name=os.environ.get("BUSINESS_NAME", defaults.name),
            address=os.environ.get("BUSINESS_ADDRESS", defaults.address),
            phone=os.environ.get("BUSINESS_PHONE", defaults.phone),
            opening_time=_env_time("OPENING_TIME", defaults.opening_time),
            closing_time=_env_time("CLOSING_TIME", defaults.closing_time),
            saturday_closing=_env_time("SATURDAY_CLOSING", defaults.saturday_closing),
        )


class WhatsAppSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    verify_token: SecretStr
    access_token: SecretStr
    phone_number_id: str
    app_secret: SecretStr | None = None


class Settings(BaseModel):
    """Service configuration. Secrets are held as SecretStr and never logged."""

    model_config = ConfigDict(frozen=True)

    whatsapp: WhatsAppSettings | None = None
    telegram_bot_token: SecretStr | None = None
    telegram_webhook_secret: SecretStr | None = None
    rate_limit_max_requests: int = 10
    rate_limit_window_seconds: int = 60
    rate_limit_block_seconds: int = 300
    context_ttl_seconds: int = 30 * 60
    catalog_path: str = "config/catalog.json"
    intent_engine_url: str | None = None
    intent_engine_token: SecretStr | None = None
    audit_log_path: str | None = None
    replay_db_path: str = ":memory:"
    business: BusinessInfo = BusinessInfo()

    @classmethod
    def from_env(cls) -> Settings:
        whatsapp: WhatsAppSettings | None = None
        verify_token = _env_secret("WHATSAPP_VERIFY_TOKEN")
        access_token = _env_secret("WHATSAPP_ACCESS_TOKEN")
        phone_number_id = os.environ.get("WHATSAPP_PHONE_NUMBER_ID")
        if verify_token and access_token and phone_number_id:
            whatsapp = WhatsAppSettings(
                verify_token=verify_token,
                access_token=access_token,
                phone_number_id=phone_number_id,
                app_secret=_env_secret("WHATSAPP_APP_SECRET"),
            )

        return cls(
            whatsapp=whatsapp,
            telegram_bot_token=_env_secret("TELEGRAM_BOT_TOKEN"),
            telegram_webhook_secret=_env_secret("TELEGRAM_WEBHOOK_SECRET"),
            rate_limit_max_requests=_env_int("RATE_LIMIT_MAX_REQUESTS", 10),
            rate_limit_window_seconds=_env_int("RATE_LIMIT_WINDOW_SECONDS", 60),
            rate_limit_block_seconds=_env_int("RATE_LIMIT_BLOCK_SECONDS", 300),
            context_ttl_seconds=_env_int("CONTEXT_TTL_SECONDS", 30 * 60),
            catalog_path=os.environ.get("CATALOG_PATH", "config/catalog.json"),
            intent_engine_url=os.environ.get("INTENT_ENGINE_URL") or None,
            intent_engine_token=_env_secret("INTENT_ENGINE_TOKEN"),
            audit_log_path=os.environ.get("AUDIT_LOG_PATH") or None,
            replay_db_path=os.environ.get("REPLAY_DB_PATH", ":memory:"),
            business=BusinessInfo.from_env(),
        )
