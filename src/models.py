"""Shared Pydantic data models for the salon booking bot."""

from __future__ import annotations

from datetime import UTC, date, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# --- Enums ---


class Channel(str, Enum):
    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"


class AuditEventType(str, Enum):
    SIGNATURE_FAILURE = "signature_failure"
    RATE_LIMITED = "rate_limited"
    DUPLICATE_DELIVERY = "duplicate_delivery"
    MESSAGE_HANDLED = "message_handled"
    HANDLER_FAILURE = "handler_failure"
    SEND_FAILURE = "send_failure"


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


# --- Conversation Models ---


class CommandOption(BaseModel):
    """One selectable action presented to a sender."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    label: str
    callback_data: str = Field(min_length=1)


class Button(BaseModel):
    """A reply button: either an action token or an external link."""

    model_config = ConfigDict(frozen=True)

    label: str
    callback_data: str | None = None
    url: str | None = None

    @model_validator(mode="after")
    def _exactly_one_target(self) -> Button:
        if (self.callback_data is None) == (self.url is None):
            raise ValueError("Button needs exactly one of callback_data or url")
        return self


class Media(BaseModel):
    model_config = ConfigDict(frozen=True)

    media_id: str
    mime_type: str = "application/octet-stream"
    data: bytes = b""


class InboundMessage(BaseModel):
    """A channel-independent view of one inbound message."""

    model_config = ConfigDict(frozen=True)

    channel: Channel
    sender_id: str = Field(min_length=1)
    text: str
    selected_option_id: str | None = None
    media: Media | None = None
    message_id: str | None = None
    sent_at: int | None = None  # epoch seconds, as reported by the provider
    display_name: str | None = None
    callback_query_id: str | None = None


class BookingDraft(BaseModel):
    """In-progress booking or appointment change for one sender."""

    model_config = ConfigDict(frozen=True)

    service_ids: tuple[str, ...] = ()
    service_names: tuple[str, ...] = ()
    stylist_id: str | None = None
    stylist_name: str | None = None
    date: str | None = None  # YYYY-MM-DD
    time: str | None = None  # HH:MM
    customer_name: str | None = None
    customer_email: str | None = None
    pending_action: str | None = None  # "cancel" | "reschedule"
    appointment_id: str | None = None
    last_service_booked: str | None = None
    last_stylist_booked: str | None = None

    def merge(self, **changes: object) -> BookingDraft:
        return self.model_copy(update=changes)

    def is_empty(self) -> bool:
        return self == BookingDraft()


class CommandResponse(BaseModel):
    """Channel-agnostic reply produced by a command handler."""

    text: str
    buttons: list[list[Button]] = Field(default_factory=list)
    is_markup: bool = True
    draft: BookingDraft | None = None


class ConversationContext(BaseModel):
    """Short-lived conversational state for one (channel, sender) pair."""

    model_config = ConfigDict(frozen=True)

    channel: Channel
    sender_id: str
    pending_options: tuple[CommandOption, ...] = ()
    draft: BookingDraft | None = None
    created_at: float
    expires_at: float

    @model_validator(mode="after")
    def _unique_options(self) -> ConversationContext:
        ids = [o.id for o in self.pending_options]
        callbacks = [o.callback_data for o in self.pending_options]
        if len(set(ids)) != len(ids):
            raise ValueError("Option ids must be unique")
        if len(set(callbacks)) != len(callbacks):
            raise ValueError("Option callback_data values must be unique")
        return self

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class HistoryTurn(BaseModel):
    """One side of an exchange, as shown to the intent engine."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


# --- Booking Models ---


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    email: str | None = None
    whatsapp_phone: str | None = None
    telegram_id: str | None = None


class Service(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: float = Field(ge=0)
    duration: int = Field(gt=0)  # minutes
    description: str = ""
    active: bool = True


class Stylist(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    bio: str = ""
    active: bool = True


class Appointment(BaseModel):
    id: str
    date: date
    time: str
    services: list[Service]
    stylist: Stylist | None = None
    customer_name: str
    customer_email: str
    status: str = "booked"  # "booked" | "cancelled"

    @property
    def total_price(self) -> float:
        return sum(s.price for s in self.services)

    @property
    def total_duration(self) -> int:
        return sum(s.duration for s in self.services)


# --- Audit Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    channel: Channel | None = None
    sender_id: str | None = None
    action: str
    result: str  # "success" | "failure" | "blocked" | "ignored"
    risk_level: RiskLevel
    details: dict[str, object] | None = None
