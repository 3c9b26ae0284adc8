"""Shared test fixtures for the salon booking bot."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from src.audit.logger import AuditLogger
from src.booking.memory import InMemoryBookingBackend
from src.config import BusinessInfo
from src.models import (
    Appointment,
    AuditEvent,
    AuditEventType,
    Channel,
    InboundMessage,
    RiskLevel,
    Service,
    Stylist,
    User,
)

TODAY = date(2026, 3, 2)  # a Monday


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def config_dir() -> Path:
    return Path(__file__).parent.parent / "config"


@pytest.fixture
def business() -> BusinessInfo:
    return BusinessInfo(name="Test Salon", address="1 High St, Springfield", phone="(555) 000-1111")


@pytest.fixture
def backend() -> InMemoryBookingBackend:
    return make_backend()


# --- Factory functions for test data ---


def make_audit_event(**kwargs: Any) -> AuditEvent:
    """Factory for AuditEvent with sensible defaults."""
    defaults: dict[str, Any] = {
        "event_type": AuditEventType.SIGNATURE_FAILURE,
        "action": "test_action",
        "result": "failure",
        "risk_level": RiskLevel.HIGH,
    }
    defaults.update(kwargs)
    return AuditEvent(**defaults)


def make_message(**kwargs: Any) -> InboundMessage:
    """Factory for InboundMessage with sensible defaults."""
    defaults: dict[str, Any] = {
        "channel": Channel.TELEGRAM,
        "sender_id": "100200300",
        "text": "hello",
    }
    defaults.update(kwargs)
    return InboundMessage(**defaults)


def make_service(**kwargs: Any) -> Service:
    defaults: dict[str, Any] = {
        "id": "haircut",
        "name": "Haircut",
        "price": 45,
        "duration": 45,
        "description": "Wash and cut",
    }
    defaults.update(kwargs)
    return Service(**defaults)


def make_user(**kwargs: Any) -> User:
    defaults: dict[str, Any] = {
        "id": "u1",
        "name": "Dana",
        "email": "dana@example.com",
        "whatsapp_phone": "15551230001",
        "telegram_id": "100200300",
    }
    defaults.update(kwargs)
    return User(**defaults)


def make_appointment(**kwargs: Any) -> Appointment:
    defaults: dict[str, Any] = {
        "id": "apt1",
        "date": date(2026, 3, 10),
        "time": "10:00",
        "services": [make_service()],
        "customer_name": "Dana",
        "customer_email": "dana@example.com",
    }
    defaults.update(kwargs)
    return Appointment(**defaults)


def make_backend(**kwargs: Any) -> InMemoryBookingBackend:
    """Backend with two services, one stylist, one linked user and one appointment."""
    defaults: dict[str, Any] = {
        "services": [
            make_service(),
            make_service(id="color", name="Color", price=95.5, duration=90, description=""),
        ],
        "stylists": [Stylist(id="amy", name="Amy", bio="Color specialist")],
        "users": [make_user()],
        "appointments": [make_appointment()],
        "today": lambda: TODAY,
    }
    defaults.update(kwargs)
    return InMemoryBookingBackend(**defaults)
