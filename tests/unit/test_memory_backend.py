"""Tests for the catalog-seeded in-memory booking backend."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from src.booking.backend import BackendError
from src.booking.memory import InMemoryBookingBackend, load_catalog
from src.models import BookingDraft, Channel
from tests.conftest import make_appointment, make_backend, make_service


class TestLookups:
    @pytest.mark.asyncio
    async def test_find_user_by_channel_id(self) -> None:
        backend = make_backend()
        assert (await backend.find_user(Channel.TELEGRAM, "100200300")).name == "Dana"
        assert (await backend.find_user(Channel.WHATSAPP, "15551230001")).name == "Dana"
        assert await backend.find_user(Channel.WHATSAPP, "100200300") is None

    @pytest.mark.asyncio
    async def test_inactive_services_hidden(self) -> None:
        backend = make_backend(services=[make_service(), make_service(id="old", active=False)])
        assert [s.id for s in await backend.list_services()] == ["haircut"]

    @pytest.mark.asyncio
    async def test_appointments_upcoming_booked_only(self) -> None:
        backend = make_backend(appointments=[
            make_appointment(id="past", date=date(2026, 2, 1)),
            make_appointment(id="later", date=date(2026, 4, 1)),
            make_appointment(id="soon", date=date(2026, 3, 3)),
            make_appointment(id="gone", date=date(2026, 3, 4), status="cancelled"),
            make_appointment(id="other", customer_email="x@example.com"),
        ])
        found = await backend.find_appointments_by_email("DANA@example.com")
        assert [a.id for a in found] == ["soon", "later"]


class TestMutations:
    @pytest.mark.asyncio
    async def test_book_appointment(self) -> None:
        backend = make_backend()
        draft = BookingDraft(
            service_ids=("haircut", "color"), stylist_id="amy",
            date="2026-03-20", time="09:30",
            customer_name="Dana", customer_email="dana@example.com",
        )
        appointment = await backend.book_appointment(draft)
        assert appointment.total_price == 140.5
        assert appointment.stylist.name == "Amy"
        assert await backend.get_appointment(appointment.id) == appointment

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "draft",
        [
            BookingDraft(service_ids=("haircut",), date="2026-03-20", time="09:30"),
            BookingDraft(customer_name="D", customer_email="d@x", date="2026-03-20", time="9"),
            BookingDraft(
                service_ids=("nope",), customer_name="D", customer_email="d@x",
                date="2026-03-20", time="09:30",
            ),
            BookingDraft(
                service_ids=("haircut",), customer_name="D", customer_email="d@x",
                date="20/03/2026", time="09:30",
            ),
        ],
    )
    async def test_book_rejects_invalid_drafts(self, draft: BookingDraft) -> None:
        with pytest.raises(BackendError):
            await make_backend().book_appointment(draft)

    @pytest.mark.asyncio
    async def test_cancel_and_reschedule(self) -> None:
        backend = make_backend()
        moved = await backend.reschedule_appointment("apt1", "2026-03-11", "16:00")
        assert moved.date == date(2026, 3, 11)
        cancelled = await backend.cancel_appointment("apt1")
        assert cancelled.status == "cancelled"
        with pytest.raises(BackendError):
            await backend.cancel_appointment("apt1")

    @pytest.mark.asyncio
    async def test_unknown_appointment(self) -> None:
        with pytest.raises(BackendError):
            await make_backend().reschedule_appointment("nope", "2026-03-11", "16:00")


class TestCatalog:
    def test_shipped_catalog_loads(self, config_dir: Path) -> None:
        backend = InMemoryBookingBackend.from_catalog(str(config_dir / "catalog.json"))
        assert backend._services
        assert backend._appointments["a1b2c3d4"].stylist.id == "marco"

    def test_catalog_must_be_object(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([]))
        with pytest.raises(ValueError):
            load_catalog(str(path))
