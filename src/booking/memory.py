"""In-memory booking backend seeded from a JSON catalog file."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

from src.booking.backend import BackendError
from src.models import Appointment, BookingDraft, Channel, Service, Stylist, User

logger = logging.getLogger(__name__)


def load_catalog(path: str) -> dict[str, Any]:
    """Load a catalog JSON object with services/stylists/users/appointments lists."""
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError(f"Catalog {path} must be a JSON object")
    return data


class InMemoryBookingBackend:
    """Dict-backed BookingBackend for development and tests."""

    def __init__(
        self,
        services: list[Service] | None = None,
        stylists: list[Stylist] | None = None,
        users: list[User] | None = None,
        appointments: list[Appointment] | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._services = {s.id: s for s in services or []}
        self._stylists = {s.id: s for s in stylists or []}
        self._users = list(users or [])
        self._appointments = {a.id: a for a in appointments or []}
        self._today = today

    @classmethod
    def from_catalog(cls, path: str) -> InMemoryBookingBackend:
        data = load_catalog(path)
        services = [Service(**s) for s in data.get("services", [])]
        by_id = {s.id: s for s in services}
        stylists = [Stylist(**s) for s in data.get("stylists", [])]
        stylists_by_id = {s.id: s for s in stylists}
        appointments = []
        for raw in data.get("appointments", []):
            raw = dict(raw)
            raw["services"] = [by_id[sid] for sid in raw.pop("service_ids", [])]
            stylist_id = raw.pop("stylist_id", None)
            raw["stylist"] = stylists_by_id.get(stylist_id) if stylist_id else None
            appointments.append(Appointment(**raw))
        return cls(
            services=services,
            stylists=stylists,
            users=[User(**u) for u in data.get("users", [])],
            appointments=appointments,
        )

    async def find_user(self, channel: Channel, sender_id: str) -> User | None:
        for user in self._users:
            linked = user.whatsapp_phone if channel is Channel.WHATSAPP else user.telegram_id
            if linked == sender_id:
                return user
        return None

    async def list_services(self) -> list[Service]:
        return [s for s in self._services.values() if s.active]

    async def list_stylists(self) -> list[Stylist]:
        return [s for s in self._stylists.values() if s.active]

    async def find_appointments_by_email(self, email: str) -> list[Appointment]:
        today = self._today()
        found = [
            a for a in self._appointments.values()
            if a.customer_email.lower() == email.lower()
            and a.status == "booked"
            and a.date >= today
        ]
        return sorted(found, key=lambda a: (a.date, a.time))

    async def get_appointment(self, appointment_id: str) -> Appointment | None:
        return self._appointments.get(appointment_id)

    async def book_appointment(self, draft: BookingDraft) -> Appointment:
        if not draft.customer_name or not draft.customer_email:
            raise BackendError("Customer name and email are required")
        if not draft.date or not draft.time:
            raise BackendError("Date and time are required")
        try:
            services = [self._services[sid] for sid in draft.service_ids]
        except KeyError as exc:
            raise BackendError(f"Unknown service {exc.args[0]}") from exc
        if not services:
            raise BackendError("At least one service is required")

        appointment = Appointment(
            id=uuid.uuid4().hex[:8],
            date=self._parse_date(draft.date),
            time=draft.time,
            services=services,
            stylist=self._stylists.get(draft.stylist_id) if draft.stylist_id else None,
            customer_name=draft.customer_name,
            customer_email=draft.customer_email,
        )
        self._appointments[appointment.id] = appointment
        logger.info("Booked appointment %s for %s", appointment.id, appointment.date)
        return appointment

    async def cancel_appointment(self, appointment_id: str) -> Appointment:
        appointment = self._require(appointment_id)
        cancelled = appointment.model_copy(update={"status": "cancelled"})
        self._appointments[appointment_id] = cancelled
        return cancelled

    async def reschedule_appointment(
        self, appointment_id: str, date: str, time: str,
    ) -> Appointment:
        appointment = self._require(appointment_id)
        moved = appointment.model_copy(update={"date": self._parse_date(date), "time": time})
        self._appointments[appointment_id] = moved
        return moved

    def _require(self, appointment_id: str) -> Appointment:
        appointment = self._appointments.get(appointment_id)
        if appointment is None or appointment.status != "booked":
            raise BackendError(f"Appointment {appointment_id} not found")
        return appointment

    @staticmethod
    def _parse_date(value: str) -> date:
        try:
            return date.fromisoformat(value)
        except ValueError as exc:
            raise BackendError(f"Invalid date: {value}") from exc
