"""Booking data access interface used by the command handlers."""

from __future__ import annotations

from typing import Protocol

from src.models import Appointment, BookingDraft, Channel, Service, Stylist, User


class BackendError(Exception):
    """A lookup or mutation against the booking store failed."""


class BookingBackend(Protocol):
    async def find_user(self, channel: Channel, sender_id: str) -> User | None: ...

    async def list_services(self) -> list[Service]: ...

    async def list_stylists(self) -> list[Stylist]: ...

    async def find_appointments_by_email(self, email: str) -> list[Appointment]:
        """Upcoming, non-cancelled appointments, soonest first."""
        ...

    async def get_appointment(self, appointment_id: str) -> Appointment | None: ...

    async def book_appointment(self, draft: BookingDraft) -> Appointment: ...

    async def cancel_appointment(self, appointment_id: str) -> Appointment: ...

    async def reschedule_appointment(
        self, appointment_id: str, date: str, time: str,
    ) -> Appointment: ...
