"""Command and callback handlers.

Every handler takes the sender's user record (None when the sender is not
linked to an account) and the current booking draft, and returns a
channel-agnostic CommandResponse. Handlers do not catch BackendError; the
orchestrator converts it into an apology at the handler boundary.

Callback tokens handled here:
    book_service_<id>, select_stylist_<id|any>, view_apt_<id>,
    cancel_apt_<id>, confirm_removal_<id>, cancel_removal,
    reschedule_apt_<id>, confirm_new_time, cancel_new_time,
    confirm_booking, cancel_booking, quick_rebook, go_back, cmd_*
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime, time

from src.booking.backend import BookingBackend
from src.config import BusinessInfo
from src.conversation.commands import Command, CommandRegistry
from src.models import Appointment, BookingDraft, Button, CommandResponse, Service, User

logger = logging.getLogger(__name__)

CommandHandler = Callable[[User | None, BookingDraft | None], Awaitable[CommandResponse]]
CallbackHandler = Callable[[str, User | None, BookingDraft | None], Awaitable[CommandResponse]]

_POPULAR_SERVICE_COUNT = 4
_DATE_TIME_EXAMPLE = 'For example: "October 20th at 2:00 PM"'


def _money(amount: float) -> str:
    return f"${amount:.0f}" if float(amount).is_integer() else f"${amount:.2f}"


def _display_date(day: date) -> str:
    return f"{day.strftime('%a, %b')} {day.day}"


def _clock(value: time) -> str:
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{value.hour % 12 or 12}:{value.minute:02d} {suffix}"


def _book_button(label: str = "📅 Book Appointment") -> Button:
    return Button(label=label, callback_data=Command.BOOK.value)


def _menu_button() -> Button:
    return Button(label="🔙 Back to Menu", callback_data="go_back")


def _reset(draft: BookingDraft | None) -> BookingDraft:
    """Drop in-progress fields but remember the last booking for quick rebook."""
    if draft is None:
        return BookingDraft()
    return BookingDraft(
        last_service_booked=draft.last_service_booked,
        last_stylist_booked=draft.last_stylist_booked,
    )


def _fresh_draft(user: User | None, draft: BookingDraft | None) -> BookingDraft:
    return _reset(draft).merge(
        customer_name=user.name if user else None,
        customer_email=user.email if user else None,
    )


def _email_required(action: str) -> CommandResponse:
    return CommandResponse(
        text=(
            f"📧 To {action}, I'll need your email address.\n\n"
            "Please send me your email, and I'll show you your upcoming appointments."
        ),
    )


def _appointment_summary(index: int, appointment: Appointment) -> str:
    services = ", ".join(s.name for s in appointment.services)
    return (
        f"*{index}. {_display_date(appointment.date)} at {appointment.time}*\n"
        f"   {services} - {_money(appointment.total_price)}\n"
    )


def _appointment_button(prefix: str, emoji: str, appointment: Appointment) -> Button:
    first_service = appointment.services[0].name[:20] if appointment.services else "Appointment"
    return Button(
        label=f"{emoji} {_display_date(appointment.date)} at {appointment.time} - {first_service}",
        callback_data=f"{prefix}{appointment.id}",
    )


class CommandHandlers:
    """Business actions for the salon bot."""

    def __init__(
        self,
        backend: BookingBackend,
        business: BusinessInfo | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._backend = backend
        self._business = business or BusinessInfo()
        self._now = now
        self._commands: dict[Command, CommandHandler] = {
            Command.START: self.start,
            Command.SERVICES: self.services,
            Command.APPOINTMENTS: self.appointments,
            Command.BOOK: self.book,
            Command.CANCEL: self.cancel,
            Command.RESCHEDULE: self.reschedule,
            Command.HOURS: self.hours,
            Command.HELP: self.help,
        }
        self._exact_callbacks: dict[str, CommandHandler] = {
            "confirm_booking": self._confirm_booking,
            "cancel_booking": self._cancel_booking,
            "confirm_new_time": self._confirm_new_time,
            "cancel_new_time": self._keep_appointment,
            "cancel_removal": self._keep_appointment,
            "quick_rebook": self._quick_rebook,
            "go_back": self.start,
        }
        self._prefix_callbacks: tuple[tuple[str, CallbackHandler], ...] = (
            ("book_service_", self._book_service),
            ("select_stylist_", self._select_stylist),
            ("view_apt_", self._view_appointment),
            ("cancel_apt_", self._confirm_cancel_prompt),
            ("confirm_removal_", self._remove_appointment),
            ("reschedule_apt_", self._reschedule_prompt),
        )

    # --- Dispatch ---

    async def handle(
        self, command: Command, user: User | None, draft: BookingDraft | None = None,
    ) -> CommandResponse:
        return await self._commands[command](user, draft)

    def knows_callback(self, token: str) -> bool:
        if CommandRegistry.from_callback(token) is not None or token in self._exact_callbacks:
            return True
        return any(token.startswith(p) and len(token) > len(p) for p, _ in self._prefix_callbacks)

    async def handle_callback(
        self, token: str, user: User | None, draft: BookingDraft | None = None,
    ) -> CommandResponse:
        """Run the handler for a button's callback token."""
        command = CommandRegistry.from_callback(token)
        if command is not None:
            return await self.handle(command, user, draft)

        exact = self._exact_callbacks.get(token)
        if exact is not None:
            return await exact(user, draft)

        for prefix, handler in self._prefix_callbacks:
            if token.startswith(prefix) and len(token) > len(prefix):
                return await handler(token[len(prefix):], user, draft)

        logger.info("Unrecognized callback token: %s", token)
        return CommandResponse(text="I don't recognize that command. Type /help to see what I can do!")

    # --- Commands ---

    async def start(self, user: User | None, draft: BookingDraft | None = None) -> CommandResponse:
        name = user.name if user and user.name else "there"
        text = (
            f"👋 *Welcome to {self._business.name}, {name}!*\n\n"
            "I'm your personal booking assistant. I can help you with:\n\n"
            "✂️ *Book appointments* - Schedule your next visit\n"
            "📅 *View bookings* - See your upcoming appointments\n"
            "💇 *Browse services* - Check our services and prices\n"
            "🔄 *Manage bookings* - Cancel or reschedule\n\n"
            "What would you like to do today?"
        )
        buttons = [
            [_book_button(), Button(label="📋 My Appointments", callback_data=Command.APPOINTMENTS.value)],
            [
                Button(label="✂️ View Services", callback_data=Command.SERVICES.value),
                Button(label="🕐 Business Hours", callback_data=Command.HOURS.value),
            ],
            [
                Button(label="❌ Cancel Booking", callback_data=Command.CANCEL.value),
                Button(label="🔄 Reschedule", callback_data=Command.RESCHEDULE.value),
            ],
            [Button(label="❓ Help", callback_data=Command.HELP.value)],
        ]
        return CommandResponse(text=text, buttons=buttons)

    async def services(self, user: User | None, draft: BookingDraft | None = None) -> CommandResponse:
        services = await self._backend.list_services()
        if not services:
            return CommandResponse(
                text="✂️ *Our Services*\n\nOur service menu is being updated. Please check back soon.",
                buttons=[[_menu_button()]],
            )

        lines = ["✂️ *Our Services*\n", "Select a service to book:\n"]
        for service in services:
            entry = f"*{service.name}* - {_money(service.price)}\n⏱️ {service.duration} minutes"
            if service.description:
                entry += f"\n{service.description}"
            lines.append(entry + "\n")
        buttons = [
            [Button(
                label=f"📅 Book {service.name} - {_money(service.price)}",
                callback_data=f"book_service_{service.id}",
            )]
            for service in services
        ]
        return CommandResponse(text="\n".join(lines).rstrip(), buttons=buttons)

    async def appointments(
        self, user: User | None, draft: BookingDraft | None = None,
    ) -> CommandResponse:
        if user is None or not user.email:
            return CommandResponse(
                text=(
                    "📧 I need your email address to look up your appointments.\n\n"
                    'Please send me your email, or say "My appointments for your-email@example.com"'
                ),
            )

        appointments = await self._backend.find_appointments_by_email(user.email)
        if not appointments:
            return CommandResponse(
                text=(
                    "📅 *No Upcoming Appointments*\n\n"
                    "You don't have any scheduled appointments yet.\n\nWould you like to book one?"
                ),
                buttons=[[_book_button()]],
            )

        text = "📅 *Your Upcoming Appointments*\n\n"
        for index, appointment in enumerate(appointments, start=1):
            text += _appointment_summary(index, appointment)
            if appointment.stylist:
                text += f"   👤 Stylist: {appointment.stylist.name}\n"
            text += "\n"

        buttons = [[_appointment_button("view_apt_", "📅", a)] for a in appointments]
        if draft and draft.last_service_booked:
            buttons.append([Button(label="⭐ Book Again", callback_data="quick_rebook")])
        buttons.append([_book_button("📅 Book New Service")])
        return CommandResponse(text=text.rstrip(), buttons=buttons)

    async def book(self, user: User | None, draft: BookingDraft | None = None) -> CommandResponse:
        services = await self._backend.list_services()
        text = (
            "📅 *Let's Book Your Appointment!*\n\n"
            "To book, I'll need:\n"
            "1️⃣ The service you'd like\n"
            "2️⃣ Your preferred date and time\n"
            "3️⃣ Your name and email\n\n"
            "Pick one of our popular services below or browse the full menu first."
        )
        buttons = [
            [Button(label=f"✂️ {s.name} - {_money(s.price)}", callback_data=f"book_service_{s.id}")]
            for s in services[:_POPULAR_SERVICE_COUNT]
        ]
        buttons.append([Button(label="💆 View All Services", callback_data=Command.SERVICES.value)])
        return CommandResponse(text=text, buttons=buttons, draft=_fresh_draft(user, draft))

    async def cancel(self, user: User | None, draft: BookingDraft | None = None) -> CommandResponse:
        return await self._appointment_action_list(
            user, "cancel", "❌ *Cancel Appointment*", "cancel_apt_", "❌",
        )

    async def reschedule(
        self, user: User | None, draft: BookingDraft | None = None,
    ) -> CommandResponse:
        return await self._appointment_action_list(
            user, "reschedule", "🔄 *Reschedule Appointment*", "reschedule_apt_", "🔄",
        )

    async def _appointment_action_list(
        self, user: User | None, verb: str, heading: str, prefix: str, emoji: str,
    ) -> CommandResponse:
        if user is None or not user.email:
            return _email_required(f"{verb} an appointment")

        appointments = await self._backend.find_appointments_by_email(user.email)
        if not appointments:
            return CommandResponse(
                text=f"You don't have any upcoming appointments to {verb}.\n\nWould you like to book one?",
                buttons=[[_book_button()]],
            )

        text = f"{heading}\n\nSelect the appointment you'd like to {verb}:\n\n"
        text += "\n".join(_appointment_summary(i, a) for i, a in enumerate(appointments, start=1))
        buttons = [[_appointment_button(prefix, emoji, a)] for a in appointments]
        buttons.append([_menu_button()])
        return CommandResponse(text=text.rstrip(), buttons=buttons)

    async def hours(self, user: User | None, draft: BookingDraft | None = None) -> CommandResponse:
        info = self._business
        now = self._now()
        weekday = now.weekday()  # Monday == 0
        closing = info.closing_time if weekday < 5 else info.saturday_closing
        is_open = weekday < 6 and info.opening_time <= now.time() < closing
        status = "🟢 *Open Now*" if is_open else "🔴 *Closed*"

        text = (
            f"🕐 *Business Hours*\n\n*{info.name}*\n\n{status}\n\n"
            f"📍 {info.address}\n📞 {info.phone}\n\n"
            "*Opening Hours:*\n"
            f"Monday - Friday: {_clock(info.opening_time)} - {_clock(info.closing_time)}\n"
            f"Saturday: {_clock(info.opening_time)} - {_clock(info.saturday_closing)}\n"
            "Sunday: Closed\n\n"
            "*Walk-ins welcome* or book your appointment in advance!"
        )
        phone_digits = "".join(c for c in info.phone if c.isdigit() or c == "+")
        buttons = [
            [
                Button(label="📞 Call Us", url=f"tel:{phone_digits}"),
                Button(
                    label="📍 Get Directions",
                    url=f"https://maps.google.com/?q={info.address.replace(' ', '+')}",
                ),
            ],
            [_book_button()],
        ]
        return CommandResponse(text=text, buttons=buttons)

    async def help(self, user: User | None, draft: BookingDraft | None = None) -> CommandResponse:
        text = (
            "❓ *How Can I Help?*\n\n"
            "*Quick Commands:*\n"
            "/start - Main menu\n"
            "/book - Book an appointment\n"
            "/appointments - View your bookings\n"
            "/services - Browse our services\n"
            "/cancel - Cancel a booking\n"
            "/reschedule - Reschedule a booking\n"
            "/hours - Business hours & location\n"
            "/help - Show this help message\n\n"
            "*Natural Language:*\n"
            "You can also just talk to me naturally! Try:\n"
            '• "What services do you offer?"\n'
            '• "Book a haircut for tomorrow"\n'
            '• "Show my appointments"\n'
            '• "Cancel my booking on Jan 15th"'
        )
        buttons = [
            [_book_button("📅 Book Now"), Button(label="📋 My Appointments", callback_data=Command.APPOINTMENTS.value)],
            [Button(label="✂️ Services", callback_data=Command.SERVICES.value)],
        ]
        return CommandResponse(text=text, buttons=buttons)

    # --- Booking flow callbacks ---

    async def _find_service(self, service_id: str) -> Service | None:
        services = await self._backend.list_services()
        return next((s for s in services if s.id == service_id), None)

    async def _book_service(
        self, service_id: str, user: User | None, draft: BookingDraft | None,
    ) -> CommandResponse:
        service = await self._find_service(service_id)
        if service is None:
            return CommandResponse(
                text="Sorry, I couldn't find that service. Please pick another one.",
                buttons=[[Button(label="✂️ View Services", callback_data=Command.SERVICES.value)]],
            )

        new_draft = _fresh_draft(user, draft).merge(
            service_ids=(service.id,), service_names=(service.name,),
        )
        needs_contact = "" if user and user.email else "\n\nI'll also need your name and email."
        stylists = await self._backend.list_stylists()
        if not stylists:
            return CommandResponse(
                text=(
                    f"Great choice! You've selected:\n\n✂️ *{service.name}*\n"
                    f"💰 {_money(service.price)}\n⏱️ {service.duration} minutes\n\n"
                    f"Now, please tell me your preferred date and time.\n\n{_DATE_TIME_EXAMPLE}"
                    f"{needs_contact}"
                ),
                draft=new_draft,
            )

        buttons = [
            [Button(
                label=f"👤 {s.name}" + (f" - {s.bio[:30]}" if s.bio else ""),
                callback_data=f"select_stylist_{s.id}",
            )]
            for s in stylists
        ]
        buttons.append([Button(label="🎲 No Preference", callback_data="select_stylist_any")])
        return CommandResponse(
            text=(
                f"✅ *{service.name}* selected\n"
                f"💰 {_money(service.price)} | ⏱️ {service.duration} minutes\n\n"
                "Who would you like as your stylist?"
            ),
            buttons=buttons,
            draft=new_draft,
        )

    async def _select_stylist(
        self, selection: str, user: User | None, draft: BookingDraft | None,
    ) -> CommandResponse:
        current = draft or _fresh_draft(user, None)
        stylist_id: str | None = None
        stylist_name = "any available stylist"
        if selection != "any":
            stylists = await self._backend.list_stylists()
            chosen = next((s for s in stylists if s.id == selection), None)
            if chosen is not None:
                stylist_id = chosen.id
                stylist_name = f"*{chosen.name}*"

        service_name = current.service_names[0] if current.service_names else "your service"
        needs_contact = "" if current.customer_email else "\n\nI'll also need your name and email."
        return CommandResponse(
            text=(
                f"✅ *{service_name}* with {stylist_name}\n\n"
                f"What date and time would you prefer?\n\n{_DATE_TIME_EXAMPLE}{needs_contact}"
            ),
            draft=current.merge(
                stylist_id=stylist_id,
                stylist_name=stylist_name.strip("*") if stylist_id else None,
            ),
        )

    async def _confirm_booking(
        self, user: User | None, draft: BookingDraft | None,
    ) -> CommandResponse:
        if draft is None or not draft.service_ids or not draft.date or not draft.time:
            return CommandResponse(
                text=(
                    "I'm sorry, I seem to have lost the booking details. "
                    "Let's start over. What service would you like to book?"
                ),
                buttons=[[_book_button()]],
                draft=_reset(draft),
            )

        complete = draft.merge(
            customer_name=draft.customer_name or (user.name if user else None),
            customer_email=draft.customer_email or (user.email if user else None),
        )
        if not complete.customer_name or not complete.customer_email:
            return CommandResponse(
                text="I need your name and email to complete the booking. Please provide them.",
                draft=complete,
            )

        appointment = await self._backend.book_appointment(complete)
        services = "\n".join(f"✂️ {s.name}" for s in appointment.services)
        return CommandResponse(
            text=(
                f"✅ *Booking Confirmed!*\n\n{services}\n"
                f"📅 {_display_date(appointment.date)}\n🕐 {appointment.time}\n"
                f"💰 {_money(appointment.total_price)}\n\n"
                f"You'll receive a confirmation email at {appointment.customer_email} shortly.\n\n"
                f"Thank you for choosing {self._business.name}!"
            ),
            buttons=[[
                Button(label="📋 View My Appointments", callback_data=Command.APPOINTMENTS.value),
                _book_button("📅 Book Another"),
            ]],
            draft=BookingDraft(
                last_service_booked=complete.service_ids[0],
                last_stylist_booked=complete.stylist_id,
            ),
        )

    async def _cancel_booking(
        self, user: User | None, draft: BookingDraft | None,
    ) -> CommandResponse:
        return CommandResponse(
            text=(
                "No problem! What would you like to change? You can tell me:\n"
                "• Different date/time\n• Different service\n• Start over"
            ),
            buttons=[[_book_button("📅 Start Over")], [_menu_button()]],
            draft=_reset(draft),
        )

    async def _quick_rebook(
        self, user: User | None, draft: BookingDraft | None,
    ) -> CommandResponse:
        if draft is None or not draft.last_service_booked:
            return CommandResponse(
                text="I couldn't find your previous booking. Let's book a new appointment!",
                buttons=[[_book_button()]],
            )

        service = await self._find_service(draft.last_service_booked)
        if service is None:
            return CommandResponse(
                text="That service is no longer offered. Let's pick a new one!",
                buttons=[[_book_button()]],
                draft=_reset(draft),
            )

        stylist_text = "any available stylist"
        stylist_name: str | None = None
        if draft.last_stylist_booked:
            stylists = await self._backend.list_stylists()
            stylist = next((s for s in stylists if s.id == draft.last_stylist_booked), None)
            if stylist is not None:
                stylist_name = stylist.name
                stylist_text = f"*{stylist.name}*"

        return CommandResponse(
            text=(
                "⭐ *Quick Rebooking*\n\nGreat! You'd like to book:\n"
                f"✂️ {service.name}\n👤 With: {stylist_text}\n\n"
                f"What date and time would you like?\n\n{_DATE_TIME_EXAMPLE}"
            ),
            draft=_fresh_draft(user, draft).merge(
                service_ids=(service.id,),
                service_names=(service.name,),
                stylist_id=draft.last_stylist_booked if stylist_name else None,
                stylist_name=stylist_name,
            ),
        )

    # --- Appointment management callbacks ---

    async def _owned_appointment(
        self, appointment_id: str, user: User | None,
    ) -> Appointment | None:
        """The appointment, if it is booked and belongs to the sender."""
        if user is None or not user.email:
            return None
        appointment = await self._backend.get_appointment(appointment_id)
        if appointment is None or appointment.status != "booked":
            return None
        if appointment.customer_email.lower() != user.email.lower():
            logger.warning("Sender %s asked for appointment %s they do not own", user.id, appointment_id)
            return None
        return appointment

    @staticmethod
    def _appointment_missing() -> CommandResponse:
        return CommandResponse(
            text="Sorry, I couldn't find that appointment. It may have been cancelled or completed.",
            buttons=[[Button(label="📋 View Appointments", callback_data=Command.APPOINTMENTS.value)]],
        )

    async def _view_appointment(
        self, appointment_id: str, user: User | None, draft: BookingDraft | None,
    ) -> CommandResponse:
        appointment = await self._owned_appointment(appointment_id, user)
        if appointment is None:
            return self._appointment_missing()

        services = ", ".join(s.name for s in appointment.services)
        stylist = f"👤 Stylist: {appointment.stylist.name}\n" if appointment.stylist else ""
        return CommandResponse(
            text=(
                f"📅 *Appointment Details*\n\n✂️ {services}\n"
                f"📅 {_display_date(appointment.date)}\n🕐 {appointment.time}\n{stylist}"
                f"⏱️ {appointment.total_duration} minutes\n💰 {_money(appointment.total_price)}\n\n"
                "What would you like to do?"
            ),
            buttons=[
                [
                    Button(label="🔄 Reschedule", callback_data=f"reschedule_apt_{appointment.id}"),
                    Button(label="❌ Cancel", callback_data=f"cancel_apt_{appointment.id}"),
                ],
                [_menu_button()],
            ],
        )

    async def _confirm_cancel_prompt(
        self, appointment_id: str, user: User | None, draft: BookingDraft | None,
    ) -> CommandResponse:
        appointment = await self._owned_appointment(appointment_id, user)
        if appointment is None:
            return self._appointment_missing()
        return CommandResponse(
            text=(
                "⚠️ Are you sure you want to cancel this appointment?\n\n"
                f"{_display_date(appointment.date)} at {appointment.time}\n\n"
                "This action cannot be undone."
            ),
            buttons=[[
                Button(label="✅ Yes, Cancel It", callback_data=f"confirm_removal_{appointment.id}"),
                Button(label="❌ No, Keep It", callback_data="cancel_removal"),
            ]],
            draft=_reset(draft).merge(
                pending_action="cancel", appointment_id=appointment.id,
            ),
        )

    async def _remove_appointment(
        self, appointment_id: str, user: User | None, draft: BookingDraft | None,
    ) -> CommandResponse:
        appointment = await self._owned_appointment(appointment_id, user)
        if appointment is None:
            return self._appointment_missing()
        cancelled = await self._backend.cancel_appointment(appointment.id)
        logger.info("Appointment %s cancelled via chat", cancelled.id)
        return CommandResponse(
            text=(
                "❌ *Appointment Cancelled*\n\n"
                f"Your appointment on {_display_date(cancelled.date)} at {cancelled.time} "
                "has been cancelled."
            ),
            buttons=[[
                _book_button("📅 Book New Appointment"),
                Button(label="📋 My Appointments", callback_data=Command.APPOINTMENTS.value),
            ]],
            draft=_reset(draft),
        )

    async def _keep_appointment(
        self, user: User | None, draft: BookingDraft | None,
    ) -> CommandResponse:
        return CommandResponse(
            text="👍 No changes made. Your appointment is still booked.",
            buttons=[[Button(label="📋 My Appointments", callback_data=Command.APPOINTMENTS.value)]],
            draft=_reset(draft),
        )

    async def _reschedule_prompt(
        self, appointment_id: str, user: User | None, draft: BookingDraft | None,
    ) -> CommandResponse:
        appointment = await self._owned_appointment(appointment_id, user)
        if appointment is None:
            return self._appointment_missing()
        return CommandResponse(
            text=(
                "🔄 *Reschedule Appointment*\n\n"
                f"Currently: {_display_date(appointment.date)} at {appointment.time}\n\n"
                'Please tell me your preferred new date and time.\n\nFor example: "January 20th at 3:00 PM"'
            ),
            buttons=[[_menu_button()]],
            draft=_reset(draft).merge(
                pending_action="reschedule", appointment_id=appointment.id,
            ),
        )

    async def _confirm_new_time(
        self, user: User | None, draft: BookingDraft | None,
    ) -> CommandResponse:
        if (
            draft is None
            or draft.pending_action != "reschedule"
            or not draft.appointment_id
            or not draft.date
            or not draft.time
        ):
            return CommandResponse(
                text="I lost track of which appointment to move. Let's start again.",
                buttons=[[Button(label="🔄 Reschedule", callback_data=Command.RESCHEDULE.value)]],
                draft=_reset(draft),
            )

        appointment = await self._owned_appointment(draft.appointment_id, user)
        if appointment is None:
            return self._appointment_missing()
        moved = await self._backend.reschedule_appointment(appointment.id, draft.date, draft.time)
        return CommandResponse(
            text=(
                "✅ *Appointment Rescheduled!*\n\n"
                f"📅 {_display_date(moved.date)}\n🕐 {moved.time}\n\nSee you then!"
            ),
            buttons=[[Button(label="📋 My Appointments", callback_data=Command.APPOINTMENTS.value)]],
            draft=_reset(draft),
        )
