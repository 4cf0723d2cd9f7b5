"""Guest emails triggered by booking lifecycle events.

Notices are built by the managers after their transaction commits and handed
to ``NotificationDispatcher.dispatch`` as FastAPI background tasks. Dispatch
never raises: a failed email is logged and left in ``email_logs`` for the
Celery retry job.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from app.core.config import settings
from app.services.email_service import queue_email

logger = logging.getLogger(__name__)

BOOKING_PENDING = "booking_pending"
BOOKING_APPROVED = "booking_approved"
BOOKING_CHECKED_IN = "booking_checked_in"
BOOKING_COMPLETED = "booking_completed"


@dataclass
class BookingNotice:
    event: str
    booking_ref: str
    email: str
    first_name: str
    last_name: str = ""
    room_name: str = ""
    check_in_date: date | None = None
    check_in_time: str = ""
    check_out_date: date | None = None
    check_out_time: str = ""
    adults: int = 0
    children: int = 0
    infants: int = 0
    payment_method: str = ""
    total_amount: float = 0
    down_payment: float = 0
    remaining_balance: float = 0
    amount_paid: float = 0
    extras: dict = field(default_factory=dict)

    @property
    def guests(self) -> str:
        return f"{self.adults} Adults, {self.children} Children, {self.infants} Infants"


def notice_from_booking(event: str, booking, payment=None) -> BookingNotice:
    """Snapshot a booking (and optionally its payment) into a notice."""
    total = payment.total_amount if payment is not None else booking.total_amount
    down = payment.down_payment if payment is not None else booking.down_payment
    remaining = payment.remaining_balance if payment is not None else booking.remaining_balance
    paid = payment.amount_paid if payment is not None else booking.down_payment
    return BookingNotice(
        event=event,
        booking_ref=booking.booking_id,
        email=booking.guest_email,
        first_name=booking.guest_first_name,
        last_name=booking.guest_last_name or "",
        room_name=booking.room_name or "",
        check_in_date=booking.check_in_date,
        check_in_time=booking.check_in_time or "",
        check_out_date=booking.check_out_date,
        check_out_time=booking.check_out_time or "",
        adults=booking.adults or 0,
        children=booking.children or 0,
        infants=booking.infants or 0,
        payment_method=(payment.payment_method if payment is not None and payment.payment_method else booking.payment_method) or "",
        total_amount=float(total or 0),
        down_payment=float(down or 0),
        remaining_balance=float(remaining or 0),
        amount_paid=float(paid or 0),
    )


def _fmt_date(d: date | None) -> str:
    return d.strftime("%B %d, %Y") if d else "-"


def _money(v: float) -> str:
    return f"PHP {v:,.2f}"


def _stay_lines(n: BookingNotice) -> list[str]:
    return [
        f"Booking ID: {n.booking_ref}",
        f"Room: {n.room_name or '-'}",
        f"Check-in:  {_fmt_date(n.check_in_date)} {n.check_in_time}".rstrip(),
        f"Check-out: {_fmt_date(n.check_out_date)} {n.check_out_time}".rstrip(),
        f"Guests: {n.guests}",
    ]


def render_email(n: BookingNotice) -> tuple[str, str]:
    """Return (subject, plain-text body) for a notice."""
    greeting = f"Hi {n.first_name},"
    stay = _stay_lines(n)
    if n.event == BOOKING_PENDING:
        subject = f"Booking Pending Approval - {n.booking_ref}"
        lines = [
            greeting, "",
            "We received your booking request. Our team is reviewing your payment and will confirm shortly.", "",
            *stay,
            f"Payment method: {n.payment_method or '-'}",
            f"Down payment: {_money(n.down_payment)}",
            f"Total amount: {_money(n.total_amount)}",
        ]
    elif n.event == BOOKING_APPROVED:
        subject = f"Booking Confirmation - {n.booking_ref}"
        lines = [
            greeting, "",
            "Your booking has been approved. We look forward to hosting you!", "",
            *stay,
            f"Payment method: {n.payment_method or '-'}",
            f"Down payment: {_money(n.down_payment)}",
            f"Total amount: {_money(n.total_amount)}",
            f"Remaining balance (due at check-in): {_money(n.remaining_balance)}",
        ]
    elif n.event == BOOKING_CHECKED_IN:
        subject = f"Welcome! You're Checked In - {n.booking_ref}"
        lines = [
            greeting, "",
            "You are now checked in. Enjoy your stay!", "",
            *stay,
            f"Amount paid: {_money(n.amount_paid)}",
            f"Remaining balance: {_money(n.remaining_balance)}",
        ]
    elif n.event == BOOKING_COMPLETED:
        subject = f"Thank You For Your Stay! - {n.booking_ref}"
        lines = [
            greeting, "",
            "Thank you for staying with us. We hope to see you again soon.", "",
            *stay,
            f"Total amount: {_money(n.total_amount)}",
            f"Amount paid: {_money(n.amount_paid)}",
            f"Remaining balance: {_money(n.remaining_balance)}",
        ]
    else:
        raise ValueError(f"unknown notification event {n.event!r}")
    if settings.CLIENT_BASE_URL:
        lines += ["", f"Manage your booking: {settings.CLIENT_BASE_URL.rstrip('/')}/my-bookings"]
    return subject, "\n".join(lines)


class NotificationDispatcher:
    def __init__(self, session_factory: Callable, sender: Callable | None = None, enabled: bool = True):
        self.session_factory = session_factory
        self.sender = sender
        self.enabled = enabled

    def dispatch(self, notice: BookingNotice) -> None:
        if not self.enabled:
            logger.info("Notifications disabled; skipping %s for %s", notice.event, notice.booking_ref)
            return
        if not notice.email:
            logger.warning("No guest email on %s; skipping %s", notice.booking_ref, notice.event)
            return
        try:
            subject, body = render_email(notice)
            db = self.session_factory()
            try:
                queue_email(db, notice.email, subject, body, related_booking_ref=notice.booking_ref,
                            event=notice.event, sender=self.sender)
            finally:
                db.close()
            logger.info("Queued %s email for %s", notice.event, notice.booking_ref)
        except Exception:
            logger.exception("Failed to dispatch %s email for %s", notice.event, notice.booking_ref)
