from sqlalchemy import String, Integer, DateTime, Date, Numeric, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, date, timezone
from decimal import Decimal
from app.db.session import Base

BOOKING_STATUSES = ("pending", "approved", "rejected", "confirmed", "checked-in", "completed", "cancelled")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)  # human-readable reference

    user_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)  # NULL for guest checkout

    # Main guest snapshot, captured at booking time
    guest_first_name: Mapped[str] = mapped_column(String(100))
    guest_last_name: Mapped[str] = mapped_column(String(100))
    guest_age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    guest_gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    guest_email: Mapped[str] = mapped_column(String(320), index=True)
    guest_phone: Mapped[str] = mapped_column(String(40))
    facebook_link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    valid_id_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    additional_guests: Mapped[list] = mapped_column(JSON, default=list)  # [{firstName, lastName, age, gender, validIdUrl}]

    room_name: Mapped[str | None] = mapped_column(String(200), index=True, nullable=True)
    check_in_date: Mapped[date] = mapped_column(Date, index=True)
    check_in_time: Mapped[str | None] = mapped_column(String(10), nullable=True)  # HH:MM
    check_out_date: Mapped[date] = mapped_column(Date)
    check_out_time: Mapped[str | None] = mapped_column(String(10), nullable=True)
    adults: Mapped[int] = mapped_column(Integer, default=1)
    children: Mapped[int] = mapped_column(Integer, default=0)
    infants: Mapped[int] = mapped_column(Integer, default=0)

    payment_method: Mapped[str | None] = mapped_column(String(40), nullable=True)  # gcash, bank_transfer, cash, ...
    payment_proof_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    room_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    security_deposit: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    add_ons_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    down_payment: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    remaining_balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    add_ons: Mapped[list] = mapped_column(JSON, default=list)  # [{name, price, quantity}]

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # see BOOKING_STATUSES
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)
