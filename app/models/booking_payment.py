from sqlalchemy import String, DateTime, Numeric, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from decimal import Decimal
from app.db.session import Base

PAYMENT_STATUSES = ("pending", "approved", "rejected", "refunded")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class BookingPayment(Base):
    __tablename__ = "booking_payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(36), ForeignKey("bookings.id", ondelete="CASCADE"), index=True)

    payment_method: Mapped[str | None] = mapped_column(String(40), nullable=True)
    payment_proof_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    room_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    add_ons_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    down_payment: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    remaining_balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)  # cumulative, grows with collections

    payment_status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # see PAYMENT_STATUSES
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String(120), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)
