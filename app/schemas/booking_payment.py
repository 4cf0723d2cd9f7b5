from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class BookingPaymentCreate(BaseModel):
    booking_id: str  # bookings.id
    payment_method: Optional[str] = None
    payment_proof: Optional[str] = None  # base64 or data URL
    room_rate: Decimal = Decimal(0)
    add_ons_total: Decimal = Decimal(0)
    total_amount: Decimal = Decimal(0)
    down_payment: Decimal = Decimal(0)
    remaining_balance: Optional[Decimal] = None  # defaults to total_amount - down_payment
    amount_paid: Optional[Decimal] = None  # defaults to down_payment


class BookingPaymentUpdate(BaseModel):
    """Sparse patch. Only fields present in the request body are applied."""

    id: Optional[str] = None
    booking_id: Optional[str] = None  # resolve the booking's latest payment when no id is given

    payment_status: Optional[str] = None
    rejection_reason: Optional[str] = None
    reviewed_by: Optional[str] = None
    payment_method: Optional[str] = None
    payment_proof: Optional[str] = None
    room_rate: Optional[Decimal] = None
    add_ons_total: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    down_payment: Optional[Decimal] = None
    remaining_balance: Optional[Decimal] = None
    amount_paid: Optional[Decimal] = None
    collect_amount: Optional[Decimal] = None


class BookingPaymentOut(BaseModel):
    """Payment row joined with its booking reference and main guest contact."""

    id: str
    booking_fk: str
    booking_id: Optional[str] = None  # human-readable booking reference
    booking_status: Optional[str] = None
    guest_first_name: Optional[str] = None
    guest_last_name: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None

    payment_method: Optional[str] = None
    payment_proof_url: Optional[str] = None
    room_rate: float
    add_ons_total: float
    total_amount: float
    down_payment: float
    remaining_balance: float
    amount_paid: float
    payment_status: str
    rejection_reason: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


def payment_out(payment, booking=None) -> BookingPaymentOut:
    return BookingPaymentOut(
        id=payment.id,
        booking_fk=payment.booking_id,
        booking_id=booking.booking_id if booking else None,
        booking_status=booking.status if booking else None,
        guest_first_name=booking.guest_first_name if booking else None,
        guest_last_name=booking.guest_last_name if booking else None,
        guest_email=booking.guest_email if booking else None,
        guest_phone=booking.guest_phone if booking else None,
        payment_method=payment.payment_method,
        payment_proof_url=payment.payment_proof_url,
        room_rate=payment.room_rate or 0,
        add_ons_total=payment.add_ons_total or 0,
        total_amount=payment.total_amount or 0,
        down_payment=payment.down_payment or 0,
        remaining_balance=payment.remaining_balance or 0,
        amount_paid=payment.amount_paid or 0,
        payment_status=payment.payment_status,
        rejection_reason=payment.rejection_reason,
        reviewed_by=payment.reviewed_by,
        reviewed_at=payment.reviewed_at,
        created_at=payment.created_at,
        updated_at=payment.updated_at,
    )
