from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AddOnIn(BaseModel):
    name: str
    price: Decimal = Decimal(0)
    quantity: int = 1


class AdditionalGuestIn(BaseModel):
    firstName: str
    lastName: str = ""
    age: Optional[int] = None
    gender: Optional[str] = None
    validId: Optional[str] = None  # base64 or data URL, uploaded before the booking is written


class BookingCreate(BaseModel):
    booking_id: str
    user_id: Optional[str] = None  # omitted for guest checkout

    guest_first_name: str
    guest_last_name: str
    guest_age: Optional[int] = None
    guest_gender: Optional[str] = None
    guest_email: str  # plain str to allow .local and other dev domains
    guest_phone: str
    facebook_link: Optional[str] = None
    valid_id: Optional[str] = None
    additional_guests: List[AdditionalGuestIn] = []

    room_name: Optional[str] = None
    check_in_date: date
    check_out_date: date
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    adults: int = Field(default=1, ge=0)
    children: int = Field(default=0, ge=0)
    infants: int = Field(default=0, ge=0)

    payment_method: Optional[str] = None
    payment_proof: Optional[str] = None
    room_rate: Decimal = Decimal(0)
    security_deposit: Decimal = Decimal(0)
    add_ons_total: Decimal = Decimal(0)
    total_amount: Decimal = Decimal(0)
    down_payment: Decimal = Decimal(0)
    remaining_balance: Optional[Decimal] = None  # defaults to total_amount - down_payment
    add_ons: List[AddOnIn] = []

    # Ignored: new bookings always start as pending
    status: Optional[str] = None


class BookingUpdate(BaseModel):
    """PATCH /bookings body: a status change and/or administrative corrections."""

    id: str
    status: Optional[str] = None
    rejection_reason: Optional[str] = None

    guest_first_name: Optional[str] = None
    guest_last_name: Optional[str] = None
    guest_age: Optional[int] = None
    guest_gender: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    facebook_link: Optional[str] = None
    room_name: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    adults: Optional[int] = None
    children: Optional[int] = None
    infants: Optional[int] = None
    payment_method: Optional[str] = None
    room_rate: Optional[Decimal] = None
    security_deposit: Optional[Decimal] = None
    add_ons_total: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    down_payment: Optional[Decimal] = None
    remaining_balance: Optional[Decimal] = None
    add_ons: Optional[List[AddOnIn]] = None
    additional_guests: Optional[List[AdditionalGuestIn]] = None
    payment_proof: Optional[str] = None
    valid_id: Optional[str] = None


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    booking_id: str
    user_id: Optional[str] = None
    guest_first_name: str
    guest_last_name: str
    guest_age: Optional[int] = None
    guest_gender: Optional[str] = None
    guest_email: str
    guest_phone: str
    facebook_link: Optional[str] = None
    valid_id_url: Optional[str] = None
    additional_guests: list = []
    room_name: Optional[str] = None
    check_in_date: date
    check_in_time: Optional[str] = None
    check_out_date: date
    check_out_time: Optional[str] = None
    adults: int
    children: int
    infants: int
    payment_method: Optional[str] = None
    payment_proof_url: Optional[str] = None
    room_rate: float
    security_deposit: float
    add_ons_total: float
    total_amount: float
    down_payment: float
    remaining_balance: float
    add_ons: list = []
    status: str
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class BookingDetailOut(BookingOut):
    tower: Optional[str] = None
    room_images: List[str] = []


class HavenBookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    booking_id: str
    room_name: Optional[str] = None
    check_in_date: date
    check_out_date: date
    status: str
