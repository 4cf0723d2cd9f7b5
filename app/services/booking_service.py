import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import (
    BookingError,
    ConflictError,
    InvalidStatusError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.models.booking import Booking, BOOKING_STATUSES
from app.models.booking_payment import BookingPayment
from app.models.haven import Haven, HavenImage
from app.schemas.booking import BookingCreate, BookingOut, BookingUpdate
from app.services.audit_service import log_audit
from app.services.image_store import ImageStore, PAYMENT_PROOFS_FOLDER, VALID_IDS_FOLDER
from app.services.notification_service import (
    BOOKING_APPROVED,
    BOOKING_CHECKED_IN,
    BOOKING_COMPLETED,
    BOOKING_PENDING,
    BookingNotice,
    notice_from_booking,
)

logger = logging.getLogger(__name__)

Notify = Callable[[BookingNotice], None]

# cancelled is reachable from every state; re-writing the current status is a no-op
TRANSITIONS = {
    "pending": {"approved", "rejected"},
    "approved": {"confirmed", "checked-in"},
    "confirmed": {"checked-in"},
    "checked-in": {"completed"},
}

REQUIRED_GUEST_FIELDS = ("guest_first_name", "guest_last_name", "guest_email", "guest_phone")
NULLABLE_CORRECTIONS = {"guest_age", "guest_gender", "facebook_link", "room_name", "check_in_time", "check_out_time", "payment_method"}
INACTIVE_STATUSES = ("cancelled", "rejected")
UPCOMING_STATUSES = ("pending", "approved", "confirmed")


def can_transition(current: str, new: str) -> bool:
    return new == current or new == "cancelled" or new in TRANSITIONS.get(current, ())


def send_notice(notify: Notify | None, notice: BookingNotice) -> None:
    """Hand a notice to the dispatcher. Never raises: the booking is already committed."""
    if notify is None:
        return
    try:
        notify(notice)
    except Exception:
        logger.exception("Could not schedule %s notification for %s", notice.event, notice.booking_ref)


def _additional_guests(guests, image_store: ImageStore) -> list[dict]:
    out = []
    for g in guests:
        out.append({
            "firstName": g.firstName,
            "lastName": g.lastName,
            "age": g.age,
            "gender": g.gender,
            "validIdUrl": image_store.upload(g.validId, VALID_IDS_FOLDER).url if g.validId else None,
        })
    return out


def _add_ons(items) -> list[dict]:
    return [{"name": a.name, "price": float(a.price), "quantity": a.quantity} for a in items]


def _check_guest_and_stay(b) -> None:
    """Main guest contact must be present and the stay must not end before it starts."""
    for name in REQUIRED_GUEST_FIELDS:
        if not (getattr(b, name) or "").strip():
            raise ValidationError(f"{name} is required")
    if b.check_out_date < b.check_in_date:
        raise ValidationError("check_out_date must not be before check_in_date")


def latest_payment(db: Session, booking_pk: str) -> BookingPayment | None:
    return (
        db.query(BookingPayment)
        .filter(BookingPayment.booking_id == booking_pk)
        .order_by(BookingPayment.created_at.desc())
        .first()
    )


def create_booking(db: Session, data: BookingCreate, image_store: ImageStore, notify: Notify | None = None) -> Booking:
    ref = (data.booking_id or "").strip()
    if not ref:
        raise ValidationError("booking_id is required")
    _check_guest_and_stay(data)
    if db.query(Booking.id).filter(Booking.booking_id == ref).first():
        raise ConflictError(f"Booking {ref} already exists")

    # Uploads happen before the write; a failed upload aborts the booking
    payment_proof_url = image_store.upload(data.payment_proof, PAYMENT_PROOFS_FOLDER).url if data.payment_proof else None
    valid_id_url = image_store.upload(data.valid_id, VALID_IDS_FOLDER).url if data.valid_id else None
    additional = _additional_guests(data.additional_guests, image_store)

    remaining = data.remaining_balance
    if remaining is None:
        remaining = data.total_amount - data.down_payment

    booking = Booking(
        id=str(uuid.uuid4()),
        booking_id=ref,
        user_id=data.user_id or None,
        guest_first_name=data.guest_first_name.strip(),
        guest_last_name=data.guest_last_name.strip(),
        guest_age=data.guest_age,
        guest_gender=data.guest_gender,
        guest_email=data.guest_email.strip(),
        guest_phone=data.guest_phone.strip(),
        facebook_link=data.facebook_link,
        valid_id_url=valid_id_url,
        additional_guests=additional,
        room_name=data.room_name,
        check_in_date=data.check_in_date,
        check_in_time=data.check_in_time,
        check_out_date=data.check_out_date,
        check_out_time=data.check_out_time,
        adults=data.adults,
        children=data.children,
        infants=data.infants,
        payment_method=data.payment_method,
        payment_proof_url=payment_proof_url,
        room_rate=data.room_rate,
        security_deposit=data.security_deposit,
        add_ons_total=data.add_ons_total,
        total_amount=data.total_amount,
        down_payment=data.down_payment,
        remaining_balance=remaining,
        add_ons=_add_ons(data.add_ons),
        status="pending",
    )
    db.add(booking)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(f"Booking {ref} already exists") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Creating booking %s failed", ref)
        raise PersistenceError("Failed to create booking") from e
    db.refresh(booking)
    logger.info("Booking %s created for %s (pending approval)", booking.booking_id, booking.guest_email)

    send_notice(notify, notice_from_booking(BOOKING_PENDING, booking))
    return booking


def get_booking(db: Session, booking_pk: str) -> Booking:
    b = db.get(Booking, booking_pk)
    if not b:
        raise NotFoundError("Booking not found")
    return b


def search_booking(db: Session, ref: str) -> Booking:
    if not (ref or "").strip():
        raise ValidationError("Booking ID is required")
    b = db.query(Booking).filter(Booking.booking_id == ref.strip()).first()
    if not b:
        raise NotFoundError("Booking not found")
    return b


def room_gallery(db: Session, room_name: str | None) -> tuple[str | None, list[str]]:
    """(tower, image urls) of the haven a booking's room_name refers to."""
    if not room_name:
        return None, []
    haven = db.query(Haven).filter(Haven.haven_name == room_name.strip()).first()
    if not haven:
        return None, []
    images = (
        db.query(HavenImage.image_url)
        .filter(HavenImage.haven_id == haven.id)
        .order_by(HavenImage.display_order.asc())
        .all()
    )
    return haven.tower, [url for (url,) in images]


def list_bookings(db: Session, status: str | None = None) -> list[Booking]:
    q = db.query(Booking)
    if status:
        q = q.filter(Booking.status == status)
    return q.order_by(Booking.created_at.desc()).all()


def list_user_bookings(db: Session, user_id: str, scope: str | None = None, today: date | None = None) -> list[Booking]:
    today = today or date.today()
    q = db.query(Booking).filter(Booking.user_id == user_id)
    if scope and scope != "all":
        if scope == "upcoming":
            q = q.filter(Booking.status.in_(UPCOMING_STATUSES), Booking.check_in_date >= today)
        elif scope == "past":
            q = q.filter((Booking.status == "completed") | (Booking.check_out_date < today))
        elif scope == "cancelled":
            q = q.filter(Booking.status == "cancelled")
        else:
            q = q.filter(Booking.status == scope)
    return q.order_by(Booking.created_at.desc()).all()


def list_haven_bookings(db: Session, haven_id: str) -> list[Booking]:
    """Active bookings of a haven, for availability checks."""
    haven = db.get(Haven, haven_id)
    if not haven:
        raise NotFoundError("Haven not found")
    room_name = haven.haven_name.strip()
    return (
        db.query(Booking)
        .filter(func.trim(Booking.room_name) == room_name, Booking.status.notin_(INACTIVE_STATUSES))
        .order_by(Booking.check_in_date.asc())
        .all()
    )


def _status_notice(db: Session, status: str, booking: Booking) -> BookingNotice | None:
    if status == "approved":
        return notice_from_booking(BOOKING_APPROVED, booking)
    if status == "checked-in":
        # the check-in email shows what has been paid so far
        return notice_from_booking(BOOKING_CHECKED_IN, booking, latest_payment(db, booking.id))
    if status == "completed":
        return notice_from_booking(BOOKING_COMPLETED, booking, latest_payment(db, booking.id))
    return None


def update_booking(db: Session, data: BookingUpdate, image_store: ImageStore, actor: str, notify: Notify | None = None) -> Booking:
    """Status transition and/or administrative corrections of one booking."""
    fields = data.model_dump(exclude_unset=True)
    booking_pk = fields.pop("id")
    status = fields.pop("status", None)
    reason_given = "rejection_reason" in fields
    reason = fields.pop("rejection_reason", None)
    payment_proof = fields.pop("payment_proof", None)
    valid_id = fields.pop("valid_id", None)
    fields = {k: v for k, v in fields.items() if v is not None or k in NULLABLE_CORRECTIONS}

    if status is not None and status not in BOOKING_STATUSES:
        raise InvalidStatusError(f"Invalid status: {status}")
    if status == "rejected" and not (reason or "").strip():
        raise ValidationError("rejection_reason is required when rejecting a booking")
    if status is None and not fields and not reason_given and not payment_proof and not valid_id:
        raise ValidationError("No fields provided to update")

    try:
        booking = db.execute(select(Booking).where(Booking.id == booking_pk).with_for_update()).scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking not found")
        previous = booking.status
        if status is not None:
            if not can_transition(previous, status):
                raise InvalidTransitionError(f"Cannot change booking status from {previous} to {status}")
            booking.status = status
        if status == "rejected" or reason_given:
            booking.rejection_reason = reason
        elif status is not None:
            booking.rejection_reason = None

        if "add_ons" in fields:
            fields["add_ons"] = _add_ons(data.add_ons)
        guests = fields.pop("additional_guests", None)
        for k, v in fields.items():
            setattr(booking, k, v)
        _check_guest_and_stay(booking)

        # Uploads only once the booking exists and the change is valid
        if guests is not None:
            booking.additional_guests = _additional_guests(data.additional_guests, image_store)
            fields["additional_guests"] = guests
        if payment_proof:
            booking.payment_proof_url = image_store.upload(payment_proof, PAYMENT_PROOFS_FOLDER).url
        if valid_id:
            booking.valid_id_url = image_store.upload(valid_id, VALID_IDS_FOLDER).url

        if ("total_amount" in fields or "down_payment" in fields) and "remaining_balance" not in fields:
            booking.remaining_balance = Decimal(booking.total_amount or 0) - Decimal(booking.down_payment or 0)
        booking.updated_at = datetime.now(timezone.utc)

        changed = status is not None and status != previous
        log_audit(db, actor, "booking.status_changed" if changed else "booking.updated", "booking", booking.booking_id,
                  {"from": previous, "to": booking.status, "fields": sorted(fields), "rejection_reason": booking.rejection_reason})
        db.commit()
    except BookingError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Updating booking %s failed", booking_pk)
        raise PersistenceError("Failed to update booking") from e
    db.refresh(booking)
    logger.info("Booking %s updated by %s (%s -> %s)", booking.booking_id, actor, previous, booking.status)

    if changed:
        try:
            notice = _status_notice(db, status, booking)
        except Exception:
            logger.exception("Could not build %s notification for %s", status, booking.booking_id)
            notice = None
        if notice is not None:
            send_notice(notify, notice)
    return booking


def delete_booking(db: Session, booking_pk: str, actor: str) -> BookingOut:
    b = db.get(Booking, booking_pk)
    if not b:
        raise NotFoundError("Booking not found")
    snapshot = BookingOut.model_validate(b)
    try:
        db.delete(b)
        log_audit(db, actor, "booking.deleted", "booking", snapshot.booking_id, {"status": snapshot.status})
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Deleting booking %s failed", booking_pk)
        raise PersistenceError("Failed to delete booking") from e
    logger.info("Booking %s deleted by %s", snapshot.booking_id, actor)
    return snapshot
