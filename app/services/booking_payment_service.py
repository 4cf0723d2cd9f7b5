"""Payment review and reconciliation.

An approved or rejected payment decides its booking: the booking status is
mirrored in the same transaction as the payment write.
"""
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import BookingError, NotFoundError, PersistenceError, ValidationError
from app.models.booking import Booking
from app.models.booking_payment import BookingPayment, PAYMENT_STATUSES
from app.schemas.booking_payment import (
    BookingPaymentCreate,
    BookingPaymentOut,
    BookingPaymentUpdate,
    payment_out,
)
from app.services.audit_service import log_audit
from app.services.booking_service import Notify, send_notice
from app.services.image_store import ImageStore, PAYMENT_PROOFS_FOLDER
from app.services.notification_service import BOOKING_APPROVED, notice_from_booking

logger = logging.getLogger(__name__)

REVIEW_ACTIONS = {"approved": "APPROVE_PAYMENT", "rejected": "REJECT_PAYMENT"}


def _joined(db: Session, payment: BookingPayment) -> BookingPaymentOut:
    return payment_out(payment, db.get(Booking, payment.booking_id))


def create_booking_payment(db: Session, data: BookingPaymentCreate, image_store: ImageStore) -> BookingPaymentOut:
    if not (data.booking_id or "").strip():
        raise ValidationError("booking_id is required")
    booking = db.get(Booking, data.booking_id)
    if not booking:
        raise NotFoundError("Booking not found")

    proof_url = image_store.upload(data.payment_proof, PAYMENT_PROOFS_FOLDER).url if data.payment_proof else None
    remaining = data.remaining_balance
    if remaining is None:
        remaining = data.total_amount - data.down_payment

    p = BookingPayment(
        id=str(uuid.uuid4()),
        booking_id=booking.id,
        payment_method=data.payment_method,
        payment_proof_url=proof_url,
        room_rate=data.room_rate,
        add_ons_total=data.add_ons_total,
        total_amount=data.total_amount,
        down_payment=data.down_payment,
        remaining_balance=remaining,
        amount_paid=data.amount_paid if data.amount_paid is not None else data.down_payment,
        payment_status="pending",
    )
    db.add(p)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Creating payment for booking %s failed", booking.booking_id)
        raise PersistenceError("Failed to create booking payment") from e
    db.refresh(p)
    logger.info("Payment %s recorded for booking %s", p.id, booking.booking_id)
    return payment_out(p, booking)


def get_booking_payment(db: Session, payment_id: str) -> BookingPaymentOut:
    p = db.get(BookingPayment, payment_id)
    if not p:
        raise NotFoundError("Booking payment not found")
    return _joined(db, p)


def list_booking_payments(db: Session, status: str | None = None, q: str | None = None) -> list[BookingPaymentOut]:
    query = db.query(BookingPayment, Booking).outerjoin(Booking, Booking.id == BookingPayment.booking_id)
    if status:
        query = query.filter(BookingPayment.payment_status == status)
    if q and q.strip():
        term = f"%{q.strip()}%"
        query = query.filter(or_(
            Booking.booking_id.ilike(term),
            (Booking.guest_first_name + " " + Booking.guest_last_name).ilike(term),
        ))
    rows = query.order_by(BookingPayment.created_at.desc()).all()
    return [payment_out(p, b) for p, b in rows]


def _resolve_payment_id(db: Session, data: BookingPaymentUpdate) -> str:
    if data.id:
        return data.id
    if data.booking_id:
        pid = (
            db.query(BookingPayment.id)
            .filter(BookingPayment.booking_id == data.booking_id)
            .order_by(BookingPayment.created_at.desc())
            .limit(1)
            .scalar()
        )
        if not pid:
            raise NotFoundError("Booking payment not found")
        return pid
    raise ValidationError("Payment id or booking_id is required")


def _mirror_onto_booking(db: Session, booking_pk: str, status: str, reason: str | None) -> None:
    result = db.execute(
        update(Booking)
        .where(Booking.id == booking_pk)
        .values(
            status=status,
            rejection_reason=reason if status == "rejected" else None,
            updated_at=datetime.now(timezone.utc),
        )
    )
    if result.rowcount == 0:
        raise NotFoundError("Booking not found for payment")


def _collect(p: BookingPayment, collect: Decimal, down_payment: Decimal, values: dict) -> None:
    remaining = Decimal(values.get("remaining_balance", p.remaining_balance) or 0)
    paid = Decimal(values.get("amount_paid", p.amount_paid) or 0)
    if collect <= 0:
        raise ValidationError("collect_amount must be positive")
    if collect < remaining and collect != down_payment:
        raise ValidationError("Insufficient amount")
    applied = min(collect, remaining)
    values["amount_paid"] = paid + applied
    values["remaining_balance"] = remaining - applied
    if p.payment_status == "pending" and "payment_status" not in values:
        values["payment_status"] = "approved"


def update_booking_payment(db: Session, data: BookingPaymentUpdate, image_store: ImageStore, notify: Notify | None = None) -> BookingPaymentOut:
    patch = data.model_dump(exclude_unset=True, exclude={"id", "booking_id"})
    patch = {k: v for k, v in patch.items() if v is not None or k in ("rejection_reason", "reviewed_by")}
    if not patch:
        raise ValidationError("No fields provided to update")
    if "payment_status" in patch and patch["payment_status"] not in PAYMENT_STATUSES:
        raise ValidationError(f"Invalid payment status: {patch['payment_status']}")

    payment_id = _resolve_payment_id(db, data)
    proof = patch.pop("payment_proof", None)
    collect = patch.pop("collect_amount", None)
    if proof:
        patch["payment_proof_url"] = image_store.upload(proof, PAYMENT_PROOFS_FOLDER).url

    try:
        p = db.execute(select(BookingPayment).where(BookingPayment.id == payment_id).with_for_update()).scalar_one_or_none()
        if not p:
            raise NotFoundError("Booking payment not found")
        previous = p.payment_status

        if ("total_amount" in patch or "down_payment" in patch) and "remaining_balance" not in patch:
            total = Decimal(patch.get("total_amount", p.total_amount) or 0)
            down = Decimal(patch.get("down_payment", p.down_payment) or 0)
            patch["remaining_balance"] = total - down
        if collect is not None:
            _collect(p, collect, Decimal(patch.get("down_payment", p.down_payment) or 0), patch)

        now = datetime.now(timezone.utc)
        if "reviewed_by" in patch or "payment_status" in patch:
            patch["reviewed_at"] = now
        for k, v in patch.items():
            setattr(p, k, v)
        p.updated_at = now

        new_status = patch.get("payment_status")
        if new_status in ("approved", "rejected"):
            _mirror_onto_booking(db, p.booking_id, new_status, p.rejection_reason)

        if patch.get("reviewed_by"):
            action = REVIEW_ACTIONS.get(new_status, "UPDATE_PAYMENT")
            log_audit(db, patch["reviewed_by"], action, "booking_payment", p.id,
                      {"booking": p.booking_id, "from": previous, "to": p.payment_status, "fields": sorted(patch)})
        db.commit()
    except BookingError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Updating payment %s failed", payment_id)
        raise PersistenceError("Failed to update booking payment") from e

    db.refresh(p)
    booking = db.get(Booking, p.booking_id)
    if booking is not None:
        db.refresh(booking)
    logger.info("Payment %s updated (%s -> %s)", p.id, previous, p.payment_status)

    if new_status == "approved" and previous != "approved" and booking is not None:
        send_notice(notify, notice_from_booking(BOOKING_APPROVED, booking, p))
    return payment_out(p, booking)


def delete_booking_payment(db: Session, payment_id: str, actor: str) -> BookingPaymentOut:
    p = db.get(BookingPayment, payment_id)
    if not p:
        raise NotFoundError("Booking payment not found")
    snapshot = _joined(db, p)
    try:
        db.delete(p)
        log_audit(db, actor, "DELETE_PAYMENT", "booking_payment", payment_id, {"booking": snapshot.booking_id})
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Deleting payment %s failed", payment_id)
        raise PersistenceError("Failed to delete booking payment") from e
    logger.info("Payment %s deleted by %s", payment_id, actor)
    return snapshot
