from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_image_store, get_notify, require_staff
from app.db.session import get_db
from app.schemas.booking_payment import BookingPaymentCreate, BookingPaymentUpdate
from app.schemas.common import ok
from app.services import booking_payment_service
from app.services.image_store import ImageStore

router = APIRouter(tags=["booking-payments"])


@router.post("/booking-payments", status_code=201)
def create_payment(body: BookingPaymentCreate, db: Session = Depends(get_db),
                   image_store: ImageStore = Depends(get_image_store)):
    out = booking_payment_service.create_booking_payment(db, body, image_store)
    return ok(out, message="Payment submitted successfully")


@router.get("/booking-payments")
def list_payments(status: str | None = None, q: str | None = None, db: Session = Depends(get_db),
                  staff: dict = Depends(require_staff)):
    items = booking_payment_service.list_booking_payments(db, status, q)
    return ok(items, count=len(items))


@router.get("/booking-payments/{payment_id}")
def get_payment(payment_id: str, db: Session = Depends(get_db), staff: dict = Depends(require_staff)):
    return ok(booking_payment_service.get_booking_payment(db, payment_id))


@router.patch("/booking-payments")
def update_payment_by_body(body: BookingPaymentUpdate, db: Session = Depends(get_db),
                           image_store: ImageStore = Depends(get_image_store), notify=Depends(get_notify),
                           staff: dict = Depends(require_staff)):
    out = booking_payment_service.update_booking_payment(db, body, image_store, notify)
    return ok(out, message="Payment updated successfully")


@router.api_route("/booking-payments/{payment_id}", methods=["PATCH", "PUT"])
def update_payment(payment_id: str, body: BookingPaymentUpdate, db: Session = Depends(get_db),
                   image_store: ImageStore = Depends(get_image_store), notify=Depends(get_notify),
                   staff: dict = Depends(require_staff)):
    body.id = payment_id
    out = booking_payment_service.update_booking_payment(db, body, image_store, notify)
    return ok(out, message="Payment updated successfully")


@router.delete("/booking-payments/{payment_id}")
def delete_payment(payment_id: str, db: Session = Depends(get_db), staff: dict = Depends(require_staff)):
    out = booking_payment_service.delete_booking_payment(db, payment_id, staff["sub"])
    return ok(out, message="Payment deleted successfully")
