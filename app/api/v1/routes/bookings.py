from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.deps import get_image_store, get_notify, require_staff
from app.db.session import get_db
from app.schemas.booking import BookingCreate, BookingDetailOut, BookingOut, BookingUpdate, HavenBookingOut
from app.schemas.common import ok
from app.services import booking_service
from app.services.image_store import ImageStore
from app.services.receipt_service import render_receipt_pdf_bytes

router = APIRouter(tags=["bookings"])


@router.post("/bookings", status_code=201)
def create_booking(body: BookingCreate, db: Session = Depends(get_db),
                   image_store: ImageStore = Depends(get_image_store), notify=Depends(get_notify)):
    b = booking_service.create_booking(db, body, image_store, notify)
    return ok(BookingOut.model_validate(b), message="Booking created successfully")


@router.get("/bookings")
def list_bookings(status: str | None = None, db: Session = Depends(get_db), staff: dict = Depends(require_staff)):
    items = booking_service.list_bookings(db, status)
    return ok([BookingOut.model_validate(b) for b in items], count=len(items))


@router.get("/bookings/search")
def search_booking(booking_id: str = "", db: Session = Depends(get_db)):
    b = booking_service.search_booking(db, booking_id)
    return ok(BookingOut.model_validate(b))


@router.get("/bookings/{booking_pk}")
def get_booking(booking_pk: str, db: Session = Depends(get_db)):
    b = booking_service.get_booking(db, booking_pk)
    tower, images = booking_service.room_gallery(db, b.room_name)
    out = BookingDetailOut(**BookingOut.model_validate(b).model_dump(), tower=tower, room_images=images)
    return ok(out)


@router.get("/bookings/{booking_pk}/receipt")
def booking_receipt(booking_pk: str, db: Session = Depends(get_db)):
    b = booking_service.get_booking(db, booking_pk)
    pdf = render_receipt_pdf_bytes(b, booking_service.latest_payment(db, b.id))
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="receipt-{b.booking_id}.pdf"'},
    )


@router.api_route("/bookings", methods=["PATCH", "PUT"])
def update_booking(body: BookingUpdate, db: Session = Depends(get_db),
                   image_store: ImageStore = Depends(get_image_store), notify=Depends(get_notify),
                   staff: dict = Depends(require_staff)):
    b = booking_service.update_booking(db, body, image_store, staff["sub"], notify)
    return ok(BookingOut.model_validate(b), message="Booking updated successfully")


@router.delete("/bookings")
def delete_booking(id: str, db: Session = Depends(get_db), staff: dict = Depends(require_staff)):
    snapshot = booking_service.delete_booking(db, id, staff["sub"])
    return ok(snapshot, message="Booking deleted successfully")


@router.get("/users/{user_id}/bookings")
def user_bookings(user_id: str, status: str | None = None, db: Session = Depends(get_db)):
    items = booking_service.list_user_bookings(db, user_id, status)
    return ok([BookingOut.model_validate(b) for b in items], count=len(items))


@router.get("/havens/{haven_id}/bookings")
def haven_bookings(haven_id: str, db: Session = Depends(get_db)):
    items = booking_service.list_haven_bookings(db, haven_id)
    return ok([HavenBookingOut.model_validate(b) for b in items], count=len(items))
