from datetime import date, timedelta

import pytest

from app.core.security import create_access_token
from app.models.audit_log import AuditLog
from app.models.booking import Booking
from app.services.booking_service import can_transition


def _patch(client, headers, **body):
    return client.patch("/api/v1/bookings", json=body, headers=headers)


def test_create_booking_starts_pending_and_notifies_guest(client, booking_payload, sender):
    r = client.post("/api/v1/bookings", json=booking_payload(status="approved"))
    assert r.status_code == 201
    payload = r.json()
    assert payload["success"] is True
    data = payload["data"]
    assert data["booking_id"] == "BK1"
    assert data["status"] == "pending"
    assert data["remaining_balance"] == 3500
    assert data["rejection_reason"] is None
    assert sender.subjects == ["Booking Pending Approval - BK1"]
    assert sender.sent[0]["to"] == "ana@example.com"


def test_create_booking_keeps_explicit_remaining_balance(create_booking):
    data = create_booking(remaining_balance=1000)
    assert data["remaining_balance"] == 1000


def test_duplicate_booking_reference_is_rejected(client, booking_payload, create_booking, db):
    create_booking()
    r = client.post("/api/v1/bookings", json=booking_payload(guest_email="other@example.com"))
    assert r.status_code == 409
    assert r.json() == {"success": False, "error": "Booking BK1 already exists"}
    assert db.query(Booking).filter(Booking.booking_id == "BK1").count() == 1


@pytest.mark.parametrize("overrides", [
    {"guest_email": ""},
    {"guest_first_name": "   "},
    {"booking_id": ""},
])
def test_create_booking_requires_guest_fields(client, booking_payload, overrides, sender):
    r = client.post("/api/v1/bookings", json=booking_payload(**overrides))
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert sender.sent == []


def test_create_booking_rejects_checkout_before_checkin(client, booking_payload):
    today = date.today()
    r = client.post("/api/v1/bookings", json=booking_payload(
        check_in_date=(today + timedelta(days=5)).isoformat(),
        check_out_date=(today + timedelta(days=4)).isoformat(),
    ))
    assert r.status_code == 400


def test_missing_body_field_maps_to_400_envelope(client, booking_payload):
    body = booking_payload()
    del body["check_in_date"]
    r = client.post("/api/v1/bookings", json=body)
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert "check_in_date" in r.json()["error"]


def test_create_booking_uploads_images(client, booking_payload, image_store):
    r = client.post("/api/v1/bookings", json=booking_payload(
        payment_proof="data:image/png;base64,cHJvb2Y=",
        valid_id="aWQ=",
        additional_guests=[{"firstName": "Ben", "lastName": "Cruz", "age": 30, "validId": "YmVu"}],
    ))
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["payment_proof_url"].startswith("https://images.test/payment-proofs/")
    assert data["valid_id_url"].startswith("https://images.test/valid-ids/")
    assert data["additional_guests"][0]["validIdUrl"].startswith("https://images.test/valid-ids/")
    assert [folder for folder, _ in image_store.uploads] == ["payment-proofs", "valid-ids", "valid-ids"]


def test_failed_upload_aborts_booking(client, booking_payload, image_store, db, sender):
    image_store.fail = True
    r = client.post("/api/v1/bookings", json=booking_payload(payment_proof="cHJvb2Y="))
    assert r.status_code == 502
    assert db.query(Booking).count() == 0
    assert sender.sent == []


def test_get_booking_includes_haven_gallery(client, create_booking, haven):
    pk = create_booking()["id"]
    r = client.get(f"/api/v1/bookings/{pk}")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["tower"] == "Tower A"
    assert data["room_images"] == ["https://images.test/h1/a.jpg", "https://images.test/h1/b.jpg"]


def test_get_booking_without_haven(client, create_booking):
    pk = create_booking(room_name="Unlisted")["id"]
    data = client.get(f"/api/v1/bookings/{pk}").json()["data"]
    assert data["tower"] is None
    assert data["room_images"] == []


def test_unknown_booking_is_404(client):
    r = client.get("/api/v1/bookings/missing")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Booking not found"}


def test_search_by_reference(client, create_booking):
    create_booking()
    r = client.get("/api/v1/bookings/search", params={"booking_id": "BK1"})
    assert r.status_code == 200
    assert r.json()["data"]["guest_first_name"] == "Ana"
    assert client.get("/api/v1/bookings/search").status_code == 400
    assert client.get("/api/v1/bookings/search", params={"booking_id": "NOPE"}).status_code == 404


def test_listing_requires_staff(client, create_booking, staff_headers):
    create_booking()
    assert client.get("/api/v1/bookings").status_code == 401
    guest = {"Authorization": f"Bearer {create_access_token('guest-1', 'guest')}"}
    r = client.get("/api/v1/bookings", headers=guest)
    assert r.status_code == 403
    assert r.json()["success"] is False
    bad = {"Authorization": "Bearer not-a-token"}
    assert client.get("/api/v1/bookings", headers=bad).status_code == 401

    r = client.get("/api/v1/bookings", headers=staff_headers)
    assert r.status_code == 200
    assert r.json()["count"] == 1


def test_list_filters_by_status(client, create_booking, staff_headers):
    create_booking(booking_id="BK1")
    pk = create_booking(booking_id="BK2")["id"]
    _patch(client, staff_headers, id=pk, status="approved")
    r = client.get("/api/v1/bookings", params={"status": "approved"}, headers=staff_headers)
    assert [b["booking_id"] for b in r.json()["data"]] == ["BK2"]


@pytest.mark.parametrize("current,new,allowed", [
    ("pending", "approved", True),
    ("pending", "rejected", True),
    ("pending", "checked-in", False),
    ("approved", "confirmed", True),
    ("approved", "checked-in", True),
    ("approved", "pending", False),
    ("confirmed", "checked-in", True),
    ("checked-in", "completed", True),
    ("checked-in", "approved", False),
    ("completed", "cancelled", True),
    ("rejected", "approved", False),
    ("cancelled", "pending", False),
    ("confirmed", "confirmed", True),
])
def test_transition_table(current, new, allowed):
    assert can_transition(current, new) is allowed


def test_approve_then_illegal_transition(client, create_booking, staff_headers, sender):
    pk = create_booking()["id"]
    r = _patch(client, staff_headers, id=pk, status="approved")
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "approved"
    assert sender.subjects[-1] == "Booking Confirmation - BK1"

    r = _patch(client, staff_headers, id=pk, status="pending")
    assert r.status_code == 409
    assert r.json()["error"] == "Cannot change booking status from approved to pending"


def test_same_status_is_a_quiet_noop(client, create_booking, staff_headers, sender):
    pk = create_booking()["id"]
    _patch(client, staff_headers, id=pk, status="approved")
    sent = len(sender.sent)
    r = _patch(client, staff_headers, id=pk, status="approved")
    assert r.status_code == 200
    assert len(sender.sent) == sent


def test_reject_requires_reason(client, create_booking, staff_headers):
    pk = create_booking()["id"]
    r = _patch(client, staff_headers, id=pk, status="rejected")
    assert r.status_code == 400
    r = _patch(client, staff_headers, id=pk, status="rejected", rejection_reason="Proof unreadable")
    assert r.status_code == 200
    assert r.json()["data"]["rejection_reason"] == "Proof unreadable"


def test_invalid_status_and_empty_update(client, create_booking, staff_headers):
    pk = create_booking()["id"]
    r = _patch(client, staff_headers, id=pk, status="archived")
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid status: archived"
    assert _patch(client, staff_headers, id=pk).status_code == 400
    assert _patch(client, staff_headers, id="missing", status="approved").status_code == 404


def test_cancel_from_any_state(client, create_booking, staff_headers):
    pk = create_booking()["id"]
    for status in ("approved", "checked-in", "cancelled"):
        assert _patch(client, staff_headers, id=pk, status=status).status_code == 200


def test_corrections_recompute_remaining_balance(client, create_booking, staff_headers, db):
    pk = create_booking()["id"]
    r = client.put("/api/v1/bookings", headers=staff_headers, json={"id": pk, "total_amount": 6000, "guest_phone": "+639170000000"})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["remaining_balance"] == 4500
    assert data["guest_phone"] == "+639170000000"
    assert data["status"] == "pending"

    audit = db.query(AuditLog).filter(AuditLog.entity_id == "BK1").all()
    assert [a.action for a in audit] == ["booking.updated"]
    assert audit[0].actor == "csr@havens.test"


def test_check_in_email_shows_collected_amount(client, create_booking, create_payment, staff_headers, sender):
    pk = create_booking()["id"]
    create_payment(pk, amount_paid=2000, remaining_balance=3000)
    _patch(client, staff_headers, id=pk, status="approved")
    _patch(client, staff_headers, id=pk, status="checked-in")
    assert sender.subjects[-1] == "Welcome! You're Checked In - BK1"
    assert "Amount paid: PHP 2,000.00" in sender.sent[-1]["body"]
    assert "Remaining balance: PHP 3,000.00" in sender.sent[-1]["body"]

    _patch(client, staff_headers, id=pk, status="completed")
    assert sender.subjects[-1] == "Thank You For Your Stay! - BK1"


def test_delete_booking_removes_its_payments(client, create_booking, create_payment, staff_headers):
    pk = create_booking()["id"]
    payment = create_payment(pk)
    r = client.delete("/api/v1/bookings", params={"id": pk}, headers=staff_headers)
    assert r.status_code == 200
    assert r.json()["data"]["booking_id"] == "BK1"
    assert client.get(f"/api/v1/bookings/{pk}").status_code == 404
    assert client.get(f"/api/v1/booking-payments/{payment['id']}", headers=staff_headers).status_code == 404
    assert client.delete("/api/v1/bookings", params={"id": pk}, headers=staff_headers).status_code == 404


def test_user_booking_scopes(client, create_booking, staff_headers):
    today = date.today()
    create_booking(booking_id="BK-UP")
    create_booking(booking_id="BK-PAST",
                   check_in_date=(today - timedelta(days=5)).isoformat(),
                   check_out_date=(today - timedelta(days=3)).isoformat())
    cancelled = create_booking(booking_id="BK-CANC")["id"]
    create_booking(booking_id="BK-OTHER", user_id="user-2")
    _patch(client, staff_headers, id=cancelled, status="cancelled")

    def refs(scope=None):
        params = {"status": scope} if scope else {}
        r = client.get("/api/v1/users/user-1/bookings", params=params)
        assert r.status_code == 200
        return {b["booking_id"] for b in r.json()["data"]}

    assert refs("upcoming") == {"BK-UP"}
    assert refs("past") == {"BK-PAST"}
    assert refs("cancelled") == {"BK-CANC"}
    assert refs("all") == {"BK-UP", "BK-PAST", "BK-CANC"}
    assert refs() == {"BK-UP", "BK-PAST", "BK-CANC"}
    assert refs("pending") == {"BK-UP", "BK-PAST"}


def test_haven_bookings_match_trimmed_room_name(client, create_booking, haven, staff_headers):
    today = date.today()
    create_booking(booking_id="BK-LATE", room_name=" Haven 1 ",
                   check_in_date=(today + timedelta(days=20)).isoformat(),
                   check_out_date=(today + timedelta(days=22)).isoformat())
    create_booking(booking_id="BK-EARLY", room_name="Haven 1",
                   check_in_date=(today + timedelta(days=2)).isoformat(),
                   check_out_date=(today + timedelta(days=3)).isoformat())
    cancelled = create_booking(booking_id="BK-CANC")["id"]
    rejected = create_booking(booking_id="BK-REJ")["id"]
    create_booking(booking_id="BK-ELSE", room_name="Haven 2")
    _patch(client, staff_headers, id=cancelled, status="cancelled")
    _patch(client, staff_headers, id=rejected, status="rejected", rejection_reason="Double booked")

    r = client.get(f"/api/v1/havens/{haven.id}/bookings")
    assert r.status_code == 200
    assert [b["booking_id"] for b in r.json()["data"]] == ["BK-EARLY", "BK-LATE"]
    assert client.get("/api/v1/havens/missing/bookings").status_code == 404


def test_receipt_pdf(client, create_booking, create_payment):
    pk = create_booking()["id"]
    create_payment(pk)
    r = client.get(f"/api/v1/bookings/{pk}/receipt")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.content.startswith(b"%PDF")


def test_rejected_update_uploads_nothing(client, create_booking, staff_headers, image_store):
    pk = create_booking()["id"]
    r = _patch(client, staff_headers, id=pk, status="completed", payment_proof="cHJvb2Y=")
    assert r.status_code == 409
    r = _patch(client, staff_headers, id="missing", valid_id="aWQ=")
    assert r.status_code == 404
    assert image_store.uploads == []

    r = _patch(client, staff_headers, id=pk, status="approved", payment_proof="cHJvb2Y=")
    assert r.status_code == 200
    assert r.json()["data"]["payment_proof_url"].startswith("https://images.test/payment-proofs/")
    assert [folder for folder, _ in image_store.uploads] == ["payment-proofs"]


@pytest.mark.parametrize("correction", [
    {"check_out_date": "2000-01-01"},
    {"guest_first_name": "  "},
    {"guest_email": ""},
])
def test_corrections_keep_booking_valid(client, create_booking, staff_headers, image_store, correction):
    pk = create_booking()["id"]
    r = _patch(client, staff_headers, id=pk, valid_id="aWQ=", **correction)
    assert r.status_code == 400
    assert image_store.uploads == []
    data = client.get(f"/api/v1/bookings/{pk}").json()["data"]
    assert data["guest_first_name"] == "Ana"
    assert data["guest_email"] == "ana@example.com"
    assert data["check_out_date"] > data["check_in_date"]
