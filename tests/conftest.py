import os
from datetime import date, timedelta

os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GCS_BUCKET_NAME"] = ""
os.environ["CLIENT_BASE_URL"] = ""

import uuid

import pytest
from fastapi.testclient import TestClient

from app.core.errors import UpstreamError
from app.core.security import create_access_token
from app.db.session import Database
from app.main import app
from app.models.haven import Haven, HavenImage
from app.services.image_store import ImageStore, StoredImage
from app.services.notification_service import NotificationDispatcher


class FakeImageStore(ImageStore):
    def __init__(self):
        self.uploads = []
        self.fail = False

    def upload(self, payload: str, folder: str) -> StoredImage:
        if self.fail:
            raise UpstreamError("Image upload failed")
        n = len(self.uploads) + 1
        self.uploads.append((folder, payload))
        return StoredImage(id=f"{folder}/{n}.png", url=f"https://images.test/{folder}/{n}.png")

    def delete(self, image_id: str) -> bool:
        return True


class RecordingSender:
    def __init__(self):
        self.sent = []
        self.fail = False

    def __call__(self, to_email, subject, body):
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append({"to": to_email, "subject": subject, "body": body})

    @property
    def subjects(self):
        return [m["subject"] for m in self.sent]


@pytest.fixture
def database():
    database = Database("sqlite://")
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def db(database):
    s = database.session()
    yield s
    s.close()


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def client(database, image_store, sender):
    app.state.database = database
    app.state.image_store = image_store
    app.state.notifier = NotificationDispatcher(database.session, sender=sender)
    return TestClient(app)


@pytest.fixture
def staff_headers():
    token = create_access_token("csr@havens.test", "csr")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def booking_payload():
    def _payload(**overrides):
        today = date.today()
        body = {
            "booking_id": "BK1",
            "user_id": "user-1",
            "guest_first_name": "Ana",
            "guest_last_name": "Cruz",
            "guest_email": "ana@example.com",
            "guest_phone": "+639171234567",
            "room_name": "Haven 1",
            "check_in_date": (today + timedelta(days=10)).isoformat(),
            "check_in_time": "14:00",
            "check_out_date": (today + timedelta(days=12)).isoformat(),
            "check_out_time": "12:00",
            "adults": 2,
            "children": 1,
            "payment_method": "gcash",
            "room_rate": 2500,
            "add_ons_total": 0,
            "total_amount": 5000,
            "down_payment": 1500,
        }
        body.update(overrides)
        return body
    return _payload


@pytest.fixture
def create_booking(client, booking_payload):
    def _create(**overrides) -> dict:
        r = client.post("/api/v1/bookings", json=booking_payload(**overrides))
        assert r.status_code == 201, r.text
        return r.json()["data"]
    return _create


@pytest.fixture
def create_payment(client):
    def _create(booking_pk: str, **overrides) -> dict:
        body = {"booking_id": booking_pk, "payment_method": "gcash", "room_rate": 2500,
                "total_amount": 5000, "down_payment": 1500}
        body.update(overrides)
        r = client.post("/api/v1/booking-payments", json=body)
        assert r.status_code == 201, r.text
        return r.json()["data"]
    return _create


@pytest.fixture
def haven(db):
    h = Haven(id=str(uuid.uuid4()), haven_name="Haven 1", tower="Tower A")
    db.add(h)
    db.add(HavenImage(id=str(uuid.uuid4()), haven_id=h.id, image_url="https://images.test/h1/b.jpg", display_order=2))
    db.add(HavenImage(id=str(uuid.uuid4()), haven_id=h.id, image_url="https://images.test/h1/a.jpg", display_order=1))
    db.commit()
    return h
