import hashlib
import hmac
import json
import time

import pytest
import stripe

from app import create_app
from config import Config
from models import db
from models.driver import Driver
from services import bookings as booking_service
from utils.seed import create_admin

ADMIN_USERNAME = "ops"
ADMIN_PASSWORD = "correct-horse-battery"
WEBHOOK_SECRET = "whsec_test_secret"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    AUTO_CREATE_TABLES = True
    BCRYPT_ROUNDS = 4
    SESSION_COOKIE_SECURE = False

    SMTP_HOST = "smtp.test"
    SMTP_FROM_EMAIL = "bookings@airtransfer.test"

    STRIPE_SECRET_KEY = "sk_test_dummy"
    STRIPE_WEBHOOK_SECRET = WEBHOOK_SECRET

    SEND_CONFIRMATION_ON_CREATE = False


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    return create_admin(ADMIN_USERNAME, "ops@airtransfer.test", ADMIN_PASSWORD)


@pytest.fixture
def admin_client(app, admin):
    """Logged-in client that echoes the CSRF cookie back in the X-CSRF-Token header."""
    c = app.test_client()
    resp = c.post("/api/admin/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    c.environ_base["HTTP_X_CSRF_TOKEN"] = c.get_cookie("csrf_token").value
    return c


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    def fake_send(to_email, subject, html):
        sent.append({"to": to_email, "subject": subject, "html": html})
        return True, None

    monkeypatch.setattr("services.notifications.send_email", fake_send)
    return sent


@pytest.fixture
def broken_mailer(monkeypatch):
    attempts = []

    def failing_send(to_email, subject, html):
        attempts.append(to_email)
        return False, "SMTP connection refused"

    monkeypatch.setattr("services.notifications.send_email", failing_send)
    return attempts


@pytest.fixture
def stripe_checkout(monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        session_id = f"cs_test_{len(calls)}"
        return {"id": session_id, "url": f"https://checkout.stripe.com/c/pay/{session_id}"}

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    return calls


@pytest.fixture
def booking_data(app):
    def _make(**overrides):
        data = {
            "customer_name": "Jane Doe",
            "customer_email": "jane@example.com",
            "customer_phone": "+1 758 555 0100",
            "pickup_location": "Hewanorra International Airport",
            "dropoff_location": "Sugar Beach Resort",
            "accommodation": "Sugar Beach",
            "pickup_date": "2026-12-20T14:30:00",
            "party_size": 2,
            "flight_number": "BA2159",
            "vehicle_class": "standard",
            "booking_type": "hotel",
        }
        data.update(overrides)
        return data
    return _make


@pytest.fixture
def make_booking(app, booking_data):
    def _make(**overrides):
        return booking_service.create_booking(booking_data(**overrides))
    return _make


@pytest.fixture
def make_driver(app):
    def _make(**overrides):
        fields = {
            "name": "Marcus Joseph",
            "email": "marcus@drivers.test",
            "phone": "+1 758 555 0199",
            "vehicle_class": "standard",
            "vehicle_details": "Black Toyota Camry",
            "vehicle_number": "PA 1234",
            "is_active": True,
        }
        fields.update(overrides)
        driver = Driver(**fields)
        db.session.add(driver)
        db.session.commit()
        return driver
    return _make


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    timestamp = timestamp or int(time.time())
    signature = hmac.new(secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def post_webhook(client):
    def _post(event: dict, signature: str = None, secret: str = WEBHOOK_SECRET):
        payload = json.dumps(event)
        headers = {"Stripe-Signature": signature if signature is not None else sign_payload(payload, secret)}
        return client.post("/api/stripe/webhook", data=payload, headers=headers, content_type="application/json")
    return _post


def checkout_completed(booking_id, event_id="evt_test_1", session_id="cs_test_1"):
    return {
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "payment_status": "paid",
                "metadata": {"bookingId": booking_id, "referenceNumber": "BK-TEST"},
            }
        },
    }


@pytest.fixture
def checkout_event():
    return checkout_completed


@pytest.fixture
def webhook_signature():
    return sign_payload
