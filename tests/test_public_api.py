from models import db
from models.booking import Booking
from models.hotel import Hotel
from models.port import Port


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_create_hotel_booking(client, booking_data):
    resp = client.post("/api/bookings", json=booking_data())

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["status"] == "new"
    assert body["pricing_set"] is True
    assert body["total_amount"] == "30.00"
    assert body["reference_number"].startswith("BK-")


def test_create_destination_booking(client, booking_data):
    resp = client.post("/api/bookings", json=booking_data(booking_type="destination"))

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["pricing_set"] is False
    assert body["total_amount"] is None


def test_invalid_booking_returns_field_errors(client, booking_data):
    resp = client.post("/api/bookings", json=booking_data(party_size="many", pickup_date="tomorrow"))

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "Invalid booking data"
    assert set(body["fields"]) == {"party_size", "pickup_date"}
    assert Booking.query.count() == 0


def test_empty_body_rejected(client):
    resp = client.post("/api/bookings", data="not json", content_type="text/plain")
    assert resp.status_code == 400


def test_booking_confirmation_by_checkout_session(client, make_booking):
    booking = make_booking()
    booking.stripe_session_id = "cs_test_lookup"
    db.session.commit()

    resp = client.get("/api/booking-confirmation/cs_test_lookup")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["reference_number"] == booking.reference_number
    assert body["payment_confirmed"] is False
    assert "customer_email" not in body

    assert client.get("/api/booking-confirmation/cs_unknown").status_code == 404


def test_public_lists_show_active_only(client):
    db.session.add_all([
        Hotel(name="Sugar Beach"),
        Hotel(name="Closed Inn", is_active=False),
        Port(name="Hewanorra", code="UVF"),
        Port(name="Old Pier", code="PIER", is_active=False),
    ])
    db.session.commit()

    assert [h["name"] for h in client.get("/api/hotels").get_json()] == ["Sugar Beach"]
    assert [p["code"] for p in client.get("/api/ports").get_json()] == ["UVF"]
    assert client.get("/api/zones").get_json() == []


def test_large_party_surcharge_defaults(client):
    assert client.get("/api/settings/large-party-surcharge").get_json() == {
        "amount": "20.00",
        "min_party_size": 4,
    }


def test_pay_pages(client, make_booking):
    booking = make_booking()
    booking.stripe_session_id = "cs_test_page"
    db.session.commit()

    resp = client.get("/pay/success?session_id=cs_test_page")
    assert resp.status_code == 200
    assert booking.reference_number in resp.get_data(as_text=True)

    assert client.get("/pay/cancel").status_code == 200
