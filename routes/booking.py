from flask import Blueprint, request, jsonify

from models.booking import Booking
from models.hotel import Hotel
from models.port import Port
from models.zone import Zone
from models.db import iso
from services.bookings import create_booking
from services.pricing import load_pricing_settings
from utils.audit import log_event
from utils.money import format_amount

booking_bp = Blueprint("booking", __name__, url_prefix="/api")


# ---------- PUBLIC: booking form ----------
@booking_bp.post("/bookings")
def create():
    data = request.get_json(silent=True) or {}
    booking = create_booking(data)

    log_event(
        "BOOKING_CREATE",
        entity="booking",
        entity_id=booking.id,
        metadata={"reference_number": booking.reference_number, "booking_type": booking.booking_type},
    )
    return jsonify(
        id=booking.id,
        reference_number=booking.reference_number,
        booking_type=booking.booking_type,
        status=booking.status,
        pricing_set=booking.pricing_set,
        total_amount=booking.total_amount,
    ), 201


@booking_bp.get("/booking-confirmation/<session_id>")
def booking_confirmation(session_id: str):
    # Landing page after Stripe checkout looks the booking up by checkout session
    booking = Booking.query.filter_by(stripe_session_id=session_id).first()
    if not booking:
        return jsonify(error="Booking not found"), 404

    return jsonify(
        reference_number=booking.reference_number,
        customer_name=booking.customer_name,
        pickup_date=iso(booking.pickup_date),
        pickup_location=booking.pickup_location,
        dropoff_location=booking.dropoff_location,
        party_size=booking.party_size,
        vehicle_class=booking.vehicle_class,
        total_amount=booking.total_amount,
        status=booking.status,
        payment_confirmed=booking.status != "new",
    ), 200


# ---------- PUBLIC: catalog for the booking form ----------
@booking_bp.get("/hotels")
def list_hotels():
    hotels = Hotel.query.filter_by(is_active=True).order_by(Hotel.name.asc()).all()
    return jsonify([h.to_dict() for h in hotels]), 200


@booking_bp.get("/zones")
def list_zones():
    zones = Zone.query.filter_by(is_active=True).order_by(Zone.name.asc()).all()
    return jsonify([z.to_dict() for z in zones]), 200


@booking_bp.get("/ports")
def list_ports():
    ports = Port.query.filter_by(is_active=True).order_by(Port.name.asc()).all()
    return jsonify([p.to_dict() for p in ports]), 200


@booking_bp.get("/settings/large-party-surcharge")
def large_party_surcharge():
    settings = load_pricing_settings()
    return jsonify(
        amount=format_amount(settings.surcharge_amount),
        min_party_size=settings.min_party_size,
    ), 200
