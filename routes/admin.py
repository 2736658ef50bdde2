from flask import Blueprint, jsonify, request
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking, VEHICLE_CLASSES
from models.driver import Driver
from models.setting import Setting
from services import bookings as booking_service
from services.pricing import pricing_breakdown, upsert_setting
from utils.audit import log_event
from utils.auth_context import admin_required

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")

DRIVER_REQUIRED_FIELDS = ("name", "email", "phone", "vehicle_class")
DRIVER_OPTIONAL_FIELDS = (
    "vehicle_details",
    "vehicle_number",
    "vehicle_photo_url",
    "driver_photo_url",
    "bank_name",
    "account_number",
    "bank_address",
)


def _booking_with_driver(booking):
    out = booking.to_dict()
    driver = db.session.get(Driver, booking.driver_id) if booking.driver_id else None
    out["driver"] = (
        {"id": driver.id, "name": driver.name, "phone": driver.phone, "email": driver.email}
        if driver else None
    )
    return out


# ---------- bookings ----------
@admin_bp.get("/bookings")
@admin_required
def list_bookings():
    status = request.args.get("status") or None
    search = request.args.get("search") or None
    limit = request.args.get("limit", type=int) or 500
    limit = max(1, min(limit, 1000))

    rows = booking_service.list_bookings(status=status, search=search, limit=limit)
    return jsonify([b.to_dict() for b in rows]), 200


@admin_bp.get("/bookings/<booking_id>")
@admin_required
def get_booking(booking_id: str):
    booking = booking_service.get_booking(booking_id)
    return jsonify(_booking_with_driver(booking)), 200


@admin_bp.patch("/bookings/<booking_id>/status")
@admin_required
def update_status(booking_id: str):
    data = request.get_json(silent=True) or {}
    before = booking_service.get_booking(booking_id).status
    booking = booking_service.transition_status(booking_id, data.get("status"))

    log_event("BOOKING_STATUS_UPDATE", entity="booking", entity_id=booking.id,
              metadata={"from": before, "to": booking.status})
    return jsonify(booking.to_dict()), 200


@admin_bp.post("/bookings/<booking_id>/status-override")
@admin_required
def override_status(booking_id: str):
    data = request.get_json(silent=True) or {}
    before = booking_service.get_booking(booking_id).status
    booking = booking_service.override_status(booking_id, data.get("status"))

    log_event("BOOKING_STATUS_OVERRIDE", entity="booking", entity_id=booking.id,
              metadata={"from": before, "to": booking.status, "reason": data.get("reason")})
    return jsonify(booking.to_dict()), 200


@admin_bp.patch("/bookings/<booking_id>/pricing")
@admin_required
def set_pricing(booking_id: str):
    data = request.get_json(silent=True) or {}
    booking = booking_service.set_pricing(
        booking_id,
        data.get("booking_fee"),
        data.get("driver_fee"),
        total_amount=data.get("total_amount"),
        balance_due_to_driver=data.get("balance_due_to_driver"),
    )

    log_event("BOOKING_PRICING_SET", entity="booking", entity_id=booking.id, metadata={
        "booking_fee": booking.booking_fee,
        "driver_fee": booking.driver_fee,
        "total_amount": booking.total_amount,
        "balance_due_to_driver": booking.balance_due_to_driver,
    })
    return jsonify(booking.to_dict()), 200


@admin_bp.post("/bookings/<booking_id>/send-payment-link")
@admin_required
def send_payment_link(booking_id: str):
    booking, url = booking_service.send_payment_link(booking_id)

    log_event("PAYMENT_LINK_SENT", entity="booking", entity_id=booking.id,
              metadata={"total_amount": booking.total_amount, "stripe_session_id": booking.stripe_session_id})
    return jsonify(success=True, payment_link=url, booking=booking.to_dict()), 200


@admin_bp.post("/bookings/<booking_id>/assign-driver")
@admin_required
def assign_driver(booking_id: str):
    data = request.get_json(silent=True) or {}
    booking, driver, notified = booking_service.assign_driver(booking_id, data.get("driver_id"))

    log_event("DRIVER_ASSIGN", entity="booking", entity_id=booking.id,
              metadata={"driver_id": driver.id, "notified": notified})
    return jsonify(
        success=True,
        message=f"Driver {driver.name} assigned to booking {booking.reference_number}",
        notified=notified,
        booking=_booking_with_driver(booking),
    ), 200


@admin_bp.post("/bookings/<booking_id>/resend-confirmation")
@admin_required
def resend_confirmation(booking_id: str):
    booking = booking_service.resend_confirmation(booking_id)
    log_event("BOOKING_CONFIRMATION_RESENT", entity="booking", entity_id=booking.id)
    return jsonify(success=True), 200


@admin_bp.get("/bookings/<booking_id>/price-breakdown")
@admin_required
def price_breakdown(booking_id: str):
    booking = booking_service.get_booking(booking_id)
    out = pricing_breakdown(booking)
    out["booking_id"] = booking.id
    out["party_size"] = booking.party_size
    return jsonify(out), 200


# ---------- drivers ----------
def _apply_driver_fields(driver, data, partial=False):
    for field in DRIVER_REQUIRED_FIELDS:
        if partial and field not in data:
            continue
        value = (data.get(field) or "").strip() if isinstance(data.get(field), str) else ""
        if not value:
            return f"{field} is required"
        if field == "vehicle_class":
            value = value.lower()
            if value not in VEHICLE_CLASSES:
                return f"vehicle_class must be one of {', '.join(VEHICLE_CLASSES)}"
        if field == "email" and "@" not in value:
            return "Invalid email"
        setattr(driver, field, value)

    for field in DRIVER_OPTIONAL_FIELDS:
        if field in data:
            value = data.get(field)
            setattr(driver, field, value.strip() or None if isinstance(value, str) else None)

    if "is_active" in data:
        driver.is_active = bool(data.get("is_active"))
    return None


@admin_bp.get("/drivers")
@admin_required
def list_drivers():
    q = Driver.query
    if request.args.get("active") == "true":
        q = q.filter_by(is_active=True)
    drivers = q.order_by(Driver.name.asc()).all()
    return jsonify([d.to_dict() for d in drivers]), 200


@admin_bp.post("/drivers")
@admin_required
def create_driver():
    data = request.get_json(silent=True) or {}
    driver = Driver()
    error = _apply_driver_fields(driver, data)
    if error:
        return jsonify(error=error), 400

    db.session.add(driver)
    db.session.commit()

    log_event("DRIVER_CREATE", entity="driver", entity_id=driver.id)
    return jsonify(driver.to_dict()), 201


@admin_bp.get("/drivers/<driver_id>")
@admin_required
def get_driver(driver_id: str):
    driver = db.session.get(Driver, driver_id)
    if not driver:
        return jsonify(error="Driver not found"), 404
    return jsonify(driver.to_dict()), 200


@admin_bp.put("/drivers/<driver_id>")
@admin_required
def update_driver(driver_id: str):
    driver = db.session.get(Driver, driver_id)
    if not driver:
        return jsonify(error="Driver not found"), 404

    data = request.get_json(silent=True) or {}
    error = _apply_driver_fields(driver, data, partial=True)
    if error:
        db.session.rollback()
        return jsonify(error=error), 400

    db.session.commit()
    log_event("DRIVER_UPDATE", entity="driver", entity_id=driver.id)
    return jsonify(driver.to_dict()), 200


@admin_bp.delete("/drivers/<driver_id>")
@admin_required
def delete_driver(driver_id: str):
    driver = db.session.get(Driver, driver_id)
    if not driver:
        return jsonify(error="Driver not found"), 404

    # Bookings keep their driver reference; deactivate instead
    in_use = Booking.query.filter_by(driver_id=driver.id).count()
    if in_use:
        return jsonify(error="Driver has bookings; deactivate instead", bookings=in_use), 409

    db.session.delete(driver)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="Driver has bookings; deactivate instead"), 409

    log_event("DRIVER_DELETE", entity="driver", entity_id=driver_id)
    return jsonify(success=True), 200


# ---------- settings ----------
@admin_bp.get("/settings")
@admin_required
def list_settings():
    rows = Setting.query.order_by(Setting.key.asc()).all()
    return jsonify([s.to_dict() for s in rows]), 200


@admin_bp.post("/settings")
@admin_required
def save_setting():
    data = request.get_json(silent=True) or {}
    row = upsert_setting(data.get("key"), data.get("value"), data.get("description"))

    log_event("SETTING_UPDATE", entity="setting", entity_id=row.key, metadata={"value": row.value})
    return jsonify(row.to_dict()), 200
