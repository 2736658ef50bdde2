"""
Booking lifecycle: creation, pricing, payment links, driver assignment and
status changes.

Every mutation is a single conditional UPDATE on the booking row that names
the state it expects to find (compare-and-set). When no row matches, the
booking is re-read to report why: unknown id, unmet precondition, or a
concurrent change.
"""
import logging
import secrets
import string
import threading
import time
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking, BOOKING_STATUSES, BOOKING_TYPES, VEHICLE_CLASSES
from models.db import utcnow
from models.driver import Driver
from models.hotel import Hotel
from models.port import Port
from services import notifications, payments
from services.errors import (
    ExternalServiceError,
    IllegalTransitionError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from services.notifications import notify
from services.pricing import apply_tax, load_pricing_settings
from utils.money import format_amount, parse_amount, to_decimal

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("completed", "canceled")

# current status -> statuses reachable through an ordinary admin status change
TRANSITIONS = {
    "new": {"paid_fee", "driver_assigned", "canceled"},
    "paid_fee": {"driver_assigned", "canceled"},
    "driver_assigned": {"completed", "canceled"},
    "completed": set(),
    "canceled": set(),
}

# statuses from which a driver may be (re)assigned
ASSIGNABLE_STATUSES = ("new", "paid_fee", "driver_assigned")

# no new payment link once the fee is paid or the booking is closed
NO_PAYMENT_LINK_STATUSES = ("paid_fee", "completed", "canceled")

REQUIRED_TEXT_FIELDS = (
    "customer_name",
    "customer_email",
    "customer_phone",
    "pickup_location",
    "dropoff_location",
    "flight_number",
)
OPTIONAL_TEXT_FIELDS = ("accommodation", "destination_link")

_REF_ALPHABET = string.ascii_uppercase + string.digits
_ref_lock = threading.Lock()
_last_ref_ms = 0


def _base36(number: int) -> str:
    digits = string.digits + string.ascii_uppercase
    if number == 0:
        return "0"
    out = []
    while number:
        number, rem = divmod(number, 36)
        out.append(digits[rem])
    return "".join(reversed(out))


def generate_reference_number() -> str:
    """
    BK-<base36 millisecond timestamp>-<4 random chars>.

    The timestamp part never repeats within a process (it is bumped past the
    last one handed out), so references only rely on the random suffix to
    stay apart across processes.
    """
    global _last_ref_ms
    with _ref_lock:
        now_ms = int(time.time() * 1000)
        if now_ms <= _last_ref_ms:
            now_ms = _last_ref_ms + 1
        _last_ref_ms = now_ms
    suffix = "".join(secrets.choice(_REF_ALPHABET) for _ in range(4))
    return f"BK-{_base36(now_ms)}-{suffix}"


def _parse_pickup_date(value):
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_party_size(value):
    if isinstance(value, bool):
        return None
    try:
        size = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return size if size > 0 else None


def validate_booking_payload(data: dict) -> dict:
    """Returns clean column values or raises ValidationError listing every bad field."""
    data = data or {}
    errors = {}
    clean = {}

    for field in REQUIRED_TEXT_FIELDS:
        value = data.get(field)
        value = value.strip() if isinstance(value, str) else ""
        if not value:
            errors[field] = "required"
        clean[field] = value

    if clean["customer_email"] and ("@" not in clean["customer_email"] or len(clean["customer_email"]) > 255):
        errors["customer_email"] = "invalid email"

    for field in OPTIONAL_TEXT_FIELDS:
        value = data.get(field)
        clean[field] = value.strip() or None if isinstance(value, str) else None

    pickup_date = _parse_pickup_date(data.get("pickup_date"))
    if pickup_date is None:
        errors["pickup_date"] = "required ISO datetime, e.g. 2026-01-20T18:00:00"
    clean["pickup_date"] = pickup_date

    party_size = _parse_party_size(data.get("party_size"))
    if party_size is None:
        errors["party_size"] = "must be a positive integer"
    clean["party_size"] = party_size

    vehicle_class = data.get("vehicle_class")
    vehicle_class = vehicle_class.strip().lower() if isinstance(vehicle_class, str) else ""
    if vehicle_class not in VEHICLE_CLASSES:
        errors["vehicle_class"] = f"must be one of {', '.join(VEHICLE_CLASSES)}"
    clean["vehicle_class"] = vehicle_class

    booking_type = data.get("booking_type") or "hotel"
    booking_type = booking_type.strip().lower() if isinstance(booking_type, str) else ""
    if booking_type not in BOOKING_TYPES:
        errors["booking_type"] = f"must be one of {', '.join(BOOKING_TYPES)}"
    clean["booking_type"] = booking_type

    hotel_id = data.get("hotel_id") or None
    if hotel_id and not db.session.get(Hotel, str(hotel_id)):
        errors["hotel_id"] = "unknown hotel"
    clean["hotel_id"] = str(hotel_id) if hotel_id else None

    port_id = data.get("arrival_port_id") or None
    if port_id and not db.session.get(Port, str(port_id)):
        errors["arrival_port_id"] = "unknown port"
    clean["arrival_port_id"] = str(port_id) if port_id else None

    if errors:
        raise ValidationError("Invalid booking data", fields=errors)
    return clean


def get_booking(booking_id) -> Booking:
    booking = db.session.get(Booking, str(booking_id)) if booking_id else None
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def list_bookings(status: str = None, search: str = None, limit: int = 500):
    q = Booking.query
    if status:
        q = q.filter(Booking.status == status)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(
            Booking.reference_number.ilike(like),
            Booking.customer_name.ilike(like),
            Booking.customer_email.ilike(like),
            Booking.flight_number.ilike(like),
        ))
    return q.order_by(Booking.created_at.desc()).limit(limit).all()


def _conditional_update(booking_id: str, values: dict, *criteria) -> bool:
    values = dict(values, updated_at=utcnow())
    count = (
        Booking.query
        .filter(Booking.id == booking_id, *criteria)
        .update(values, synchronize_session=False)
    )
    return count == 1


def _conflict():
    db.session.rollback()
    return PreconditionError("Booking was changed by another request; reload and retry")


def _policy(policy, config_key):
    return policy or current_app.config.get(config_key, notifications.NOTIFY_IGNORE)


def _send_confirmation(booking):
    settings = load_pricing_settings()
    if booking.is_hotel and booking.total_amount and settings.tax_percentage > 0:
        trip, tax, _total = apply_tax(booking.total_amount, settings)
        return notifications.send_booking_confirmation(booking, trip_price=trip, tax_amount=tax)
    return notifications.send_booking_confirmation(booking)


def create_booking(data: dict) -> Booking:
    fields = validate_booking_payload(data)
    cfg = current_app.config

    for attempt in range(3):
        booking = Booking(
            reference_number=generate_reference_number(),
            status="new",
            **fields,
        )
        if booking.booking_type == "hotel":
            booking.booking_fee = cfg.get("HOTEL_BOOKING_FEE", "30.00")
            booking.driver_fee = cfg.get("HOTEL_DRIVER_FEE", "30.00")
            booking.total_amount = cfg.get("HOTEL_TOTAL_AMOUNT", "30.00")
            booking.balance_due_to_driver = cfg.get("HOTEL_BALANCE_DUE_TO_DRIVER", "30.00")
            booking.pricing_set = True
        else:
            # quote pending until an admin prices it
            booking.pricing_set = False

        db.session.add(booking)
        try:
            db.session.flush()
            break
        except IntegrityError:
            db.session.rollback()
            logger.warning("Reference number collision on attempt %s, regenerating", attempt + 1)
    else:
        raise PreconditionError("Could not allocate a unique reference number")

    if cfg.get("SEND_CONFIRMATION_ON_CREATE"):
        try:
            notify(_send_confirmation, booking, policy=_policy(None, "CONFIRMATION_NOTIFY_POLICY"))
        except ExternalServiceError:
            db.session.rollback()
            raise

    db.session.commit()
    logger.info("Created %s booking %s", booking.booking_type, booking.reference_number)
    return booking


def resend_confirmation(booking_id, policy: str = None) -> Booking:
    booking = get_booking(booking_id)
    notify(_send_confirmation, booking, policy=_policy(policy, "CONFIRMATION_NOTIFY_POLICY"))
    return booking


def set_pricing(booking_id, booking_fee, driver_fee, total_amount=None, balance_due_to_driver=None,
                policy: str = None) -> Booking:
    """
    Quote a destination booking. Total defaults to the booking fee and the
    driver balance to the driver fee, mirroring the fixed hotel split.
    """
    fee = parse_amount(booking_fee, "booking_fee")
    d_fee = parse_amount(driver_fee, "driver_fee")
    total = parse_amount(total_amount, "total_amount") if total_amount not in (None, "") else fee
    balance = (
        parse_amount(balance_due_to_driver, "balance_due_to_driver")
        if balance_due_to_driver not in (None, "") else d_fee
    )
    if total <= 0:
        raise ValidationError("total_amount must be greater than zero", field="total_amount")

    booking = get_booking(booking_id)
    if booking.booking_type != "destination":
        raise PreconditionError("Pricing is fixed for hotel bookings")
    if booking.status in TERMINAL_STATUSES:
        raise PreconditionError(f"Cannot price a {booking.status} booking")

    ok = _conditional_update(
        booking.id,
        {
            "booking_fee": format_amount(fee),
            "driver_fee": format_amount(d_fee),
            "total_amount": format_amount(total),
            "balance_due_to_driver": format_amount(balance),
            "pricing_set": True,
        },
        Booking.booking_type == "destination",
        Booking.status.notin_(TERMINAL_STATUSES),
    )
    if not ok:
        raise _conflict()
    db.session.commit()

    booking = get_booking(booking_id)
    notify(notifications.send_quote_notification, booking, policy=_policy(policy, "SECONDARY_NOTIFY_POLICY"))
    return booking


def send_payment_link(booking_id, policy: str = None):
    """Returns (booking, checkout_url). Nothing is created or written unless pricing is set."""
    booking = get_booking(booking_id)
    if not booking.pricing_set or to_decimal(booking.total_amount) <= 0:
        raise PreconditionError("Pricing must be set before sending a payment link")
    if booking.status in NO_PAYMENT_LINK_STATUSES:
        raise PreconditionError(f"Cannot send a payment link for a {booking.status} booking")

    url, session_id = payments.create_payment_link(booking)

    # mail failure must not undo the link we just created
    notify(notifications.send_payment_link, booking, url, policy=_policy(policy, "SECONDARY_NOTIFY_POLICY"))

    ok = _conditional_update(
        booking.id,
        {
            "payment_link_sent": True,
            "payment_link_sent_at": utcnow(),
            "stripe_session_id": session_id,
        },
        Booking.pricing_set.is_(True),
    )
    if not ok:
        raise _conflict()
    db.session.commit()
    return get_booking(booking_id), url


def assign_driver(booking_id, driver_id, policy: str = None):
    """Returns (booking, driver, notified) where notified maps recipient -> sent flag."""
    if not driver_id:
        raise ValidationError("driver_id is required", field="driver_id")

    booking = get_booking(booking_id)
    driver = db.session.get(Driver, str(driver_id))
    if not driver:
        raise NotFoundError("Driver not found")
    if not driver.is_active:
        raise PreconditionError("Driver is not active")
    if booking.status not in ASSIGNABLE_STATUSES:
        raise IllegalTransitionError(booking.status, "driver_assigned")

    ok = _conditional_update(
        booking.id,
        {"driver_id": driver.id, "assigned_at": utcnow(), "status": "driver_assigned"},
        Booking.status.in_(ASSIGNABLE_STATUSES),
    )
    if not ok:
        raise _conflict()
    db.session.commit()

    booking = get_booking(booking_id)
    policy = _policy(policy, "SECONDARY_NOTIFY_POLICY")
    notified = {
        "driver": notify(notifications.send_driver_assignment, driver, booking, policy=policy) is not None,
        "customer": notify(notifications.send_driver_assigned_to_customer, driver, booking, policy=policy) is not None,
    }
    return booking, driver, notified


def _check_status_value(status):
    if status not in BOOKING_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(BOOKING_STATUSES)}", field="status")


def transition_status(booking_id, new_status: str) -> Booking:
    _check_status_value(new_status)
    booking = get_booking(booking_id)
    current = booking.status

    if new_status not in TRANSITIONS.get(current, set()):
        raise IllegalTransitionError(current, new_status)
    if new_status == "driver_assigned" and not booking.driver_id:
        raise PreconditionError("Assign a driver to move a booking to driver_assigned")

    if not _conditional_update(booking.id, {"status": new_status}, Booking.status == current):
        raise _conflict()
    db.session.commit()
    return get_booking(booking_id)


def override_status(booking_id, new_status: str) -> Booking:
    """Admin override: sets any known status with no lifecycle check."""
    _check_status_value(new_status)
    if not _conditional_update(str(booking_id), {"status": new_status}):
        db.session.rollback()
        raise NotFoundError("Booking not found")
    db.session.commit()
    return get_booking(booking_id)


def mark_paid(booking_id):
    """
    new -> paid_fee after a completed checkout.

    Returns (booking, changed). A booking already past ``new`` is left alone,
    so redelivered events are harmless. Unknown ids return (None, False).
    """
    booking = db.session.get(Booking, str(booking_id)) if booking_id else None
    if not booking:
        logger.warning("Payment completed for unknown booking %s", booking_id)
        return None, False

    if booking.status != "new":
        logger.info("Booking %s already %s, payment event ignored", booking.reference_number, booking.status)
        return booking, False

    changed = _conditional_update(booking.id, {"status": "paid_fee"}, Booking.status == "new")
    db.session.commit()
    booking = get_booking(booking_id)
    if changed:
        logger.info("Booking %s status updated to paid_fee", booking.reference_number)
    return booking, changed
