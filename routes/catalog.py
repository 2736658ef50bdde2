"""
Admin CRUD for the reference data behind the booking form: hotels and their
per-port rates, zones and zone-to-zone routes, vehicle rates, pricing rules
and arrival ports.
"""
import re
from datetime import datetime

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import VEHICLE_CLASSES
from models.hotel import Hotel
from models.port import Port, PortHotelRate
from models.pricing_rule import PricingRule
from models.rate import Rate
from models.zone import Zone, ZoneRoute
from services.errors import NotFoundError, ValidationError
from utils.audit import log_event
from utils.auth_context import admin_required
from utils.money import format_amount, parse_amount

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/admin")

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _text(data, field, required=False, max_len=255):
    value = data.get(field)
    value = value.strip() if isinstance(value, str) else ""
    if required and not value:
        raise ValidationError(f"{field} is required", field=field)
    if len(value) > max_len:
        raise ValidationError(f"{field} is too long", field=field)
    return value or None


def _int(data, field, minimum=0):
    try:
        value = int(str(data.get(field)).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a whole number", field=field)
    if value < minimum:
        raise ValidationError(f"{field} must be at least {minimum}", field=field)
    return value


def _vehicle_class(data, required=True):
    value = (_text(data, "vehicle_class", required=required) or "").lower()
    if not value:
        return None
    if value not in VEHICLE_CLASSES:
        raise ValidationError(f"vehicle_class must be one of {', '.join(VEHICLE_CLASSES)}", field="vehicle_class")
    return value


def _zone_ref(data, field, required=True):
    zone_id = data.get(field)
    if not zone_id:
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    if not db.session.get(Zone, str(zone_id)):
        raise ValidationError("Unknown zone", field=field)
    return str(zone_id)


def _get_or_404(model, object_id, label):
    row = db.session.get(model, object_id)
    if not row:
        raise NotFoundError(f"{label} not found")
    return row


def _commit_or_conflict(message):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error=message), 409
    return None


# ---------- hotels ----------
def _apply_hotel(hotel, data, partial=False):
    if not partial or "name" in data:
        hotel.name = _text(data, "name", required=True, max_len=160)
    if "address" in data:
        hotel.address = _text(data, "address")
    if "zone" in data:
        hotel.zone = _text(data, "zone", max_len=120)
    if "zone_id" in data:
        hotel.zone_id = _zone_ref(data, "zone_id", required=False)
    if "is_active" in data:
        hotel.is_active = bool(data.get("is_active"))


@catalog_bp.get("/hotels")
@admin_required
def list_hotels():
    hotels = Hotel.query.order_by(Hotel.name.asc()).all()
    return jsonify([h.to_dict() for h in hotels]), 200


@catalog_bp.post("/hotels")
@admin_required
def create_hotel():
    data = request.get_json(silent=True) or {}
    hotel = Hotel()
    _apply_hotel(hotel, data)
    db.session.add(hotel)
    db.session.commit()

    log_event("HOTEL_CREATE", entity="hotel", entity_id=hotel.id)
    return jsonify(hotel.to_dict()), 201


@catalog_bp.put("/hotels/<hotel_id>")
@admin_required
def update_hotel(hotel_id: str):
    hotel = _get_or_404(Hotel, hotel_id, "Hotel")
    _apply_hotel(hotel, request.get_json(silent=True) or {}, partial=True)
    db.session.commit()

    log_event("HOTEL_UPDATE", entity="hotel", entity_id=hotel.id)
    return jsonify(hotel.to_dict()), 200


@catalog_bp.delete("/hotels/<hotel_id>")
@admin_required
def delete_hotel(hotel_id: str):
    hotel = _get_or_404(Hotel, hotel_id, "Hotel")
    PortHotelRate.query.filter_by(hotel_id=hotel.id).delete(synchronize_session=False)
    db.session.delete(hotel)
    conflict = _commit_or_conflict("Hotel is referenced by bookings; deactivate instead")
    if conflict:
        return conflict

    log_event("HOTEL_DELETE", entity="hotel", entity_id=hotel_id)
    return jsonify(success=True), 200


@catalog_bp.get("/hotels/<hotel_id>/port-rates")
@admin_required
def list_port_rates(hotel_id: str):
    hotel = _get_or_404(Hotel, hotel_id, "Hotel")
    rates = PortHotelRate.query.filter_by(hotel_id=hotel.id).all()
    return jsonify([r.to_dict() for r in rates]), 200


@catalog_bp.put("/hotels/<hotel_id>/port-rates")
@admin_required
def replace_port_rates(hotel_id: str):
    """Body: {"rates": [{"port_id": ..., "price": "45.00"}, ...]}; replaces the hotel's rate card."""
    hotel = _get_or_404(Hotel, hotel_id, "Hotel")
    data = request.get_json(silent=True) or {}
    items = data.get("rates")
    if not isinstance(items, list):
        raise ValidationError("rates must be a list", field="rates")

    clean = {}
    for item in items:
        item = item if isinstance(item, dict) else {}
        port_id = str(item.get("port_id") or "")
        if not port_id or not db.session.get(Port, port_id):
            raise ValidationError("Unknown port", field="port_id")
        clean[port_id] = format_amount(parse_amount(item.get("price"), "price"))

    PortHotelRate.query.filter_by(hotel_id=hotel.id).delete(synchronize_session=False)
    for port_id, price in clean.items():
        db.session.add(PortHotelRate(port_id=port_id, hotel_id=hotel.id, price=price))
    db.session.commit()

    log_event("HOTEL_PORT_RATES_UPDATE", entity="hotel", entity_id=hotel.id, metadata={"count": len(clean)})
    rates = PortHotelRate.query.filter_by(hotel_id=hotel.id).all()
    return jsonify([r.to_dict() for r in rates]), 200


# ---------- zones ----------
@catalog_bp.get("/zones")
@admin_required
def list_zones():
    zones = Zone.query.order_by(Zone.name.asc()).all()
    return jsonify([z.to_dict() for z in zones]), 200


@catalog_bp.post("/zones")
@admin_required
def create_zone():
    data = request.get_json(silent=True) or {}
    zone = Zone(
        name=_text(data, "name", required=True, max_len=120),
        description=_text(data, "description", max_len=2000),
    )
    db.session.add(zone)
    conflict = _commit_or_conflict("Zone name already exists")
    if conflict:
        return conflict

    log_event("ZONE_CREATE", entity="zone", entity_id=zone.id)
    return jsonify(zone.to_dict()), 201


@catalog_bp.put("/zones/<zone_id>")
@admin_required
def update_zone(zone_id: str):
    zone = _get_or_404(Zone, zone_id, "Zone")
    data = request.get_json(silent=True) or {}
    if "name" in data:
        zone.name = _text(data, "name", required=True, max_len=120)
    if "description" in data:
        zone.description = _text(data, "description", max_len=2000)
    if "is_active" in data:
        zone.is_active = bool(data.get("is_active"))
    conflict = _commit_or_conflict("Zone name already exists")
    if conflict:
        return conflict

    log_event("ZONE_UPDATE", entity="zone", entity_id=zone.id)
    return jsonify(zone.to_dict()), 200


@catalog_bp.delete("/zones/<zone_id>")
@admin_required
def delete_zone(zone_id: str):
    zone = _get_or_404(Zone, zone_id, "Zone")
    ZoneRoute.query.filter(
        (ZoneRoute.origin_zone_id == zone.id) | (ZoneRoute.destination_zone_id == zone.id)
    ).delete(synchronize_session=False)
    Rate.query.filter_by(zone_id=zone.id).delete(synchronize_session=False)
    Hotel.query.filter_by(zone_id=zone.id).update({"zone_id": None}, synchronize_session=False)
    db.session.delete(zone)
    db.session.commit()

    log_event("ZONE_DELETE", entity="zone", entity_id=zone_id)
    return jsonify(success=True), 200


# ---------- zone routes ----------
@catalog_bp.get("/zone-routes")
@admin_required
def list_zone_routes():
    routes = ZoneRoute.query.order_by(ZoneRoute.created_at.asc()).all()
    return jsonify([r.to_dict() for r in routes]), 200


@catalog_bp.post("/zone-routes")
@admin_required
def upsert_zone_route():
    """Create or update the price for an ordered (origin, destination) zone pair."""
    data = request.get_json(silent=True) or {}
    origin = _zone_ref(data, "origin_zone_id")
    destination = _zone_ref(data, "destination_zone_id")
    price = format_amount(parse_amount(data.get("price"), "price"))

    route = ZoneRoute.query.filter_by(origin_zone_id=origin, destination_zone_id=destination).first()
    created = route is None
    if created:
        route = ZoneRoute(origin_zone_id=origin, destination_zone_id=destination, price=price)
        db.session.add(route)
    else:
        route.price = price
    if "is_active" in data:
        route.is_active = bool(data.get("is_active"))

    conflict = _commit_or_conflict("Route for this zone pair was just created; retry")
    if conflict:
        return conflict

    log_event("ZONE_ROUTE_UPSERT", entity="zone_route", entity_id=route.id,
              metadata={"origin": origin, "destination": destination, "price": price, "created": created})
    return jsonify(route.to_dict()), 201 if created else 200


@catalog_bp.delete("/zone-routes/<route_id>")
@admin_required
def delete_zone_route(route_id: str):
    route = _get_or_404(ZoneRoute, route_id, "Zone route")
    db.session.delete(route)
    db.session.commit()

    log_event("ZONE_ROUTE_DELETE", entity="zone_route", entity_id=route_id)
    return jsonify(success=True), 200


# ---------- rates ----------
def _apply_rate(rate, data, partial=False):
    if not partial or "zone_id" in data:
        rate.zone_id = _zone_ref(data, "zone_id")
    if not partial or "vehicle_class" in data:
        rate.vehicle_class = _vehicle_class(data)
    if not partial or "min_party_size" in data:
        rate.min_party_size = _int(data, "min_party_size", minimum=1)
    if not partial or "max_party_size" in data:
        rate.max_party_size = _int(data, "max_party_size", minimum=1)
    if not partial or "base_price" in data:
        rate.base_price = format_amount(parse_amount(data.get("base_price"), "base_price"))
    if data.get("driver_fee") not in (None, ""):
        rate.driver_fee = format_amount(parse_amount(data.get("driver_fee"), "driver_fee"))
    if "is_active" in data:
        rate.is_active = bool(data.get("is_active"))

    if rate.min_party_size > rate.max_party_size:
        raise ValidationError("min_party_size must not exceed max_party_size", field="min_party_size")


@catalog_bp.get("/rates")
@admin_required
def list_rates():
    q = Rate.query
    zone_id = request.args.get("zone_id")
    if zone_id:
        q = q.filter_by(zone_id=zone_id)
    rates = q.order_by(Rate.vehicle_class.asc(), Rate.min_party_size.asc()).all()
    return jsonify([r.to_dict() for r in rates]), 200


@catalog_bp.post("/rates")
@admin_required
def create_rate():
    rate = Rate()
    _apply_rate(rate, request.get_json(silent=True) or {})
    db.session.add(rate)
    db.session.commit()

    log_event("RATE_CREATE", entity="rate", entity_id=rate.id)
    return jsonify(rate.to_dict()), 201


@catalog_bp.put("/rates/<rate_id>")
@admin_required
def update_rate(rate_id: str):
    rate = _get_or_404(Rate, rate_id, "Rate")
    _apply_rate(rate, request.get_json(silent=True) or {}, partial=True)
    db.session.commit()

    log_event("RATE_UPDATE", entity="rate", entity_id=rate.id)
    return jsonify(rate.to_dict()), 200


@catalog_bp.delete("/rates/<rate_id>")
@admin_required
def delete_rate(rate_id: str):
    rate = _get_or_404(Rate, rate_id, "Rate")
    db.session.delete(rate)
    db.session.commit()

    log_event("RATE_DELETE", entity="rate", entity_id=rate_id)
    return jsonify(success=True), 200


# ---------- pricing rules ----------
def _date(data, field):
    value = data.get(field)
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date, e.g. 2026-12-20", field=field)


def _time(data, field):
    value = _text(data, field, max_len=5)
    if value and not HHMM_RE.match(value):
        raise ValidationError(f"{field} must be HH:MM", field=field)
    return value


def _days(data):
    days = data.get("days_of_week")
    if not days:
        return None
    if not isinstance(days, list):
        raise ValidationError("days_of_week must be a list", field="days_of_week")
    clean = [str(d).strip().lower() for d in days]
    bad = [d for d in clean if d not in WEEKDAYS]
    if bad:
        raise ValidationError(f"Unknown weekday: {bad[0]}", field="days_of_week")
    return clean


def _apply_pricing_rule(rule, data, partial=False):
    if not partial or "name" in data:
        rule.name = _text(data, "name", required=True, max_len=120)
    if "description" in data:
        rule.description = _text(data, "description", max_len=2000)
    if "vehicle_class" in data:
        rule.vehicle_class = _vehicle_class(data, required=False)
    if "zone_id" in data:
        rule.zone_id = _zone_ref(data, "zone_id", required=False)
    if data.get("multiplier") not in (None, ""):
        rule.multiplier = format_amount(parse_amount(data.get("multiplier"), "multiplier"))
    if data.get("fixed_amount") not in (None, ""):
        rule.fixed_amount = format_amount(parse_amount(data.get("fixed_amount"), "fixed_amount", allow_negative=True))
    if "days_of_week" in data:
        rule.days_of_week = _days(data)
    if "start_time" in data:
        rule.start_time = _time(data, "start_time")
    if "end_time" in data:
        rule.end_time = _time(data, "end_time")
    if "start_date" in data:
        rule.start_date = _date(data, "start_date")
    if "end_date" in data:
        rule.end_date = _date(data, "end_date")
    if "priority" in data:
        rule.priority = _int(data, "priority")
    if "is_active" in data:
        rule.is_active = bool(data.get("is_active"))

    if rule.start_date and rule.end_date and rule.end_date < rule.start_date:
        raise ValidationError("end_date must not be before start_date", field="end_date")


@catalog_bp.get("/pricing-rules")
@admin_required
def list_pricing_rules():
    rules = PricingRule.query.order_by(PricingRule.priority.desc(), PricingRule.name.asc()).all()
    return jsonify([r.to_dict() for r in rules]), 200


@catalog_bp.post("/pricing-rules")
@admin_required
def create_pricing_rule():
    rule = PricingRule()
    _apply_pricing_rule(rule, request.get_json(silent=True) or {})
    db.session.add(rule)
    db.session.commit()

    log_event("PRICING_RULE_CREATE", entity="pricing_rule", entity_id=rule.id)
    return jsonify(rule.to_dict()), 201


@catalog_bp.put("/pricing-rules/<rule_id>")
@admin_required
def update_pricing_rule(rule_id: str):
    rule = _get_or_404(PricingRule, rule_id, "Pricing rule")
    _apply_pricing_rule(rule, request.get_json(silent=True) or {}, partial=True)
    db.session.commit()

    log_event("PRICING_RULE_UPDATE", entity="pricing_rule", entity_id=rule.id)
    return jsonify(rule.to_dict()), 200


@catalog_bp.delete("/pricing-rules/<rule_id>")
@admin_required
def delete_pricing_rule(rule_id: str):
    rule = _get_or_404(PricingRule, rule_id, "Pricing rule")
    db.session.delete(rule)
    db.session.commit()

    log_event("PRICING_RULE_DELETE", entity="pricing_rule", entity_id=rule_id)
    return jsonify(success=True), 200


# ---------- ports ----------
@catalog_bp.get("/ports")
@admin_required
def list_ports():
    ports = Port.query.order_by(Port.name.asc()).all()
    return jsonify([p.to_dict() for p in ports]), 200


@catalog_bp.post("/ports")
@admin_required
def create_port():
    data = request.get_json(silent=True) or {}
    port = Port(
        name=_text(data, "name", required=True, max_len=160),
        code=_text(data, "code", required=True, max_len=40).upper(),
        description=_text(data, "description", max_len=2000),
    )
    db.session.add(port)
    conflict = _commit_or_conflict("Port code already exists")
    if conflict:
        return conflict

    log_event("PORT_CREATE", entity="port", entity_id=port.id)
    return jsonify(port.to_dict()), 201


@catalog_bp.put("/ports/<port_id>")
@admin_required
def update_port(port_id: str):
    port = _get_or_404(Port, port_id, "Port")
    data = request.get_json(silent=True) or {}
    if "name" in data:
        port.name = _text(data, "name", required=True, max_len=160)
    if "code" in data:
        port.code = _text(data, "code", required=True, max_len=40).upper()
    if "description" in data:
        port.description = _text(data, "description", max_len=2000)
    if "is_active" in data:
        port.is_active = bool(data.get("is_active"))
    conflict = _commit_or_conflict("Port code already exists")
    if conflict:
        return conflict

    log_event("PORT_UPDATE", entity="port", entity_id=port.id)
    return jsonify(port.to_dict()), 200


@catalog_bp.delete("/ports/<port_id>")
@admin_required
def delete_port(port_id: str):
    port = _get_or_404(Port, port_id, "Port")
    PortHotelRate.query.filter_by(port_id=port.id).delete(synchronize_session=False)
    db.session.delete(port)
    conflict = _commit_or_conflict("Port is referenced by bookings; deactivate instead")
    if conflict:
        return conflict

    log_event("PORT_DELETE", entity="port", entity_id=port_id)
    return jsonify(success=True), 200
