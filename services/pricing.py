"""
Derived pricing figures for display: large-party surcharge and tax.

Nothing here writes to a booking. Stored totals are set by the fixed hotel
defaults at creation or by an admin through ``services.bookings.set_pricing``.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from models import db
from models.setting import Setting
from models.db import utcnow
from services.errors import ValidationError
from utils.money import CENT, format_amount, parse_amount, to_decimal

SURCHARGE_AMOUNT_KEY = "large_party_surcharge_amount"
MIN_PARTY_SIZE_KEY = "large_party_min_size"
TAX_PERCENTAGE_KEY = "tax_percentage"

DEFAULT_SETTINGS = {
    SURCHARGE_AMOUNT_KEY: ("20", "Additional fee charged when party size is equal to or exceeds the minimum threshold"),
    MIN_PARTY_SIZE_KEY: ("4", "Minimum number of travelers to trigger the large party surcharge"),
    TAX_PERCENTAGE_KEY: ("0", "Tax percentage applied to the trip price in customer-facing breakdowns"),
}


@dataclass(frozen=True)
class PricingSettings:
    surcharge_amount: Decimal = Decimal("20.00")
    min_party_size: int = 4
    tax_percentage: Decimal = Decimal("0")


def _get_value(key: str):
    row = Setting.query.filter_by(key=key).first()
    return row.value if row else None


def load_pricing_settings() -> PricingSettings:
    defaults = PricingSettings()

    # Bad values stored before validation existed fall back to defaults
    try:
        surcharge = to_decimal(_get_value(SURCHARGE_AMOUNT_KEY), str(defaults.surcharge_amount)).quantize(CENT)
    except InvalidOperation:
        surcharge = defaults.surcharge_amount
    try:
        min_size = int(_get_value(MIN_PARTY_SIZE_KEY) or defaults.min_party_size)
    except ValueError:
        min_size = defaults.min_party_size
    try:
        tax = to_decimal(_get_value(TAX_PERCENTAGE_KEY), str(defaults.tax_percentage))
    except InvalidOperation:
        tax = defaults.tax_percentage

    return PricingSettings(surcharge_amount=surcharge, min_party_size=min_size, tax_percentage=tax)


def derive_base_rate(party_size: int, total_amount, settings: PricingSettings):
    """
    Returns (base_rate, surcharge) as Decimals.

    For a large party the surcharge is already included in ``total_amount``,
    so the base rate is backed out of it. Smaller parties pay the total as-is.
    """
    total = to_decimal(total_amount).quantize(CENT)
    if party_size is not None and party_size >= settings.min_party_size:
        return (total - settings.surcharge_amount).quantize(CENT), settings.surcharge_amount
    return total, Decimal("0.00")


def apply_tax(trip_price, settings: PricingSettings):
    """Returns (trip_price, tax_amount, total) for a pre-tax trip price."""
    trip = to_decimal(trip_price).quantize(CENT)
    tax = (trip * settings.tax_percentage / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
    return trip, tax, (trip + tax).quantize(CENT)


def pricing_breakdown(booking, settings: PricingSettings = None) -> dict:
    settings = settings or load_pricing_settings()
    if not booking.pricing_set or booking.total_amount is None:
        return {
            "pricing_set": False,
            "total_amount": None,
            "base_rate": None,
            "large_party_surcharge": None,
            "tax_percentage": str(settings.tax_percentage),
        }

    base, surcharge = derive_base_rate(booking.party_size, booking.total_amount, settings)
    trip, tax, total_with_tax = apply_tax(booking.total_amount, settings)
    return {
        "pricing_set": True,
        "total_amount": format_amount(booking.total_amount),
        "base_rate": format_amount(base),
        "large_party_surcharge": format_amount(surcharge),
        "large_party_min_size": settings.min_party_size,
        "tax_percentage": str(settings.tax_percentage),
        "trip_price": format_amount(trip),
        "tax_amount": format_amount(tax),
        "total_with_tax": format_amount(total_with_tax),
    }


def _validate_setting(key: str, value) -> str:
    if key == MIN_PARTY_SIZE_KEY:
        try:
            size = int(str(value).strip())
        except (TypeError, ValueError):
            raise ValidationError("large_party_min_size must be a whole number", field=key)
        if size < 2:
            raise ValidationError("large_party_min_size must be at least 2", field=key)
        return str(size)
    if key == SURCHARGE_AMOUNT_KEY:
        return format_amount(parse_amount(value, key))
    if key == TAX_PERCENTAGE_KEY:
        pct = parse_amount(value, key)
        if pct > 100:
            raise ValidationError("tax_percentage must be between 0 and 100", field=key)
        return format_amount(pct)
    if value is None or not str(value).strip():
        raise ValidationError("value is required", field=key)
    return str(value).strip()


def upsert_setting(key: str, value, description: str = None) -> Setting:
    key = (key or "").strip()
    if not key:
        raise ValidationError("key is required", field="key")
    clean = _validate_setting(key, value)

    row = Setting.query.filter_by(key=key).first()
    if not row:
        row = Setting(key=key, value=clean, description=description)
        db.session.add(row)
    else:
        row.value = clean
        if description is not None:
            row.description = description
        row.updated_at = utcnow()
    db.session.commit()
    return row


def seed_settings():
    existing = {s.key for s in Setting.query.all()}
    for key, (value, description) in DEFAULT_SETTINGS.items():
        if key not in existing:
            db.session.add(Setting(key=key, value=value, description=description))
    db.session.commit()
