from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from services.errors import ValidationError

CENT = Decimal("0.01")


def parse_amount(value, field: str, allow_negative: bool = False) -> Decimal:
    """Parse a user-supplied amount (str/int/float) into a two-place Decimal."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number", field=field)
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number", field=field)
    if amount < 0 and not allow_negative:
        raise ValidationError(f"{field} must not be negative", field=field)
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value, default="0.00") -> Decimal:
    if value is None or value == "":
        return Decimal(default)
    return Decimal(str(value))


def format_amount(value) -> str:
    return str(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def to_minor_units(value) -> int:
    # 30.00 -> 3000
    return int((to_decimal(value) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
