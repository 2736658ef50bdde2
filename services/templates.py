import re

from markupsafe import escape

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z0-9_.-]+)\s*\}\}")

SAMPLE_VALUES = {
    "customerName": "Jane Doe",
    "customerEmail": "jane@example.com",
    "customerPhone": "+1 758 555 0100",
    "referenceNumber": "BK-LX2Q8Z1A-7K3P",
    "bookingType": "hotel",
    "pickupDate": "March 14, 2026",
    "pickupTime": "14:30",
    "pickupLocation": "Hewanorra International Airport (UVF)",
    "dropoffLocation": "Sugar Beach Resort",
    "passengers": 2,
    "partySize": 2,
    "flightNumber": "BA2159",
    "vehicleClass": "standard",
    "priceBreakdown": "$30.00",
    "quoteNote": "",
    "bookingFee": "30.00",
    "driverFee": "30.00",
    "totalAmount": "30.00",
    "paymentLink": "https://checkout.stripe.com/c/pay/cs_test_sample",
    "driverName": "Marcus Joseph",
    "driverPhone": "+1 758 555 0199",
    "vehicleDetails": "Black Toyota Camry",
    "vehicleNumber": "PA 1234",
}


def render_placeholders(template: str, variables: dict) -> str:
    """
    Replace every ``{{name}}`` in ``template`` with ``str(value)``.

    Only names present in ``variables`` are substituted; any other placeholder
    is left in the output untouched. Whitespace inside the braces is allowed,
    so ``{{ name }}`` matches too, and a ``None`` value renders as an empty
    string rather than the text "None". Values are inserted verbatim (no HTML
    escaping), so callers rendering user data for a browser should pass the
    variables through ``escape_variables`` first.
    """
    out = template or ""
    for name, value in (variables or {}).items():
        pattern = r"\{\{\s*" + re.escape(str(name)) + r"\s*\}\}"
        replacement = "" if value is None else str(value)
        out = re.sub(pattern, lambda _m, r=replacement: r, out)
    return out


def escape_variables(variables: dict) -> dict:
    return {name: ("" if value is None else str(escape(value))) for name, value in (variables or {}).items()}


def find_placeholders(template: str) -> list:
    seen = []
    for name in PLACEHOLDER_RE.findall(template or ""):
        if name not in seen:
            seen.append(name)
    return seen


def sample_variables(names) -> dict:
    return {name: SAMPLE_VALUES.get(name, f"[{name}]") for name in names}
