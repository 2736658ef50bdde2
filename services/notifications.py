import logging

from flask import current_app

from models import db
from models.email_template import EmailTemplate
from services.errors import ExternalServiceError, NotFoundError, ValidationError
from services.templates import render_placeholders
from utils.emailer import send_email
from utils.money import format_amount, to_decimal

logger = logging.getLogger(__name__)

NOTIFY_FAIL = "fail"
NOTIFY_IGNORE = "ignore"
NOTIFY_POLICIES = (NOTIFY_FAIL, NOTIFY_IGNORE)

QUOTE_PENDING_TEXT = "Quote pending - we will contact you shortly"

_BOX = 'style="background: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;"'
_WRAP = 'style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;"'
_SIGNOFF = "<p>Best regards,<br>The {{brandName}} Team</p>"

DEFAULT_TEMPLATES = {
    "booking_confirmation": {
        "name": "Booking Confirmation",
        "trigger_description": "Sent to the customer when a booking is received",
        "recipient_type": "customer",
        "subject": "Booking Confirmation - {{referenceNumber}}",
        "variables": [
            "customerName", "referenceNumber", "pickupDate", "pickupTime", "pickupLocation",
            "dropoffLocation", "passengers", "priceBreakdown", "quoteNote", "brandName",
        ],
        "body": (
            f"<div {_WRAP}>"
            '<h1 style="color: #1a1a2e;">Booking Confirmation</h1>'
            "<p>Dear {{customerName}},</p>"
            "<p>Thank you for booking with {{brandName}}! Here are your booking details:</p>"
            f"<div {_BOX}>"
            "<p><strong>Reference Number:</strong> {{referenceNumber}}</p>"
            "<p><strong>Pickup Date:</strong> {{pickupDate}}</p>"
            "<p><strong>Pickup Time:</strong> {{pickupTime}}</p>"
            "<p><strong>Pickup Location:</strong> {{pickupLocation}}</p>"
            "<p><strong>Dropoff Location:</strong> {{dropoffLocation}}</p>"
            "<p><strong>Passengers:</strong> {{passengers}}</p>"
            "<p><strong>Total:</strong> {{priceBreakdown}}</p>"
            "</div>"
            "{{quoteNote}}"
            "<p>If you have any questions, please don't hesitate to contact us.</p>"
            f"{_SIGNOFF}</div>"
        ),
    },
    "quote_ready": {
        "name": "Quote Ready",
        "trigger_description": "Sent to the customer when an admin sets pricing on a destination booking",
        "recipient_type": "customer",
        "subject": "Your Quote is Ready - Booking {{referenceNumber}}",
        "variables": ["customerName", "referenceNumber", "bookingFee", "driverFee", "totalAmount", "brandName"],
        "body": (
            f"<div {_WRAP}>"
            '<h1 style="color: #1a1a2e;">Your Quote is Ready</h1>'
            "<p>Dear {{customerName}},</p>"
            "<p>Great news! We've prepared a quote for your airport transfer:</p>"
            f"<div {_BOX}>"
            "<p><strong>Reference Number:</strong> {{referenceNumber}}</p>"
            "<p><strong>Booking Fee:</strong> ${{bookingFee}}</p>"
            "<p><strong>Driver Fee:</strong> ${{driverFee}}</p>"
            '<p style="font-size: 18px;"><strong>Total Amount:</strong> ${{totalAmount}}</p>'
            "</div>"
            "<p>A payment link will be sent to you shortly to complete your booking.</p>"
            f"{_SIGNOFF}</div>"
        ),
    },
    "payment_link": {
        "name": "Payment Link",
        "trigger_description": "Sent to the customer when an admin sends a payment link",
        "recipient_type": "customer",
        "subject": "Payment Required - Booking {{referenceNumber}}",
        "variables": ["customerName", "referenceNumber", "totalAmount", "paymentLink", "brandName"],
        "body": (
            f"<div {_WRAP}>"
            '<h1 style="color: #1a1a2e;">Payment Required</h1>'
            "<p>Dear {{customerName}},</p>"
            "<p>Your booking quote is ready! Please complete your payment to confirm your transfer.</p>"
            f"<div {_BOX}>"
            "<p><strong>Reference Number:</strong> {{referenceNumber}}</p>"
            "<p><strong>Total Amount:</strong> ${{totalAmount}}</p>"
            "</div>"
            '<div style="text-align: center; margin: 30px 0;">'
            '<a href="{{paymentLink}}" style="background: #4f46e5; color: white; padding: 15px 30px; '
            'text-decoration: none; border-radius: 8px; font-weight: bold;">Pay Now</a>'
            "</div>"
            '<p style="color: #666; font-size: 14px;">This payment link will expire in 24 hours.</p>'
            f"{_SIGNOFF}</div>"
        ),
    },
    "payment_confirmation": {
        "name": "Payment Confirmation",
        "trigger_description": "Sent to the customer when Stripe reports a completed checkout",
        "recipient_type": "customer",
        "subject": "Payment Confirmed - Booking {{referenceNumber}}",
        "variables": [
            "customerName", "referenceNumber", "pickupDate", "pickupTime", "pickupLocation",
            "dropoffLocation", "totalAmount", "brandName",
        ],
        "body": (
            f"<div {_WRAP}>"
            '<h1 style="color: #22c55e;">Payment Confirmed!</h1>'
            "<p>Dear {{customerName}},</p>"
            "<p>Thank you! Your payment has been successfully processed for your airport transfer.</p>"
            f"<div {_BOX}>"
            "<p><strong>Reference Number:</strong> {{referenceNumber}}</p>"
            "<p><strong>Pickup Date:</strong> {{pickupDate}} {{pickupTime}}</p>"
            "<p><strong>Pickup Location:</strong> {{pickupLocation}}</p>"
            "<p><strong>Dropoff Location:</strong> {{dropoffLocation}}</p>"
            "<p><strong>Amount Paid:</strong> ${{totalAmount}}</p>"
            "</div>"
            "<p>Your driver details will be sent to you closer to your pickup date.</p>"
            f"{_SIGNOFF}</div>"
        ),
    },
    "driver_assignment": {
        "name": "Driver Trip Assignment",
        "trigger_description": "Sent to the driver when they are assigned to a booking",
        "recipient_type": "driver",
        "subject": "New Trip Assignment - {{referenceNumber}}",
        "variables": [
            "driverName", "referenceNumber", "pickupDate", "pickupTime", "pickupLocation", "dropoffLocation",
            "flightNumber", "vehicleClass", "partySize", "customerName", "customerPhone", "driverFee", "brandName",
        ],
        "body": (
            f"<div {_WRAP}>"
            '<h1 style="color: #1a1a2e;">New Trip Assignment</h1>'
            "<p>Dear {{driverName}},</p>"
            "<p>You have been assigned a new transfer. Please review the details below:</p>"
            f"<div {_BOX}>"
            '<h3 style="margin-top: 0;">Trip Details</h3>'
            "<p><strong>Reference Number:</strong> {{referenceNumber}}</p>"
            "<p><strong>Pickup Date:</strong> {{pickupDate}} {{pickupTime}}</p>"
            "<p><strong>Pickup Location:</strong> {{pickupLocation}}</p>"
            "<p><strong>Dropoff Location:</strong> {{dropoffLocation}}</p>"
            "<p><strong>Flight Number:</strong> {{flightNumber}}</p>"
            "<p><strong>Vehicle Class:</strong> {{vehicleClass}}</p>"
            "<p><strong>Party Size:</strong> {{partySize}} passenger(s)</p>"
            "</div>"
            '<div style="background: #e0f2fe; padding: 20px; border-radius: 8px; margin: 20px 0;">'
            '<h3 style="margin-top: 0;">Customer Information</h3>'
            "<p><strong>Name:</strong> {{customerName}}</p>"
            "<p><strong>Phone:</strong> {{customerPhone}}</p>"
            "</div>"
            '<div style="background: #dcfce7; padding: 20px; border-radius: 8px; margin: 20px 0;">'
            '<p style="font-size: 18px; margin: 0;"><strong>Your Fee:</strong> ${{driverFee}}</p>'
            "</div>"
            "<p>Please confirm your availability and contact the customer if needed.</p>"
            f"{_SIGNOFF}</div>"
        ),
    },
    "driver_assigned_customer": {
        "name": "Driver Assigned (Customer)",
        "trigger_description": "Sent to the customer when a driver is assigned to their booking",
        "recipient_type": "customer",
        "subject": "Your Driver Has Been Assigned - {{referenceNumber}}",
        "variables": [
            "customerName", "referenceNumber", "driverName", "driverPhone", "vehicleDetails",
            "vehicleNumber", "pickupDate", "pickupTime", "pickupLocation", "dropoffLocation", "brandName",
        ],
        "body": (
            f"<div {_WRAP}>"
            '<h1 style="color: #1a1a2e;">Your Driver Has Been Assigned</h1>'
            "<p>Dear {{customerName}},</p>"
            "<p>Your airport transfer now has a driver. Here are the details:</p>"
            f"<div {_BOX}>"
            "<p><strong>Reference Number:</strong> {{referenceNumber}}</p>"
            "<p><strong>Driver:</strong> {{driverName}}</p>"
            "<p><strong>Driver Phone:</strong> {{driverPhone}}</p>"
            "<p><strong>Vehicle:</strong> {{vehicleDetails}} ({{vehicleNumber}})</p>"
            "<p><strong>Pickup Date:</strong> {{pickupDate}} {{pickupTime}}</p>"
            "<p><strong>Pickup Location:</strong> {{pickupLocation}}</p>"
            "<p><strong>Dropoff Location:</strong> {{dropoffLocation}}</p>"
            "</div>"
            f"{_SIGNOFF}</div>"
        ),
    },
}

DESTINATION_QUOTE_NOTE = (
    '<p style="color: #666;">For destination link bookings, our team will review your request '
    "and send you a custom quote shortly.</p>"
)


def notify(fn, *args, policy: str = NOTIFY_FAIL, **kwargs):
    """
    Run one notification under an explicit failure policy.

    ``fail`` lets ExternalServiceError propagate to the caller; ``ignore`` logs
    it and returns None so the surrounding state change still commits.
    """
    if policy not in NOTIFY_POLICIES:
        raise ValueError(f"Unknown notify policy: {policy}")
    try:
        return fn(*args, **kwargs)
    except ExternalServiceError as exc:
        if policy == NOTIFY_FAIL:
            raise
        logger.warning("Notification %s failed, continuing: %s", fn.__name__, exc.message)
        return None


def price_breakdown_text(booking_type: str, total_amount=None, trip_price=None, tax_amount=None) -> str:
    if booking_type != "hotel":
        return QUOTE_PENDING_TEXT
    if trip_price is not None and tax_amount is not None and to_decimal(tax_amount) > 0:
        total = to_decimal(trip_price) + to_decimal(tax_amount)
        return (
            f"Trip: ${format_amount(trip_price)} + Tax: ${format_amount(tax_amount)}"
            f" = Total: ${format_amount(total)}"
        )
    return f"${total_amount or '30.00'}"


def _pickup_parts(booking):
    if not booking.pickup_date:
        return "", ""
    return booking.pickup_date.strftime("%B %d, %Y"), booking.pickup_date.strftime("%H:%M")


def booking_variables(booking) -> dict:
    pickup_date, pickup_time = _pickup_parts(booking)
    return {
        "customerName": booking.customer_name,
        "customerEmail": booking.customer_email,
        "customerPhone": booking.customer_phone,
        "referenceNumber": booking.reference_number,
        "bookingType": booking.booking_type,
        "pickupDate": pickup_date,
        "pickupTime": pickup_time,
        "pickupLocation": booking.pickup_location,
        "dropoffLocation": booking.dropoff_location,
        "passengers": booking.party_size,
        "partySize": booking.party_size,
        "flightNumber": booking.flight_number,
        "vehicleClass": booking.vehicle_class,
        "bookingFee": booking.booking_fee or "",
        "driverFee": booking.driver_fee or "",
        "totalAmount": booking.total_amount or "",
    }


def resolve_template(key: str):
    """Returns (subject, body) from the stored template if active, else the built-in default."""
    template = EmailTemplate.query.filter_by(key=key).first()
    if template and template.is_active:
        return template.subject, template.body

    default = DEFAULT_TEMPLATES.get(key)
    if not default:
        raise NotFoundError(f"No email template for {key}")
    return default["subject"], default["body"]


def _dispatch(key: str, to_email: str, variables: dict) -> dict:
    variables = dict(variables)
    variables.setdefault("brandName", current_app.config.get("EMAIL_BRAND_NAME", "AirTransfer"))

    subject_tpl, body_tpl = resolve_template(key)
    subject = render_placeholders(subject_tpl, variables)
    html = render_placeholders(body_tpl, variables)

    ok, error = send_email(to_email, subject, html)
    if not ok:
        logger.error("Failed to send %s email to %s: %s", key, to_email, error)
        raise ExternalServiceError(f"Failed to send {key} email", reason=error)

    logger.info("Sent %s email to %s", key, to_email)
    return {"template": key, "to": to_email, "subject": subject}


def send_templated(key: str, to_email: str, variables: dict) -> dict:
    if not to_email or "@" not in to_email:
        raise ValidationError("A valid recipient email is required", field="to")
    return _dispatch(key, to_email, variables)


def send_booking_confirmation(booking, trip_price=None, tax_amount=None) -> dict:
    variables = booking_variables(booking)
    variables["priceBreakdown"] = price_breakdown_text(
        booking.booking_type, booking.total_amount, trip_price, tax_amount
    )
    variables["quoteNote"] = "" if booking.is_hotel else DESTINATION_QUOTE_NOTE
    return _dispatch("booking_confirmation", booking.customer_email, variables)


def send_quote_notification(booking) -> dict:
    return _dispatch("quote_ready", booking.customer_email, booking_variables(booking))


def send_payment_link(booking, payment_link: str) -> dict:
    variables = booking_variables(booking)
    variables["paymentLink"] = payment_link
    return _dispatch("payment_link", booking.customer_email, variables)


def send_payment_confirmation(booking) -> dict:
    return _dispatch("payment_confirmation", booking.customer_email, booking_variables(booking))


def send_driver_assignment(driver, booking) -> dict:
    variables = booking_variables(booking)
    variables["driverName"] = driver.name
    return _dispatch("driver_assignment", driver.email, variables)


def send_driver_assigned_to_customer(driver, booking) -> dict:
    variables = booking_variables(booking)
    variables.update({
        "driverName": driver.name,
        "driverPhone": driver.phone,
        "vehicleDetails": driver.vehicle_details or driver.vehicle_class,
        "vehicleNumber": driver.vehicle_number or "",
    })
    return _dispatch("driver_assigned_customer", booking.customer_email, variables)


def seed_email_templates():
    existing = {t.key for t in EmailTemplate.query.all()}
    for key, default in DEFAULT_TEMPLATES.items():
        if key in existing:
            continue
        db.session.add(EmailTemplate(
            key=key,
            name=default["name"],
            trigger_description=default["trigger_description"],
            subject=default["subject"],
            body=default["body"],
            available_variables=list(default["variables"]),
            recipient_type=default["recipient_type"],
            is_active=True,
        ))
    db.session.commit()
