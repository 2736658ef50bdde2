import json

import stripe
from flask import current_app

from services.errors import ExternalServiceError, ServiceError, SignatureError
from utils.money import to_minor_units


def _configure_stripe():
    api_key = current_app.config.get("STRIPE_SECRET_KEY")
    if not api_key:
        raise ExternalServiceError("Stripe secret key not configured (STRIPE_SECRET_KEY)")
    stripe.api_key = api_key


def create_payment_link(booking):
    """
    Creates a Stripe Checkout Session for the booking total.
    Returns (checkout_url, session_id).
    """
    _configure_stripe()
    cfg = current_app.config

    try:
        session = stripe.checkout.Session.create(
            mode="payment",
            line_items=[{
                "price_data": {
                    "currency": cfg.get("STRIPE_CURRENCY", "usd"),
                    "product_data": {
                        "name": f"Airport transfer ({booking.reference_number})",
                        "description": f"{booking.pickup_location} to {booking.dropoff_location}",
                    },
                    # Stripe expects the smallest currency unit
                    "unit_amount": to_minor_units(booking.total_amount),
                },
                "quantity": 1,
            }],
            customer_email=booking.customer_email,
            success_url=cfg.get("PAYMENT_SUCCESS_URL"),
            cancel_url=cfg.get("PAYMENT_CANCEL_URL"),
            metadata={
                "bookingId": booking.id,
                "referenceNumber": booking.reference_number,
            },
        )
    except stripe.StripeError as exc:
        raise ExternalServiceError("Failed to create payment link", reason=str(exc))

    return session["url"], session["id"]


def verify_webhook_event(payload: bytes, signature: str) -> dict:
    """
    Checks the Stripe-Signature header against the raw body and returns the
    event as a plain dict. A missing or wrong signature raises SignatureError
    before the payload is looked at.
    """
    secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    if not secret:
        raise ServiceError("Webhook secret not configured")
    if not signature:
        raise SignatureError("Missing Stripe-Signature header")

    try:
        stripe.Webhook.construct_event(payload, signature, secret)
    except (ValueError, stripe.SignatureVerificationError):
        raise SignatureError("Invalid webhook signature")

    return json.loads(payload)
