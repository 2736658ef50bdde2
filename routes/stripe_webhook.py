import logging

from flask import Blueprint, request, jsonify

from services.payments import verify_webhook_event
from services.webhooks import reconcile_event
from utils.audit import log_event

logger = logging.getLogger(__name__)

webhook_bp = Blueprint("webhook", __name__, url_prefix="/api/stripe")


@webhook_bp.post("/webhook")
def stripe_webhook():
    # Raises SignatureError (400) before anything in the payload is trusted
    event = verify_webhook_event(request.get_data(), request.headers.get("Stripe-Signature"))

    result = reconcile_event(event)
    logger.info("Stripe event %s (%s) reconciled: %s", result.get("event_id"), result.get("type"), result)

    if result.get("status_changed"):
        log_event("PAYMENT_PAID", entity="booking", entity_id=result.get("booking_id"),
                  metadata={"stripe_event_id": result.get("event_id"),
                            "confirmation_sent": result.get("confirmation_sent")})

    # Once the ledger is in sync Stripe always gets a 2xx, otherwise it redelivers
    return jsonify(received=True, duplicate=bool(result.get("duplicate"))), 200
