import logging

from sqlalchemy.exc import IntegrityError

from models import db
from models.webhook_event import WebhookEvent
from services import notifications
from services.bookings import mark_paid
from services.notifications import notify

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


def _already_processed(event_id) -> bool:
    if not event_id:
        return False
    return WebhookEvent.query.filter_by(stripe_event_id=event_id).first() is not None


def _record(event_id, event_type, booking_id):
    if not event_id:
        return
    db.session.add(WebhookEvent(stripe_event_id=event_id, event_type=event_type or "", booking_id=booking_id))
    try:
        db.session.commit()
    except IntegrityError:
        # a concurrent delivery of the same event got there first
        db.session.rollback()


def reconcile_event(event: dict) -> dict:
    """
    Apply a verified Stripe event to the booking ledger.

    Only ``checkout.session.completed`` does anything: the booking named in
    ``metadata.bookingId`` moves to paid_fee and the customer is emailed.
    Redelivered events (same id) and bookings already past ``new`` are no-ops.
    """
    event_id = event.get("id")
    event_type = event.get("type")
    result = {"event_id": event_id, "type": event_type, "handled": False}

    if _already_processed(event_id):
        logger.info("Stripe event %s already processed", event_id)
        result["duplicate"] = True
        return result

    booking_id = None
    if event_type == CHECKOUT_COMPLETED:
        session = (event.get("data") or {}).get("object") or {}
        booking_id = (session.get("metadata") or {}).get("bookingId")

        if not booking_id:
            logger.warning("Checkout session %s completed without a bookingId", session.get("id"))
        else:
            booking, changed = mark_paid(booking_id)
            result.update(handled=booking is not None, booking_id=booking_id, status_changed=changed)
            if booking is not None:
                result["status"] = booking.status
            if changed:
                # acknowledgement never depends on mail delivery
                sent = notify(notifications.send_payment_confirmation, booking, policy=notifications.NOTIFY_IGNORE)
                result["confirmation_sent"] = sent is not None

    _record(event_id, event_type, booking_id)
    return result
