from models.db import db, utcnow


class WebhookEvent(db.Model):
    """Every verified Stripe event we have acted on; replays are dropped by event id."""

    __tablename__ = "webhook_events"

    id = db.Column(db.Integer, primary_key=True)
    stripe_event_id = db.Column(db.String(255), unique=True, nullable=False, index=True)
    event_type = db.Column(db.String(80), nullable=False)
    booking_id = db.Column(db.String(36), nullable=True)
    received_at = db.Column(db.DateTime, default=utcnow, nullable=False)
