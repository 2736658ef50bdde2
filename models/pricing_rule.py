from models.db import db, generate_uuid, utcnow, iso


class PricingRule(db.Model):
    """Seasonal / time-of-day price modifier. Stored for the back-office only."""

    __tablename__ = "pricing_rules"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    vehicle_class = db.Column(db.String(20), nullable=True)  # null applies to all
    zone_id = db.Column(db.String(36), db.ForeignKey("zones.id", ondelete="CASCADE"), nullable=True)  # null applies to all
    multiplier = db.Column(db.String(20), nullable=False, default="1.00")
    fixed_amount = db.Column(db.String(20), nullable=False, default="0.00")
    days_of_week = db.Column(db.JSON, nullable=True)  # ["monday", ...]
    start_time = db.Column(db.String(5), nullable=True)  # HH:MM
    end_time = db.Column(db.String(5), nullable=True)
    start_date = db.Column(db.DateTime, nullable=True)
    end_date = db.Column(db.DateTime, nullable=True)
    priority = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "vehicle_class": self.vehicle_class,
            "zone_id": self.zone_id,
            "multiplier": self.multiplier,
            "fixed_amount": self.fixed_amount,
            "days_of_week": self.days_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "priority": self.priority,
            "is_active": self.is_active,
            "created_at": iso(self.created_at),
        }
