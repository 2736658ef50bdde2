from models.db import db, generate_uuid, utcnow, iso


class Rate(db.Model):
    __tablename__ = "rates"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    zone_id = db.Column(db.String(36), db.ForeignKey("zones.id", ondelete="CASCADE"), nullable=False, index=True)
    vehicle_class = db.Column(db.String(20), nullable=False)
    min_party_size = db.Column(db.Integer, nullable=False)
    max_party_size = db.Column(db.Integer, nullable=False)
    base_price = db.Column(db.String(20), nullable=False)
    driver_fee = db.Column(db.String(20), nullable=False, default="30.00")

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "zone_id": self.zone_id,
            "vehicle_class": self.vehicle_class,
            "min_party_size": self.min_party_size,
            "max_party_size": self.max_party_size,
            "base_price": self.base_price,
            "driver_fee": self.driver_fee,
            "is_active": self.is_active,
            "created_at": iso(self.created_at),
        }
