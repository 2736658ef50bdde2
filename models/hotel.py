from models.db import db, generate_uuid, utcnow, iso


class Hotel(db.Model):
    __tablename__ = "hotels"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    name = db.Column(db.String(160), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    zone = db.Column(db.String(120), nullable=True)  # legacy free-text zone, superseded by zone_id
    zone_id = db.Column(db.String(36), db.ForeignKey("zones.id"), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "zone": self.zone,
            "zone_id": self.zone_id,
            "is_active": self.is_active,
            "created_at": iso(self.created_at),
        }
