from models.db import db, generate_uuid, utcnow, iso


class Zone(db.Model):
    __tablename__ = "zones"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    name = db.Column(db.String(120), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": iso(self.created_at),
        }


class ZoneRoute(db.Model):
    __tablename__ = "zone_routes"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    origin_zone_id = db.Column(db.String(36), db.ForeignKey("zones.id", ondelete="CASCADE"), nullable=False, index=True)
    destination_zone_id = db.Column(db.String(36), db.ForeignKey("zones.id", ondelete="CASCADE"), nullable=False, index=True)
    price = db.Column(db.String(20), nullable=False)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        # One price per ordered (origin, destination) pair
        db.UniqueConstraint("origin_zone_id", "destination_zone_id", name="uq_zone_route_pair"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "origin_zone_id": self.origin_zone_id,
            "destination_zone_id": self.destination_zone_id,
            "price": self.price,
            "is_active": self.is_active,
            "created_at": iso(self.created_at),
        }
