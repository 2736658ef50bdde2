from models.db import db, generate_uuid, utcnow, iso


class Port(db.Model):
    """Airport or ferry terminal a customer arrives at."""

    __tablename__ = "ports"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    name = db.Column(db.String(160), nullable=False)
    code = db.Column(db.String(40), unique=True, nullable=False)  # UVF, SLU, PORT_CASTRIES
    description = db.Column(db.Text, nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": iso(self.created_at),
        }


class PortHotelRate(db.Model):
    __tablename__ = "port_hotel_rates"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    port_id = db.Column(db.String(36), db.ForeignKey("ports.id", ondelete="CASCADE"), nullable=False, index=True)
    hotel_id = db.Column(db.String(36), db.ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False, index=True)
    price = db.Column(db.String(20), nullable=False)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("port_id", "hotel_id", name="uq_port_hotel_rate"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "port_id": self.port_id,
            "hotel_id": self.hotel_id,
            "price": self.price,
            "is_active": self.is_active,
            "created_at": iso(self.created_at),
        }
