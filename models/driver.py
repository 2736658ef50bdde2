from models.db import db, generate_uuid, utcnow, iso


class Driver(db.Model):
    __tablename__ = "drivers"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(40), nullable=False)

    vehicle_class = db.Column(db.String(20), nullable=False)  # standard, luxury, minivan
    vehicle_details = db.Column(db.String(255), nullable=True)  # e.g. "Black Toyota Camry"
    vehicle_number = db.Column(db.String(40), nullable=True)
    # URLs or base64 data, stored opaquely
    vehicle_photo_url = db.Column(db.Text, nullable=True)
    driver_photo_url = db.Column(db.Text, nullable=True)

    bank_name = db.Column(db.String(120), nullable=True)
    account_number = db.Column(db.String(64), nullable=True)
    bank_address = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "vehicle_class": self.vehicle_class,
            "vehicle_details": self.vehicle_details,
            "vehicle_number": self.vehicle_number,
            "vehicle_photo_url": self.vehicle_photo_url,
            "driver_photo_url": self.driver_photo_url,
            "bank_name": self.bank_name,
            "account_number": self.account_number,
            "bank_address": self.bank_address,
            "is_active": self.is_active,
            "created_at": iso(self.created_at),
        }
