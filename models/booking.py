from models.db import db, generate_uuid, utcnow, iso

# status values: new, paid_fee, driver_assigned, completed, canceled
BOOKING_STATUSES = ("new", "paid_fee", "driver_assigned", "completed", "canceled")
BOOKING_TYPES = ("hotel", "destination")
VEHICLE_CLASSES = ("standard", "luxury", "minivan")


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    reference_number = db.Column(db.String(40), unique=True, nullable=False, index=True)

    booking_type = db.Column(db.String(20), nullable=False, default="hotel")

    # Customer
    customer_name = db.Column(db.String(120), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False, index=True)
    customer_phone = db.Column(db.String(40), nullable=False)

    # Trip
    pickup_location = db.Column(db.String(255), nullable=False)
    dropoff_location = db.Column(db.String(255), nullable=False)
    accommodation = db.Column(db.String(255), nullable=True)
    hotel_id = db.Column(db.String(36), db.ForeignKey("hotels.id"), nullable=True)
    destination_link = db.Column(db.Text, nullable=True)  # Airbnb / Google Maps link
    arrival_port_id = db.Column(db.String(36), db.ForeignKey("ports.id"), nullable=True)
    pickup_date = db.Column(db.DateTime, nullable=False)
    party_size = db.Column(db.Integer, nullable=False)
    flight_number = db.Column(db.String(20), nullable=False)
    vehicle_class = db.Column(db.String(20), nullable=False)

    # Pricing, two-decimal strings; all null for destination bookings until quoted
    booking_fee = db.Column(db.String(20), nullable=True)
    driver_fee = db.Column(db.String(20), nullable=True)
    total_amount = db.Column(db.String(20), nullable=True)
    balance_due_to_driver = db.Column(db.String(20), nullable=True)
    pricing_set = db.Column(db.Boolean, nullable=False, default=False)
    payment_link_sent = db.Column(db.Boolean, nullable=False, default=False)
    payment_link_sent_at = db.Column(db.DateTime, nullable=True)

    stripe_session_id = db.Column(db.String(255), nullable=True, index=True)

    status = db.Column(db.String(20), nullable=False, default="new", index=True)

    driver_id = db.Column(db.String(36), db.ForeignKey("drivers.id"), nullable=True, index=True)
    assigned_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    @property
    def is_hotel(self) -> bool:
        return self.booking_type == "hotel"

    def to_dict(self):
        return {
            "id": self.id,
            "reference_number": self.reference_number,
            "booking_type": self.booking_type,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "pickup_location": self.pickup_location,
            "dropoff_location": self.dropoff_location,
            "accommodation": self.accommodation,
            "hotel_id": self.hotel_id,
            "destination_link": self.destination_link,
            "arrival_port_id": self.arrival_port_id,
            "pickup_date": iso(self.pickup_date),
            "party_size": self.party_size,
            "flight_number": self.flight_number,
            "vehicle_class": self.vehicle_class,
            "booking_fee": self.booking_fee,
            "driver_fee": self.driver_fee,
            "total_amount": self.total_amount,
            "balance_due_to_driver": self.balance_due_to_driver,
            "pricing_set": self.pricing_set,
            "payment_link_sent": self.payment_link_sent,
            "payment_link_sent_at": iso(self.payment_link_sent_at),
            "status": self.status,
            "driver_id": self.driver_id,
            "assigned_at": iso(self.assigned_at),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
