from models.db import db, generate_uuid, utcnow, iso

RECIPIENT_TYPES = ("customer", "driver", "admin")


class EmailTemplate(db.Model):
    __tablename__ = "email_templates"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    key = db.Column(db.String(80), unique=True, nullable=False, index=True)  # e.g. booking_confirmation
    name = db.Column(db.String(120), nullable=False)
    trigger_description = db.Column(db.String(255), nullable=True)
    subject = db.Column(db.String(255), nullable=False)
    body = db.Column(db.Text, nullable=False)  # trusted admin-authored HTML with {{placeholders}}
    available_variables = db.Column(db.JSON, nullable=False, default=list)
    recipient_type = db.Column(db.String(20), nullable=False, default="customer")

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "key": self.key,
            "name": self.name,
            "trigger_description": self.trigger_description,
            "subject": self.subject,
            "body": self.body,
            "available_variables": list(self.available_variables or []),
            "recipient_type": self.recipient_type,
            "is_active": self.is_active,
            "updated_at": iso(self.updated_at),
        }
