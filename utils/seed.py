from models import db
from models.user import AdminUser
from services.notifications import seed_email_templates
from services.pricing import seed_settings


def seed_defaults():
    """Default email templates and pricing settings (safe & idempotent)."""
    seed_email_templates()
    seed_settings()


def create_admin(username: str, email: str, password: str) -> AdminUser:
    admin = AdminUser(username=username.strip(), email=email.strip().lower())
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    return admin
