from .health import health_bp
from .auth import auth_bp
from .booking import booking_bp
from .admin import admin_bp
from .catalog import catalog_bp
from .email_templates import email_templates_bp
from .audit_logs import audit_bp
from .stripe_webhook import webhook_bp
from .pay_pages import pay_pages_bp
