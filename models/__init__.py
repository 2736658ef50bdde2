from .db import db
from .user import AdminUser
from .audit_log import AuditLog
from .session import AdminSession
from .zone import Zone, ZoneRoute
from .hotel import Hotel
from .port import Port, PortHotelRate
from .driver import Driver
from .booking import Booking
from .rate import Rate
from .pricing_rule import PricingRule
from .setting import Setting
from .email_template import EmailTemplate
from .webhook_event import WebhookEvent
