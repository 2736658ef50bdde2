import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as airtransfer.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "airtransfer.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Create tables and seed default templates/settings at startup
    AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "true").lower() == "true"

    # bcrypt work factor for admin passwords
    BCRYPT_ROUNDS = 12

    # Session cookie name for the admin auth token
    AUTH_COOKIE_NAME = "airtransfer_session"

    # 30 days session lifetime
    SESSION_LIFETIME_SECONDS = 30 * 24 * 60 * 60

    # Idle timeout: 8 hours
    IDLE_TIMEOUT_SECONDS = 8 * 60 * 60

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
    EMAIL_BRAND_NAME = os.getenv("EMAIL_BRAND_NAME", "AirTransfer")

    # Stripe
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "usd")
    PAYMENT_SUCCESS_URL = os.getenv(
        "PAYMENT_SUCCESS_URL",
        "http://localhost:5000/pay/success?session_id={CHECKOUT_SESSION_ID}",
    )
    PAYMENT_CANCEL_URL = os.getenv("PAYMENT_CANCEL_URL", "http://localhost:5000/pay/cancel")
    FRONTEND_BASE_URL = os.getenv("FRONTEND_BASE_URL", "http://localhost:5173")

    # Fixed pricing for hotel bookings
    HOTEL_BOOKING_FEE = "30.00"
    HOTEL_DRIVER_FEE = "30.00"
    HOTEL_TOTAL_AMOUNT = "30.00"
    HOTEL_BALANCE_DUE_TO_DRIVER = "30.00"

    # Notification policies: "fail" propagates mail errors, "ignore" logs and continues
    SEND_CONFIRMATION_ON_CREATE = os.getenv("SEND_CONFIRMATION_ON_CREATE", "false").lower() == "true"
    CONFIRMATION_NOTIFY_POLICY = "fail"
    SECONDARY_NOTIFY_POLICY = "ignore"

    # Basic app settings
    DEBUG = False
