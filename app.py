import logging

import click
from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy.exc import IntegrityError

from config import Config
from models import db
from routes import (
    health_bp,
    auth_bp,
    booking_bp,
    admin_bp,
    catalog_bp,
    email_templates_bp,
    audit_bp,
    webhook_bp,
    pay_pages_bp,
)
from security.csrf import csrf_protect
from services.errors import ServiceError
from utils.auth_context import load_current_admin
from utils.seed import seed_defaults, create_admin

logger = logging.getLogger(__name__)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(email_templates_bp)
    app.register_blueprint(audit_bp)
    app.register_blueprint(webhook_bp)
    app.register_blueprint(pay_pages_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Create tables and seed default templates/settings (safe & idempotent)
    if app.config.get("AUTO_CREATE_TABLES"):
        with app.app_context():
            db.create_all()
            seed_defaults()

    @app.before_request
    def _load_admin():
        load_current_admin()

    @app.before_request
    def _csrf_protect():
        # Only cookie-authenticated admin writes are checked
        return csrf_protect()

    @app.errorhandler(ServiceError)
    def _service_error(exc):
        db.session.rollback()
        if exc.status_code >= 500:
            logger.error("%s: %s %s", type(exc).__name__, exc.message, exc.details)
        return jsonify(error=exc.message, **exc.details), exc.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        # CSP can be strict if you serve frontend separately; for API it's fine to keep minimal:
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------

def register_cli(app):
    @app.cli.command("create-admin")
    @click.argument("username")
    @click.argument("email")
    @click.argument("password")
    def create_admin_command(username, email, password):
        """Create a back-office admin account (bootstrap)."""
        try:
            admin = create_admin(username, email, password)
        except IntegrityError:
            db.session.rollback()
            raise click.ClickException(f"Admin {username} already exists")
        except ValueError as exc:
            raise click.ClickException(str(exc))
        click.echo(f"Admin {admin.username} created")

    @app.cli.command("seed")
    def seed_command():
        """Create tables and insert default email templates and pricing settings."""
        db.create_all()
        seed_defaults()
        click.echo("Default email templates and settings seeded")

#-------------------------


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
