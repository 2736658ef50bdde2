import logging

import pytest

from models import db
from models.email_template import EmailTemplate
from services import notifications
from services.errors import ExternalServiceError, NotFoundError, ValidationError
from services.notifications import (
    NOTIFY_FAIL,
    NOTIFY_IGNORE,
    QUOTE_PENDING_TEXT,
    notify,
    price_breakdown_text,
    resolve_template,
)
from services.pricing import upsert_setting
from services import bookings as booking_service


# ---------- price breakdown ----------
def test_breakdown_for_destination_is_quote_pending():
    assert price_breakdown_text("destination", "80.00", "80.00", "8.00") == QUOTE_PENDING_TEXT


def test_breakdown_for_hotel_with_tax():
    text = price_breakdown_text("hotel", "30.00", "30.00", "3.00")
    assert text == "Trip: $30.00 + Tax: $3.00 = Total: $33.00"


def test_breakdown_for_hotel_without_tax():
    assert price_breakdown_text("hotel", "30.00", "30.00", "0.00") == "$30.00"
    assert price_breakdown_text("hotel", "45.00") == "$45.00"


def test_breakdown_falls_back_to_default_fee():
    assert price_breakdown_text("hotel", None) == "$30.00"


# ---------- templates ----------
def test_default_templates_seeded(app):
    keys = {t.key for t in EmailTemplate.query.all()}
    assert keys == set(notifications.DEFAULT_TEMPLATES)


def test_stored_active_template_wins(app):
    row = EmailTemplate.query.filter_by(key="quote_ready").first()
    row.subject = "Custom {{referenceNumber}}"
    db.session.commit()

    subject, _ = resolve_template("quote_ready")
    assert subject == "Custom {{referenceNumber}}"


def test_inactive_template_falls_back_to_default(app):
    row = EmailTemplate.query.filter_by(key="quote_ready").first()
    row.subject = "Custom {{referenceNumber}}"
    row.is_active = False
    db.session.commit()

    subject, _ = resolve_template("quote_ready")
    assert subject == notifications.DEFAULT_TEMPLATES["quote_ready"]["subject"]


def test_missing_row_falls_back_to_default(app):
    EmailTemplate.query.filter_by(key="payment_link").delete()
    db.session.commit()

    subject, body = resolve_template("payment_link")
    assert "{{paymentLink}}" in body
    assert subject == notifications.DEFAULT_TEMPLATES["payment_link"]["subject"]


def test_unknown_key_has_no_template(app):
    with pytest.raises(NotFoundError):
        resolve_template("nope")


def test_custom_template_rendered_with_booking_variables(app, make_booking, outbox):
    row = EmailTemplate.query.filter_by(key="booking_confirmation").first()
    row.subject = "Hi {{customerName}} ({{referenceNumber}})"
    row.body = "<p>{{pickupDate}} at {{pickupTime}}: {{priceBreakdown}} {{unknownThing}}</p>"
    db.session.commit()

    booking = make_booking()
    notifications.send_booking_confirmation(booking)

    sent = outbox[0]
    assert sent["subject"] == f"Hi Jane Doe ({booking.reference_number})"
    assert sent["html"] == "<p>December 20, 2026 at 14:30: $30.00 {{unknownThing}}</p>"


def test_confirmation_includes_tax_split_when_taxed(app, make_booking, outbox):
    upsert_setting("tax_percentage", "10")
    booking = make_booking()

    booking_service.resend_confirmation(booking.id)

    assert "Trip: $30.00 + Tax: $3.00 = Total: $33.00" in outbox[0]["html"]
    assert booking_service.get_booking(booking.id).total_amount == "30.00"


def test_destination_confirmation_says_quote_pending(app, make_booking, outbox):
    booking = make_booking(booking_type="destination")
    notifications.send_booking_confirmation(booking)
    assert QUOTE_PENDING_TEXT in outbox[0]["html"]


def test_brand_name_comes_from_config(app, make_booking, outbox):
    app.config["EMAIL_BRAND_NAME"] = "IslandRides"
    notifications.send_quote_notification(make_booking())
    assert "The IslandRides Team" in outbox[0]["html"]


def test_driver_assignment_goes_to_driver(app, make_booking, make_driver, outbox):
    booking = make_booking()
    driver = make_driver()
    notifications.send_driver_assignment(driver, booking)

    assert outbox[0]["to"] == driver.email
    assert "Marcus Joseph" in outbox[0]["html"]
    assert "+1 758 555 0100" in outbox[0]["html"]


def test_send_failure_raises_external_error(app, make_booking, broken_mailer):
    with pytest.raises(ExternalServiceError) as exc:
        notifications.send_payment_confirmation(make_booking())
    assert exc.value.details["reason"] == "SMTP connection refused"


def test_send_templated_requires_recipient(app, outbox):
    with pytest.raises(ValidationError):
        notifications.send_templated("quote_ready", "", {})
    assert outbox == []


# ---------- policy ----------
def _boom():
    raise ExternalServiceError("mail down")


def test_fail_policy_propagates():
    with pytest.raises(ExternalServiceError):
        notify(_boom, policy=NOTIFY_FAIL)


def test_ignore_policy_logs_and_continues(caplog):
    with caplog.at_level(logging.WARNING, logger="services.notifications"):
        assert notify(_boom, policy=NOTIFY_IGNORE) is None
    assert "mail down" in caplog.text


def test_ignore_policy_does_not_hide_other_errors():
    def broken():
        raise KeyError("bug")

    with pytest.raises(KeyError):
        notify(broken, policy=NOTIFY_IGNORE)


def test_unknown_policy_rejected():
    with pytest.raises(ValueError):
        notify(lambda: None, policy="retry")


def test_success_returns_result():
    assert notify(lambda x: x * 2, 21, policy=NOTIFY_IGNORE) == 42
