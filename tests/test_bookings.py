import pytest

from models.booking import Booking
from services import bookings as booking_service
from services.errors import (
    ExternalServiceError,
    IllegalTransitionError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)


# ---------- creation ----------
def test_hotel_booking_priced_at_creation(make_booking):
    booking = make_booking(booking_type="hotel")

    assert booking.status == "new"
    assert booking.pricing_set is True
    assert booking.total_amount == "30.00"
    assert booking.booking_fee == "30.00"
    assert booking.driver_fee == "30.00"
    assert booking.balance_due_to_driver == "30.00"
    assert booking.reference_number.startswith("BK-")


def test_destination_booking_awaits_quote(make_booking):
    booking = make_booking(booking_type="destination", destination_link="https://maps.example/villa")

    assert booking.pricing_set is False
    assert booking.total_amount is None
    assert booking.booking_fee is None
    assert booking.driver_fee is None
    assert booking.balance_due_to_driver is None
    assert booking.destination_link == "https://maps.example/villa"


def test_booking_type_defaults_to_hotel(booking_data):
    data = booking_data()
    del data["booking_type"]
    booking = booking_service.create_booking(data)
    assert booking.booking_type == "hotel"


def test_pickup_date_with_offset_stored_as_utc(make_booking):
    booking = make_booking(pickup_date="2026-12-20T10:30:00-04:00")
    assert booking.pickup_date.hour == 14


def test_invalid_payload_lists_every_bad_field(booking_data):
    data = booking_data(customer_email="not-an-email", party_size=0, vehicle_class="bus")
    del data["flight_number"]

    with pytest.raises(ValidationError) as exc:
        booking_service.create_booking(data)

    fields = exc.value.details["fields"]
    assert set(fields) == {"customer_email", "party_size", "vehicle_class", "flight_number"}
    assert Booking.query.count() == 0


def test_unknown_hotel_rejected(booking_data):
    with pytest.raises(ValidationError) as exc:
        booking_service.create_booking(booking_data(hotel_id="missing"))
    assert "hotel_id" in exc.value.details["fields"]


def test_no_email_on_create_by_default(make_booking, outbox):
    make_booking()
    assert outbox == []


def test_confirmation_on_create_when_enabled(app, make_booking, outbox):
    app.config["SEND_CONFIRMATION_ON_CREATE"] = True
    booking = make_booking()

    assert len(outbox) == 1
    assert outbox[0]["to"] == "jane@example.com"
    assert booking.reference_number in outbox[0]["subject"]
    assert "$30.00" in outbox[0]["html"]


def test_confirmation_failure_on_create_rolls_back(app, make_booking, broken_mailer):
    app.config["SEND_CONFIRMATION_ON_CREATE"] = True
    with pytest.raises(ExternalServiceError):
        make_booking()
    assert broken_mailer == ["jane@example.com"]
    assert Booking.query.count() == 0


# ---------- driver assignment ----------
def test_assign_driver_moves_to_driver_assigned(make_booking, make_driver, outbox):
    booking = make_booking()
    driver = make_driver()

    booking, assigned, notified = booking_service.assign_driver(booking.id, driver.id)

    assert booking.status == "driver_assigned"
    assert booking.driver_id == driver.id
    assert booking.assigned_at is not None
    assert assigned.id == driver.id
    assert notified == {"driver": True, "customer": True}
    assert sorted(m["to"] for m in outbox) == ["jane@example.com", "marcus@drivers.test"]


def test_assign_driver_commits_even_if_mail_fails(make_booking, make_driver, broken_mailer):
    booking = make_booking()
    driver = make_driver()

    booking, _, notified = booking_service.assign_driver(booking.id, driver.id)

    assert booking.status == "driver_assigned"
    assert notified == {"driver": False, "customer": False}


def test_reassign_driver_allowed_before_completion(make_booking, make_driver, outbox):
    booking = make_booking()
    first = make_driver()
    second = make_driver(name="Kim Alexander", email="kim@drivers.test")

    booking_service.assign_driver(booking.id, first.id)
    booking, _, _ = booking_service.assign_driver(booking.id, second.id)
    assert booking.driver_id == second.id


def test_assign_driver_requires_driver_id(make_booking):
    booking = make_booking()
    with pytest.raises(ValidationError):
        booking_service.assign_driver(booking.id, None)


def test_assign_unknown_driver(make_booking):
    booking = make_booking()
    with pytest.raises(NotFoundError):
        booking_service.assign_driver(booking.id, "nope")


def test_assign_to_unknown_booking(make_driver):
    driver = make_driver()
    with pytest.raises(NotFoundError):
        booking_service.assign_driver("nope", driver.id)


def test_assign_inactive_driver(make_booking, make_driver):
    booking = make_booking()
    driver = make_driver(is_active=False)
    with pytest.raises(PreconditionError):
        booking_service.assign_driver(booking.id, driver.id)
    assert booking_service.get_booking(booking.id).driver_id is None


def test_assign_driver_to_completed_booking_is_illegal(make_booking, make_driver):
    booking = make_booking()
    driver = make_driver()
    booking_service.override_status(booking.id, "completed")

    with pytest.raises(IllegalTransitionError) as exc:
        booking_service.assign_driver(booking.id, driver.id)
    assert exc.value.details == {"current_status": "completed", "requested_status": "driver_assigned"}


# ---------- status changes ----------
def test_checked_transition_follows_table(make_booking, make_driver, outbox):
    booking = make_booking()
    booking = booking_service.transition_status(booking.id, "paid_fee")
    assert booking.status == "paid_fee"

    driver = make_driver()
    booking_service.assign_driver(booking.id, driver.id)
    booking = booking_service.transition_status(booking.id, "completed")
    assert booking.status == "completed"


@pytest.mark.parametrize("start,target", [
    ("new", "completed"),
    ("completed", "new"),
    ("canceled", "paid_fee"),
    ("paid_fee", "new"),
])
def test_illegal_transitions_rejected(make_booking, start, target):
    booking = make_booking()
    if start != "new":
        booking_service.override_status(booking.id, start)

    with pytest.raises(IllegalTransitionError):
        booking_service.transition_status(booking.id, target)
    assert booking_service.get_booking(booking.id).status == start


def test_cancel_from_any_open_state(make_booking):
    for start in ("new", "paid_fee", "driver_assigned"):
        booking = make_booking()
        booking_service.override_status(booking.id, start)
        assert booking_service.transition_status(booking.id, "canceled").status == "canceled"


def test_driver_assigned_needs_a_driver(make_booking):
    booking = make_booking()
    with pytest.raises(PreconditionError):
        booking_service.transition_status(booking.id, "driver_assigned")


def test_unknown_status_value(make_booking):
    booking = make_booking()
    with pytest.raises(ValidationError):
        booking_service.transition_status(booking.id, "archived")
    with pytest.raises(ValidationError):
        booking_service.override_status(booking.id, "archived")


def test_override_allows_any_known_status(make_booking):
    booking = make_booking()
    booking_service.override_status(booking.id, "completed")
    assert booking_service.override_status(booking.id, "new").status == "new"


def test_override_unknown_booking(app):
    with pytest.raises(NotFoundError):
        booking_service.override_status("nope", "new")


def test_mutation_bumps_updated_at(make_booking):
    booking = make_booking()
    created = booking.updated_at
    booking = booking_service.transition_status(booking.id, "canceled")
    assert booking.updated_at >= created
    assert booking.created_at <= booking.updated_at


# ---------- pricing ----------
def test_set_pricing_on_destination(make_booking, outbox):
    booking = make_booking(booking_type="destination")

    booking = booking_service.set_pricing(booking.id, "85", "40")

    assert booking.pricing_set is True
    assert booking.booking_fee == "85.00"
    assert booking.driver_fee == "40.00"
    assert booking.total_amount == "85.00"
    assert booking.balance_due_to_driver == "40.00"
    assert booking.status == "new"
    assert len(outbox) == 1
    assert "$85.00" in outbox[0]["html"]


def test_set_pricing_with_explicit_totals(make_booking, outbox):
    booking = make_booking(booking_type="destination")
    booking = booking_service.set_pricing(
        booking.id, "20", "60", total_amount="80", balance_due_to_driver="60"
    )
    assert booking.total_amount == "80.00"
    assert booking.balance_due_to_driver == "60.00"


def test_set_pricing_survives_mail_failure(make_booking, broken_mailer):
    booking = make_booking(booking_type="destination")
    booking = booking_service.set_pricing(booking.id, "50", "30")
    assert booking.pricing_set is True
    assert broken_mailer == ["jane@example.com"]


def test_set_pricing_rejected_for_hotel(make_booking):
    booking = make_booking(booking_type="hotel")
    with pytest.raises(PreconditionError):
        booking_service.set_pricing(booking.id, "50", "30")


@pytest.mark.parametrize("fee,driver_fee", [("-1", "30"), ("abc", "30"), ("50", None)])
def test_set_pricing_validates_amounts(make_booking, fee, driver_fee):
    booking = make_booking(booking_type="destination")
    with pytest.raises(ValidationError):
        booking_service.set_pricing(booking.id, fee, driver_fee)
    assert booking_service.get_booking(booking.id).pricing_set is False


@pytest.mark.parametrize("fee,total", [("0", None), ("50", "0")])
def test_set_pricing_rejects_zero_total(make_booking, outbox, fee, total):
    booking = make_booking(booking_type="destination")

    with pytest.raises(ValidationError) as exc:
        booking_service.set_pricing(booking.id, fee, "30", total_amount=total)

    assert exc.value.details["field"] == "total_amount"
    assert booking_service.get_booking(booking.id).pricing_set is False
    assert outbox == []


def test_set_pricing_on_canceled_booking(make_booking):
    booking = make_booking(booking_type="destination")
    booking_service.override_status(booking.id, "canceled")
    with pytest.raises(PreconditionError):
        booking_service.set_pricing(booking.id, "50", "30")


# ---------- webhook transition ----------
def test_mark_paid_is_idempotent(make_booking):
    booking = make_booking()

    booking, changed = booking_service.mark_paid(booking.id)
    assert (booking.status, changed) == ("paid_fee", True)

    booking, changed = booking_service.mark_paid(booking.id)
    assert (booking.status, changed) == ("paid_fee", False)


def test_mark_paid_leaves_later_states_alone(make_booking, make_driver, outbox):
    booking = make_booking()
    booking_service.assign_driver(booking.id, make_driver().id)

    booking, changed = booking_service.mark_paid(booking.id)
    assert booking.status == "driver_assigned"
    assert changed is False


def test_mark_paid_unknown_booking(app):
    assert booking_service.mark_paid("nope") == (None, False)


# ---------- listing ----------
def test_list_filters_by_status_and_search(make_booking):
    a = make_booking(customer_name="Alice Smith", flight_number="AA100")
    b = make_booking(customer_name="Bob Jones", flight_number="BA200")
    booking_service.override_status(b.id, "canceled")

    assert [x.id for x in booking_service.list_bookings(status="canceled")] == [b.id]
    assert [x.id for x in booking_service.list_bookings(search="alice")] == [a.id]
    assert [x.id for x in booking_service.list_bookings(search="BA200")] == [b.id]
    assert [x.id for x in booking_service.list_bookings(search=a.reference_number)] == [a.id]
