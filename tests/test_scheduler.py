"""Tests for slot availability and booking conflict prevention."""
import pytest

from medicare_api.models import Booking
from medicare_api.scheduler import (
    BookingConflictError,
    BookingNotCompletedError,
    compute_availability,
    create_booking,
    list_specialties,
    remaining_slots,
)
from medicare_api.schemas import BookingRequest


def make_request(**overrides) -> BookingRequest:
    data = {
        "treatment_name": "Cleaning",
        "appointment_date": "2024-01-01",
        "slot": "10am",
        "email": "ann@example.com",
        "patient": "Ann",
    }
    data.update(overrides)
    return BookingRequest(**data)


def slots_by_name(options):
    return {option.name: option.slots for option in options}


def test_remaining_slots_keeps_catalog_order():
    assert remaining_slots(["11am", "9am", "10am"], {"9am"}) == ["11am", "10am"]


def test_date_without_bookings_returns_full_catalog(catalog, db_session):
    result = compute_availability(db_session, "2024-01-01")

    assert slots_by_name(result) == {
        "Cleaning": ["9am", "10am", "11am"],
        "Cavity Protection": ["9am", "1pm"],
    }


def test_booked_slot_is_removed_for_that_treatment_only(catalog, db_session):
    create_booking(db_session, make_request(slot="10am"))
    create_booking(db_session, make_request(treatment_name="Cavity Protection", slot="9am"))

    result = slots_by_name(compute_availability(db_session, "2024-01-01"))

    assert result["Cleaning"] == ["9am", "11am"]
    assert result["Cavity Protection"] == ["1pm"]


def test_bookings_on_other_dates_do_not_narrow_slots(catalog, db_session):
    create_booking(db_session, make_request(appointment_date="2024-01-02"))

    result = slots_by_name(compute_availability(db_session, "2024-01-01"))

    assert result["Cleaning"] == ["9am", "10am", "11am"]


def test_fully_booked_option_is_still_returned(catalog, db_session):
    for i, slot in enumerate(["9am", "1pm"]):
        create_booking(db_session, make_request(
            treatment_name="Cavity Protection", slot=slot, email=f"p{i}@example.com"))

    result = slots_by_name(compute_availability(db_session, "2024-01-01"))

    assert result["Cavity Protection"] == []


def test_availability_is_repeatable_and_leaves_catalog_untouched(catalog, db_session):
    create_booking(db_session, make_request())

    first = compute_availability(db_session, "2024-01-01")
    second = compute_availability(db_session, "2024-01-01")

    assert first == second
    db_session.expire_all()
    assert catalog[0].slots == ["9am", "10am", "11am"]


def test_malformed_date_matches_no_bookings(catalog, db_session):
    create_booking(db_session, make_request())

    result = slots_by_name(compute_availability(db_session, "not-a-date"))

    assert result["Cleaning"] == ["9am", "10am", "11am"]


def test_list_specialties_returns_names(catalog, db_session):
    assert [s.name for s in list_specialties(db_session)] == ["Cleaning", "Cavity Protection"]


def test_create_booking_persists_unpaid_booking(catalog, db_session):
    booking = create_booking(db_session, make_request())

    assert booking.id is not None
    assert booking.paid is False
    assert booking.transaction_id is None
    assert db_session.query(Booking).count() == 1


def test_second_booking_for_same_day_and_treatment_is_rejected(catalog, db_session):
    create_booking(db_session, make_request(slot="9am"))

    with pytest.raises(BookingConflictError) as exc_info:
        create_booking(db_session, make_request(slot="11am"))

    assert "2024-01-01" in str(exc_info.value)
    assert db_session.query(Booking).count() == 1


def test_same_patient_can_book_another_treatment_same_day(catalog, db_session):
    create_booking(db_session, make_request())
    create_booking(db_session, make_request(treatment_name="Cavity Protection", slot="1pm"))

    assert db_session.query(Booking).count() == 2


class _StaleQuery:
    """Query stand-in that never sees the existing booking, like a racing request."""

    def filter(self, *args):
        return self

    def first(self):
        return None


def test_insert_race_is_reported_as_conflict(catalog, db_session, monkeypatch):
    create_booking(db_session, make_request(slot="9am"))

    monkeypatch.setattr(db_session, "query", lambda *args: _StaleQuery())
    with pytest.raises(BookingConflictError):
        create_booking(db_session, make_request(slot="11am"))
    monkeypatch.undo()

    assert db_session.query(Booking).count() == 1


def test_insert_without_generated_id_is_not_completed(catalog, db_session, monkeypatch):
    monkeypatch.setattr(db_session, "refresh", lambda obj: setattr(obj, "id", None))

    with pytest.raises(BookingNotCompletedError) as exc_info:
        create_booking(db_session, make_request())

    assert str(exc_info.value) == "Appointment would not completed"
