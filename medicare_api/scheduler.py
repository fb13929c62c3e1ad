from typing import Iterable, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from medicare_api.logging_config import get_logger
from medicare_api.models import AppointmentOption, Booking
from medicare_api.schemas import AppointmentOptionResponse, BookingRequest, SpecialtyResponse

logger = get_logger(__name__)


class BookingConflictError(ValueError):
    """The patient already holds a booking for this treatment on this date."""

    def __init__(self, appointment_date: str):
        super().__init__(f"You have already appointment on {appointment_date}")
        self.appointment_date = appointment_date


class BookingNotCompletedError(ValueError):
    def __init__(self):
        super().__init__("Appointment would not completed")


def remaining_slots(slots: Iterable[str], booked: Iterable[str]) -> List[str]:
    """Return ``slots`` minus ``booked``, keeping catalog order."""
    taken = set(booked)
    return [slot for slot in slots if slot not in taken]


def compute_availability(db: Session, date: str) -> List[AppointmentOptionResponse]:
    """Every appointment option with its slots narrowed to the ones still free on ``date``.

    Fully booked options are kept with an empty slot list. The date is matched
    as a plain string, so an unparseable date simply matches no bookings.
    """
    already_booked = db.query(Booking).filter(Booking.appointment_date == date).all()
    options = db.query(AppointmentOption).order_by(AppointmentOption.id).all()

    booked_by_treatment = {}
    for booked in already_booked:
        booked_by_treatment.setdefault(booked.treatment_name, []).append(booked.slot)

    # build fresh response objects, the ORM rows must stay untouched
    return [
        AppointmentOptionResponse(
            id=option.id,
            name=option.name,
            price=option.price,
            slots=remaining_slots(option.slots or [], booked_by_treatment.get(option.name, [])),
        )
        for option in options
    ]


def list_specialties(db: Session) -> List[SpecialtyResponse]:
    rows = db.query(AppointmentOption.id, AppointmentOption.name).order_by(AppointmentOption.id).all()
    return [SpecialtyResponse(id=row.id, name=row.name) for row in rows]


def create_booking(db: Session, req: BookingRequest) -> Booking:
    """Persist a booking unless the patient already has one for the same treatment that day.

    The unique constraint on (appointment_date, email, treatment_name) makes the
    insert itself the conflict check; the query below only short-circuits the
    common case. A concurrent insert that wins the race surfaces here as an
    IntegrityError and is reported as the same conflict.
    """
    conflict = db.query(Booking).filter(
        Booking.appointment_date == req.appointment_date,
        Booking.email == req.email,
        Booking.treatment_name == req.treatment_name,
    ).first()

    if conflict:
        logger.info("booking_conflict", email=req.email, date=req.appointment_date,
                    treatment=req.treatment_name)
        raise BookingConflictError(req.appointment_date)

    booking = Booking(
        treatment_name=req.treatment_name,
        appointment_date=req.appointment_date,
        slot=req.slot,
        email=req.email,
        patient=req.patient,
        phone=req.phone,
        price=req.price,
        paid=False,
    )

    db.add(booking)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("booking_conflict_on_insert", email=req.email, date=req.appointment_date,
                    treatment=req.treatment_name)
        raise BookingConflictError(req.appointment_date)

    db.refresh(booking)

    if booking.id is None:
        raise BookingNotCompletedError()

    logger.info("booking_created", booking_id=booking.id, treatment=booking.treatment_name,
                date=booking.appointment_date, slot=booking.slot)
    return booking
