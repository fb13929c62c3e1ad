from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from medicare_api.database import Base


class AppointmentOption(Base):
    __tablename__ = "appointment_options"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    price = Column(Float, nullable=False, default=0)
    # ordered list of time labels, e.g. ["08.00 AM - 08.30 AM", ...]
    slots = Column(JSON, nullable=False, default=list)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint(
            "appointment_date", "email", "treatment_name",
            name="uq_booking_patient_treatment_day",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    # matched by value against AppointmentOption.name, no foreign key
    treatment_name = Column(String, nullable=False, index=True)
    appointment_date = Column(String, nullable=False, index=True)
    slot = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)

    patient = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    price = Column(Float, nullable=True)

    paid = Column(Boolean, nullable=False, default=False)
    transaction_id = Column(String, nullable=True)

    payments = relationship("Payment", back_populates="booking")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)
    transaction_id = Column(String, unique=True, nullable=False, index=True)
    amount = Column(Float, nullable=True)
    email = Column(String, nullable=True)

    booking = relationship("Booking", back_populates="payments")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=True)
    email = Column(String, unique=True, nullable=False, index=True)
    role = Column(String, nullable=True)


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    specialty = Column(String, nullable=False)
    image = Column(String, nullable=True)
