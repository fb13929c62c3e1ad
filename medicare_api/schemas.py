from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional


class CamelModel(BaseModel):
    """Base schema speaking the camelCase keys the booking client sends."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Envelope(CamelModel):
    success: bool
    message: Optional[str] = None


# Appointment catalog

class AppointmentOptionResponse(CamelModel):
    id: int
    name: str
    price: float
    slots: List[str]


class AppointmentsResponse(Envelope):
    data: List[AppointmentOptionResponse] = []


class SpecialtyResponse(CamelModel):
    id: int
    name: str


class SpecialtiesResponse(Envelope):
    data: List[SpecialtyResponse] = []


# Bookings

class BookingRequest(CamelModel):
    treatment_name: str
    appointment_date: str
    slot: str
    email: str
    patient: Optional[str] = None
    phone: Optional[str] = None
    price: Optional[float] = None


class BookingDetailsResponse(CamelModel):
    id: int
    treatment_name: str
    appointment_date: str
    slot: str
    email: str
    patient: Optional[str] = None
    phone: Optional[str] = None
    price: Optional[float] = None
    paid: bool = False
    transaction_id: Optional[str] = None


class BookingLookupResponse(Envelope):
    data: Optional[BookingDetailsResponse] = None


class BookingsResponse(Envelope):
    data: List[BookingDetailsResponse] = []


# Payments

class PaymentIntentRequest(CamelModel):
    price: float


class PaymentIntentResponse(CamelModel):
    client_secret: str


class PaymentRequest(CamelModel):
    booking_id: int
    transaction_id: str
    amount: Optional[float] = None
    email: Optional[str] = None


# Users and doctors

class TokenResponse(CamelModel):
    access_token: str


class UserCreate(CamelModel):
    email: str
    name: Optional[str] = None


class UserResponse(CamelModel):
    id: int
    email: str
    name: Optional[str] = None
    role: Optional[str] = None


class UsersResponse(Envelope):
    data: List[UserResponse] = []


class AdminStatusResponse(Envelope):
    is_admin: bool = False


class DoctorCreate(CamelModel):
    name: str
    email: str
    specialty: str
    image: Optional[str] = None


class DoctorResponse(DoctorCreate):
    id: int


class DoctorsResponse(Envelope):
    data: List[DoctorResponse] = []
