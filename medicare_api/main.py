from contextlib import asynccontextmanager
from typing import Any, Dict

import stripe
import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medicare_api import accounts
from medicare_api.config import get_settings
from medicare_api.database import close_db, get_db, init_db
from medicare_api.logging_config import bind_request_context, get_logger, setup_structured_logging
from medicare_api.models import Booking
from medicare_api.payments import create_payment_intent, record_payment
from medicare_api.scheduler import compute_availability, create_booking, list_specialties
from medicare_api.schemas import (
    AdminStatusResponse,
    AppointmentsResponse,
    BookingDetailsResponse,
    BookingLookupResponse,
    BookingRequest,
    BookingsResponse,
    DoctorCreate,
    DoctorResponse,
    DoctorsResponse,
    Envelope,
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentRequest,
    SpecialtiesResponse,
    TokenResponse,
    UserCreate,
    UserResponse,
    UsersResponse,
)
from medicare_api.security import issue_token, verify_admin, verify_jwt

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_structured_logging(get_settings().LOG_LEVEL)
    init_db()
    logger.info("database_connected")
    yield
    close_db()


app = FastAPI(title="Medicare API", lifespan=lifespan)


@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = bind_request_context(
        request.method, request.url.path, request.headers.get("X-Request-ID"))
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("database_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"success": False, "message": str(exc)})


@app.exception_handler(stripe.StripeError)
async def payment_gateway_error_handler(request: Request, exc: stripe.StripeError):
    logger.error("payment_gateway_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"success": False, "message": str(exc)})


@app.get("/", response_class=PlainTextResponse)
def root():
    return "Medicare server is running"


@app.get("/appointments", response_model=AppointmentsResponse, response_model_exclude_none=True)
def appointments(date: str, db: Session = Depends(get_db)):
    """Appointment options with the slots still free on ``date``."""
    return AppointmentsResponse(success=True, data=compute_availability(db, date))


@app.get("/appointmentSpecialty", response_model=SpecialtiesResponse, response_model_exclude_none=True)
def appointment_specialty(db: Session = Depends(get_db)):
    return SpecialtiesResponse(success=True, data=list_specialties(db))


@app.post("/booking", response_model=Envelope)
def book(req: BookingRequest, db: Session = Depends(get_db)):
    try:
        create_booking(db, req)
    except ValueError as exc:
        # conflict and not-completed outcomes go back in the envelope
        return Envelope(success=False, message=str(exc))

    return Envelope(success=True, message="Appointment successfully confirmed")


@app.get("/booking/{booking_id}", response_model=BookingLookupResponse)
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        return BookingLookupResponse(success=False, message=f"No booking found with id {booking_id}")

    return BookingLookupResponse(success=True, data=BookingDetailsResponse.model_validate(booking))


@app.get("/booking", response_model=BookingsResponse, response_model_exclude_none=True)
def list_bookings(email: str, decoded: Dict[str, Any] = Depends(verify_jwt), db: Session = Depends(get_db)):
    """Bookings of the signed-in patient. The token must belong to ``email``."""
    if decoded["email"] != email:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden Access")

    bookings = db.query(Booking).filter(Booking.email == email).order_by(Booking.id).all()
    return BookingsResponse(
        success=True,
        data=[BookingDetailsResponse.model_validate(b) for b in bookings],
    )


@app.post("/create-payment-intent", response_model=PaymentIntentResponse)
def payment_intent(req: PaymentIntentRequest):
    return PaymentIntentResponse(client_secret=create_payment_intent(req.price))


@app.post("/payments", response_model=Envelope)
def payments(req: PaymentRequest, db: Session = Depends(get_db)):
    try:
        payment = record_payment(db, req)
    except ValueError as exc:
        return Envelope(success=False, message=str(exc))

    if payment.id is None:
        return Envelope(success=False, message="Something went wrong, Please try again")

    return Envelope(success=True, message="Payment Successfully completed")


@app.get("/jwt", response_model=TokenResponse)
def access_token(email: str, db: Session = Depends(get_db)):
    """Issue an access token for a registered email."""
    if not accounts.get_user_by_email(db, email):
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"accessToken": ""})

    return TokenResponse(access_token=issue_token(email))


@app.get("/users", response_model=UsersResponse, response_model_exclude_none=True)
def users(db: Session = Depends(get_db)):
    return UsersResponse(
        success=True,
        data=[UserResponse.model_validate(u) for u in accounts.list_users(db)],
    )


@app.post("/users", response_model=Envelope)
def save_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Register a new user, or acknowledge a returning one."""
    if accounts.register_user(db, payload):
        return Envelope(success=True, message="Successfully Registered")
    return Envelope(success=True, message="Successfully Login")


@app.get("/users/admin/{email}", response_model=AdminStatusResponse, response_model_exclude_none=True)
def admin_status(email: str, decoded: Dict[str, Any] = Depends(verify_jwt), db: Session = Depends(get_db)):
    return AdminStatusResponse(success=True, is_admin=accounts.is_admin(db, email))


@app.put("/users/admin/{user_id}", response_model=Envelope)
def make_admin(user_id: int, admin: Dict[str, Any] = Depends(verify_admin), db: Session = Depends(get_db)):
    if accounts.make_admin(db, user_id):
        logger.info("admin_granted", user_id=user_id, granted_by=admin["email"])
        return Envelope(success=True, message="Successfully Make Admin")
    return Envelope(success=False, message="Something went wrong")


@app.get("/doctors", response_model=DoctorsResponse, response_model_exclude_none=True)
def doctors(admin: Dict[str, Any] = Depends(verify_admin), db: Session = Depends(get_db)):
    return DoctorsResponse(
        success=True,
        data=[DoctorResponse.model_validate(d) for d in accounts.list_doctors(db)],
    )


@app.post("/doctors", response_model=Envelope)
def create_doctor(payload: DoctorCreate, admin: Dict[str, Any] = Depends(verify_admin), db: Session = Depends(get_db)):
    doctor = accounts.add_doctor(db, payload)
    if doctor.id is None:
        return Envelope(success=False, message="Couldn't create the doctor")
    return Envelope(success=True, message=f"{doctor.name} Successfully created")


@app.delete("/doctors/{doctor_id}", response_model=Envelope, response_model_exclude_none=True)
def remove_doctor(doctor_id: int, admin: Dict[str, Any] = Depends(verify_admin), db: Session = Depends(get_db)):
    return Envelope(success=accounts.delete_doctor(db, doctor_id))


def run():
    settings = get_settings()
    uvicorn.run("medicare_api.main:app", host="0.0.0.0", port=settings.PORT)
