import stripe
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from medicare_api.config import get_settings
from medicare_api.logging_config import get_logger
from medicare_api.models import Booking, Payment
from medicare_api.schemas import PaymentRequest

logger = get_logger(__name__)


class BookingNotFoundError(ValueError):
    def __init__(self, booking_id: int):
        super().__init__(f"No booking found with id {booking_id}")
        self.booking_id = booking_id


def to_minor_units(price: float) -> int:
    """Convert a price in dollars to the integer cents the gateway expects."""
    return int(round(price * 100))


def create_payment_intent(price: float) -> str:
    """Open a card payment intent for ``price`` and return its client secret."""
    settings = get_settings()
    intent = stripe.PaymentIntent.create(
        amount=to_minor_units(price),
        currency=settings.PAYMENT_CURRENCY,
        payment_method_types=["card"],
        api_key=settings.STRIPE_SECRET_KEY,
    )
    return intent.client_secret


class TransactionAlreadyUsedError(ValueError):
    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction {transaction_id} already used for another booking")
        self.transaction_id = transaction_id


def _replayed_payment(db: Session, req: PaymentRequest):
    """The payment already stored under ``req.transaction_id``, if it is for the same booking."""
    existing = db.query(Payment).filter(Payment.transaction_id == req.transaction_id).first()
    if existing is None:
        return None
    if existing.booking_id != req.booking_id:
        raise TransactionAlreadyUsedError(req.transaction_id)
    return existing


def record_payment(db: Session, req: PaymentRequest) -> Payment:
    """Store a payment and mark its booking paid, in one transaction.

    Replaying a transaction id for the booking it already paid returns the
    stored payment and writes nothing.
    """
    booking = db.query(Booking).filter(Booking.id == req.booking_id).first()
    if not booking:
        raise BookingNotFoundError(req.booking_id)

    existing = _replayed_payment(db, req)
    if existing:
        logger.info("payment_already_recorded", payment_id=existing.id,
                    transaction_id=req.transaction_id)
        return existing

    payment = Payment(
        booking_id=booking.id,
        transaction_id=req.transaction_id,
        amount=req.amount,
        email=req.email,
    )
    db.add(payment)

    booking.paid = True
    booking.transaction_id = req.transaction_id

    try:
        db.commit()
    except IntegrityError:
        # the same transaction id was recorded by a concurrent request
        db.rollback()
        existing = _replayed_payment(db, req)
        if existing is None:
            raise
        return existing

    db.refresh(payment)
    logger.info("payment_recorded", payment_id=payment.id, booking_id=booking.id,
                transaction_id=payment.transaction_id)
    return payment
