import logging
import time
import uuid
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.booking import Booking
from app.models.payment import Payment
from app.models.user import User
from app.services.audit_service import log_audit
from app.services.stripe_client import StripeClient, StripeConfig, StripeError

logger = logging.getLogger(__name__)

# Intents that can still be completed on the client
_REUSABLE_INTENT_STATUSES = ("requires_payment_method", "requires_confirmation", "requires_action", "processing")


class PaymentError(ValueError):
    """The payment could not be verified against the booking."""


class PaymentStateError(RuntimeError):
    """The booking is in a state that does not accept this payment operation."""


def stripe_client() -> StripeClient:
    if not settings.STRIPE_SECRET_KEY:
        raise StripeError("Stripe is not configured (missing STRIPE_SECRET_KEY)")
    return StripeClient(StripeConfig(
        secret_key=settings.STRIPE_SECRET_KEY,
        api_base=settings.STRIPE_API_BASE,
        timeout=settings.STRIPE_TIMEOUT,
    ))


def amount_cents(booking: Booking) -> int:
    return int((Decimal(str(booking.final_price)) * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def create_payment_intent(db: Session, booking: Booking, user: User) -> dict:
    if booking.status == "cancelled":
        raise PaymentStateError("Cannot pay for a cancelled booking")
    if booking.payment_status == "paid":
        raise PaymentStateError("Booking is already paid")

    cents = amount_cents(booking)
    currency = settings.PAYMENT_CURRENCY.lower()

    if settings.PAYMENT_MODE == "test":
        pid = f"pi_simulated_{int(time.time() * 1000)}"
        return {"clientSecret": f"{pid}_secret_test", "paymentIntentId": pid, "publishableKey": "", "amount": cents, "currency": currency}

    client = stripe_client()
    if booking.payment_intent_id:
        existing = client.retrieve_payment_intent(booking.payment_intent_id)
        if existing.get("status") in _REUSABLE_INTENT_STATUSES and int(existing.get("amount") or 0) == cents:
            return {
                "clientSecret": existing.get("client_secret") or "",
                "paymentIntentId": existing["id"],
                "publishableKey": settings.STRIPE_PUBLISHABLE_KEY,
                "amount": cents,
                "currency": currency,
            }

    intent = client.create_payment_intent(
        amount_cents=cents,
        currency=currency,
        metadata={
            "bookingId": booking.id,
            "customerEmail": user.email,
            "expectedAmount": str(cents),
            "currency": currency,
        },
        receipt_email=user.email,
        idempotency_key=f"booking-{booking.id}-{cents}",
    )
    booking.payment_intent_id = intent["id"]
    db.commit()
    logger.info("Created PaymentIntent %s for booking %s (%s %s)", intent["id"], booking.id, cents, currency)
    return {
        "clientSecret": intent.get("client_secret") or "",
        "paymentIntentId": intent["id"],
        "publishableKey": settings.STRIPE_PUBLISHABLE_KEY,
        "amount": cents,
        "currency": currency,
    }


def verify_stripe_intent(booking: Booking, payment_intent_id: str) -> dict:
    """Re-fetch the intent by id and check it really pays for this booking."""
    if not payment_intent_id:
        raise PaymentError("paymentIntentId is required")
    if booking.payment_intent_id and booking.payment_intent_id != payment_intent_id:
        raise PaymentError("Payment intent does not belong to this booking")

    intent = stripe_client().retrieve_payment_intent(payment_intent_id)
    status = intent.get("status")
    if status != "succeeded":
        raise PaymentError(f"Payment not completed (status: {status})")
    expected = amount_cents(booking)
    received = int(intent.get("amount_received") or intent.get("amount") or 0)
    if received != expected:
        raise PaymentError(f"Payment amount mismatch (expected {expected}, got {received})")
    if (intent.get("currency") or "").lower() != settings.PAYMENT_CURRENCY.lower():
        raise PaymentError("Payment currency mismatch")
    if (intent.get("metadata") or {}).get("bookingId") != booking.id:
        raise PaymentError("Payment intent does not belong to this booking")
    return intent


def confirm_payment(db: Session, booking: Booking, actor: str, payment_intent_id: str | None = None) -> bool:
    """Mark the booking paid. Returns False when it already was (nothing changes)."""
    if booking.status == "cancelled":
        raise PaymentStateError("Cannot pay for a cancelled booking")
    if booking.payment_status == "paid":
        return False

    if settings.PAYMENT_MODE == "stripe":
        verify_stripe_intent(booking, payment_intent_id or "")
        provider, ref = "stripe", payment_intent_id
    else:
        provider, ref = "test", payment_intent_id or f"pi_simulated_{int(time.time() * 1000)}"

    values = {"payment_status": "paid", "payment_intent_id": ref}
    if booking.status == "pending":
        values["status"] = "confirmed"
    res = db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.payment_status != "paid")
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        # Another request confirmed it first
        db.rollback()
        db.refresh(booking)
        return False

    db.add(Payment(
        id=str(uuid.uuid4()),
        booking_id=booking.id,
        provider=provider,
        amount=booking.final_price,
        currency=settings.PAYMENT_CURRENCY.lower(),
        status="paid",
        provider_ref=ref,
    ))
    log_audit(db, actor, "booking.payment_confirmed", "booking", booking.id, {"provider": provider, "ref": ref, "amount": str(booking.final_price)})
    db.commit()
    db.refresh(booking)
    logger.info("Booking %s paid via %s (%s)", booking.id, provider, ref)
    return True


def refund_booking(db: Session, booking: Booking, actor: str) -> None:
    """Refund a paid booking. Does not commit; no-op for unpaid bookings."""
    if booking.payment_status != "paid":
        return
    payment = (
        db.query(Payment)
        .filter(Payment.booking_id == booking.id, Payment.status == "paid")
        .order_by(Payment.created_at.desc())
        .first()
    )
    if payment and payment.provider == "stripe":
        stripe_client().refund_payment_intent(
            payment_intent_id=payment.provider_ref,
            idempotency_key=f"refund-{booking.id}",
        )
    if payment:
        payment.status = "refunded"
    booking.payment_status = "refunded"
    log_audit(db, actor, "booking.refunded", "booking", booking.id, {"provider": payment.provider if payment else None})
    logger.info("Booking %s refunded", booking.id)
