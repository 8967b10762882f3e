import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_current_user
from app.api.serializers import booking_out, bookings_with_details
from app.models.user import User
from app.models.room import Room
from app.models.booking import Booking
from app.schemas.booking import BookingCreate, PromoValidateRequest, PromoQuoteOut, ConfirmPaymentRequest
from app.schemas.payments import PaymentIntentOut
from app.services.booking_service import BookingError, create_booking, cancel_booking
from app.services.promo_service import PromoError, validate_promo
from app.services.payment_service import PaymentError, PaymentStateError, create_payment_intent, confirm_payment
from app.services.stripe_client import StripeError
from app.services.email_service import send_booking_confirmation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _own_booking(db: Session, booking_id: str, me: User) -> Booking:
    b = db.query(Booking).filter(Booking.id == booking_id, Booking.user_id == me.id).first()
    if not b:
        raise HTTPException(status_code=404, detail="Booking not found")
    return b


@router.get("/my")
def my_bookings(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    items = db.query(Booking).filter(Booking.user_id == me.id).order_by(Booking.created_at.desc()).all()
    return bookings_with_details(db, items)


@router.post("/validate-promo", response_model=PromoQuoteOut)
def check_promo(body: PromoValidateRequest, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    try:
        quote = validate_promo(db, body.code, body.amount)
    except PromoError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PromoQuoteOut(
        code=quote.promo.code,
        discountType=quote.promo.discount_type,
        discountValue=float(quote.promo.discount_value),
        discountAmount=float(quote.discount),
        finalPrice=float(quote.final),
    )


@router.get("/{booking_id}")
def get_booking(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return bookings_with_details(db, [_own_booking(db, booking_id, me)])[0]


@router.post("", status_code=201)
def create(body: BookingCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    room = db.get(Room, body.roomId)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    try:
        booking = create_booking(
            db, me, room,
            check_in=body.checkInDate,
            check_out=body.checkOutDate,
            guest_count=body.guestCount,
            special_requests=body.specialRequests,
            promo_code=body.promoCode,
        )
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    return {"booking": booking_out(booking)}


@router.post("/{booking_id}/create-payment-intent", response_model=PaymentIntentOut)
def payment_intent(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    b = _own_booking(db, booking_id, me)
    try:
        data = create_payment_intent(db, b, me)
    except PaymentStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StripeError as e:
        logger.error("PaymentIntent creation failed for booking %s: %s", b.id, e)
        raise HTTPException(status_code=502, detail=str(e))
    return PaymentIntentOut(bookingId=b.id, **data)


@router.post("/{booking_id}/confirm-payment")
def confirm(booking_id: str, body: ConfirmPaymentRequest | None = None,
            db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    b = _own_booking(db, booking_id, me)
    try:
        changed = confirm_payment(db, b, me.email, body.paymentIntentId if body else None)
    except PaymentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PaymentStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StripeError as e:
        logger.error("Payment verification failed for booking %s: %s", b.id, e)
        raise HTTPException(status_code=502, detail=str(e))
    if changed:
        room = db.get(Room, b.room_id)
        if room:
            send_booking_confirmation(db, me, b, room)
    return {"success": True, "booking": booking_out(b)}


@router.patch("/{booking_id}/cancel")
def cancel(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    b = _own_booking(db, booking_id, me)
    try:
        cancel_booking(db, b, me.email)
    except BookingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StripeError as e:
        db.rollback()
        logger.error("Refund failed for booking %s: %s", b.id, e)
        raise HTTPException(status_code=502, detail=str(e))
    return {"success": True, "booking": booking_out(b)}
