import uuid
from datetime import date
from sqlalchemy.orm import Session
from app.models.user import User
from app.models.room import Room
from app.models.booking import Booking, STATUSES
from app.services.promo_service import validate_promo, redeem_promo, to_money
from app.services.payment_service import refund_booking

ACTIVE_STATUSES = ("pending", "confirmed", "checked_in")


class BookingError(ValueError):
    pass


def nights_between(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def find_conflicts(db: Session, room_id: str, check_in: date, check_out: date, exclude_booking_id: str | None = None) -> list[Booking]:
    """Non-cancelled bookings on the room whose [check_in, check_out) overlaps the requested range."""
    q = db.query(Booking).filter(
        Booking.room_id == room_id,
        Booking.status != "cancelled",
        Booking.check_in_date < check_out,
        Booking.check_out_date > check_in,
    )
    if exclude_booking_id:
        q = q.filter(Booking.id != exclude_booking_id)
    return q.all()


def is_room_available(db: Session, room_id: str, check_in: date, check_out: date) -> bool:
    return not find_conflicts(db, room_id, check_in, check_out)


def quote_stay(room: Room, check_in: date, check_out: date):
    nights = nights_between(check_in, check_out)
    if nights < 1:
        raise BookingError("Check-out date must be after check-in date")
    return to_money(room.price_per_night) * nights


def create_booking(
    db: Session,
    user: User,
    room: Room,
    check_in: date,
    check_out: date,
    guest_count: int,
    special_requests: str | None = None,
    promo_code: str | None = None,
    today: date | None = None,
) -> Booking:
    if today is None:
        today = date.today()
    if not room.is_available:
        raise BookingError("Room is not available")
    if guest_count < 1:
        raise BookingError("guestCount must be >= 1")
    if guest_count > room.capacity:
        raise BookingError(f"Room capacity is {room.capacity} guests")
    if check_in < today:
        raise BookingError("Check-in date cannot be in the past")
    total = quote_stay(room, check_in, check_out)

    # Check-then-insert; not atomic across concurrent requests.
    if not is_room_available(db, room.id, check_in, check_out):
        raise BookingError("Room is not available for selected dates")

    discount = to_money(0)
    final = total
    code = None
    if promo_code and promo_code.strip():
        quote = validate_promo(db, promo_code, total)
        redeem_promo(db, quote.promo)
        discount, final, code = quote.discount, quote.final, quote.promo.code

    booking = Booking(
        id=str(uuid.uuid4()),
        user_id=user.id,
        room_id=room.id,
        check_in_date=check_in,
        check_out_date=check_out,
        total_price=total,
        discount_amount=discount,
        final_price=final,
        promo_code=code,
        status="pending",
        guest_count=guest_count,
        special_requests=special_requests,
        payment_status="pending",
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def ensure_cancellable(booking: Booking, today: date | None = None) -> None:
    if today is None:
        today = date.today()
    if booking.status == "cancelled":
        raise BookingError("Booking is already cancelled")
    if booking.status == "checked_out":
        raise BookingError("Cannot cancel a completed booking")
    if booking.status == "checked_in":
        raise BookingError("Cannot cancel a booking after check-in")
    if booking.check_in_date <= today:
        raise BookingError("Cannot cancel booking on or after check-in date")


def cancel_booking(db: Session, booking: Booking, actor: str, today: date | None = None) -> Booking:
    ensure_cancellable(booking, today)
    # Refund first: a gateway failure leaves the booking untouched.
    refund_booking(db, booking, actor)
    booking.status = "cancelled"
    db.commit()
    db.refresh(booking)
    return booking


def manager_transition(booking: Booking, status: str) -> None:
    if status not in ("checked_in", "checked_out"):
        raise BookingError("Managers can only check-in or check-out guests")
    if status == "checked_in" and booking.status not in ("pending", "confirmed"):
        raise BookingError("Can only check-in pending or confirmed bookings")
    if status == "checked_out" and booking.status != "checked_in":
        raise BookingError("Can only check-out checked-in guests")
    booking.status = status


def admin_set_status(db: Session, booking: Booking, status: str, actor: str) -> None:
    """Admin override of any status.

    Un-cancelling re-checks the dates; cancelling a paid booking refunds it. Does not commit.
    """
    if status not in STATUSES:
        raise BookingError("Invalid status")
    if booking.status == "cancelled" and status != "cancelled":
        if find_conflicts(db, booking.room_id, booking.check_in_date, booking.check_out_date, exclude_booking_id=booking.id):
            raise BookingError("Room is not available for selected dates")
    if status == "cancelled" and booking.status != "cancelled":
        refund_booking(db, booking, actor)
    booking.status = status
