"""JSON shapes shared by the public, customer and back-office routes."""
from sqlalchemy.orm import Session

from app.models.booking import Booking
from app.models.promo_code import PromoCode
from app.models.review import Review
from app.models.room import Room
from app.models.user import User


def _money(v) -> float:
    return float(v) if v is not None else 0.0


def _iso(v):
    return v.isoformat() if v is not None else None


def user_out(u: User) -> dict:
    return {
        "_id": u.id,
        "email": u.email,
        "firstName": u.first_name,
        "lastName": u.last_name,
        "phone": u.phone,
        "role": u.role,
        "isActive": u.is_active,
        "createdAt": _iso(u.created_at),
    }


def user_brief(u: User | None) -> dict | None:
    if not u:
        return None
    return {"_id": u.id, "firstName": u.first_name, "lastName": u.last_name, "email": u.email, "phone": u.phone}


def room_out(r: Room) -> dict:
    return {
        "_id": r.id,
        "name": r.name,
        "description": r.description,
        "category": r.category,
        "pricePerNight": _money(r.price_per_night),
        "capacity": r.capacity,
        "images": list(r.images or []),
        "amenities": list(r.amenities or []),
        "isAvailable": r.is_available,
        "roomNumber": r.room_number,
        "createdAt": _iso(r.created_at),
    }


def review_out(rv: Review, reviewer: User | None = None) -> dict:
    out = {
        "_id": rv.id,
        "userId": rv.user_id,
        "roomId": rv.room_id,
        "bookingId": rv.booking_id,
        "rating": rv.rating,
        "comment": rv.comment,
        "createdAt": _iso(rv.created_at),
    }
    if reviewer is not None:
        out["user"] = {"_id": reviewer.id, "firstName": reviewer.first_name, "lastName": reviewer.last_name}
    return out


def room_with_reviews(db: Session, r: Room) -> dict:
    reviews = db.query(Review).filter(Review.room_id == r.id).order_by(Review.created_at.desc()).all()
    reviewers = {u.id: u for u in db.query(User).filter(User.id.in_({rv.user_id for rv in reviews})).all()} if reviews else {}
    out = room_out(r)
    out["reviews"] = [review_out(rv, reviewers.get(rv.user_id)) for rv in reviews]
    out["averageRating"] = (sum(rv.rating for rv in reviews) / len(reviews)) if reviews else 0
    return out


def booking_out(b: Booking) -> dict:
    return {
        "_id": b.id,
        "userId": b.user_id,
        "roomId": b.room_id,
        "checkInDate": _iso(b.check_in_date),
        "checkOutDate": _iso(b.check_out_date),
        "totalPrice": _money(b.total_price),
        "discountAmount": _money(b.discount_amount),
        "finalPrice": _money(b.final_price),
        "promoCode": b.promo_code,
        "status": b.status,
        "guestCount": b.guest_count,
        "specialRequests": b.special_requests,
        "paymentIntentId": b.payment_intent_id,
        "paymentStatus": b.payment_status,
        "createdAt": _iso(b.created_at),
    }


def bookings_with_details(db: Session, bookings: list[Booking]) -> list[dict]:
    """booking_out plus the embedded room and guest, loaded in two queries."""
    room_ids = {b.room_id for b in bookings}
    user_ids = {b.user_id for b in bookings}
    rooms = {r.id: r for r in db.query(Room).filter(Room.id.in_(room_ids)).all()} if room_ids else {}
    users = {u.id: u for u in db.query(User).filter(User.id.in_(user_ids)).all()} if user_ids else {}
    items = []
    for b in bookings:
        out = booking_out(b)
        room = rooms.get(b.room_id)
        out["room"] = room_out(room) if room else None
        out["user"] = user_brief(users.get(b.user_id))
        items.append(out)
    return items


def promo_out(p: PromoCode) -> dict:
    return {
        "_id": p.id,
        "code": p.code,
        "description": p.description,
        "discountType": p.discount_type,
        "discountValue": _money(p.discount_value),
        "minBookingAmount": _money(p.min_booking_amount),
        "maxDiscountAmount": _money(p.max_discount_amount) if p.max_discount_amount is not None else None,
        "validFrom": _iso(p.valid_from),
        "validTo": _iso(p.valid_to),
        "usageLimit": p.usage_limit,
        "usageCount": p.usage_count,
        "isActive": p.is_active,
        "createdAt": _iso(p.created_at),
    }
