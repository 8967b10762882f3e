import logging
import uuid
from datetime import timezone
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlalchemy.orm import Session
from sqlalchemy import func

from app.core.config import settings
from app.core.security import hash_password
from app.db.session import get_db
from app.api.deps import require_roles
from app.api.serializers import room_out, bookings_with_details, booking_out, promo_out, user_out
from app.models.user import User
from app.models.room import Room, CATEGORIES
from app.models.booking import Booking
from app.models.promo_code import PromoCode
from app.schemas.auth import UserCreate, UserUpdate
from app.schemas.booking import StatusUpdate
from app.schemas.promo import PromoCodeCreate, PromoCodeUpdate
from app.schemas.room import RoomCreate, RoomUpdate
from app.services.audit_service import log_audit
from app.services.booking_service import ACTIVE_STATUSES, BookingError, admin_set_status
from app.services.media_service import UploadError, save_image
from app.services.stripe_client import StripeError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

admin_only = require_roles("admin")

_ROOM_FIELDS = {
    "name": "name",
    "description": "description",
    "category": "category",
    "pricePerNight": "price_per_night",
    "capacity": "capacity",
    "roomNumber": "room_number",
    "images": "images",
    "amenities": "amenities",
    "isAvailable": "is_available",
}

_PROMO_FIELDS = {
    "code": "code",
    "description": "description",
    "discountType": "discount_type",
    "discountValue": "discount_value",
    "minBookingAmount": "min_booking_amount",
    "maxDiscountAmount": "max_discount_amount",
    "validFrom": "valid_from",
    "validTo": "valid_to",
    "usageLimit": "usage_limit",
    "isActive": "is_active",
}


# -------------------------
# DASHBOARD
# -------------------------
@router.get("/stats")
def stats(db: Session = Depends(get_db), me: User = Depends(admin_only)):
    total_rooms = db.query(func.count(Room.id)).scalar() or 0
    total_bookings = db.query(func.count(Booking.id)).filter(Booking.status != "cancelled").scalar() or 0
    revenue = (
        db.query(func.coalesce(func.sum(Booking.final_price), 0))
        .filter(Booking.payment_status == "paid")
        .scalar()
    )
    checked_in = db.query(func.count(Booking.id)).filter(Booking.status == "checked_in").scalar() or 0
    occupancy = round(checked_in / total_rooms * 100) if total_rooms else 0
    return {
        "totalRooms": int(total_rooms),
        "totalBookings": int(total_bookings),
        "totalRevenue": float(revenue or 0),
        "occupancyRate": occupancy,
    }


@router.get("/room-stats")
def room_stats(db: Session = Depends(get_db), me: User = Depends(admin_only)):
    rooms = db.query(Room).all()
    occupied_ids = {rid for (rid,) in db.query(Booking.room_id).filter(Booking.status == "checked_in").all()}

    def _free(r: Room) -> bool:
        return r.is_available and r.id not in occupied_ids

    by_category = []
    for category in CATEGORIES:
        in_cat = [r for r in rooms if r.category == category]
        by_category.append({
            "category": category,
            "totalRooms": len(in_cat),
            "availableRooms": sum(1 for r in in_cat if _free(r)),
            "occupiedRooms": sum(1 for r in in_cat if r.id in occupied_ids),
        })
    return {
        "statsByCategory": by_category,
        "totals": {
            "totalRooms": len(rooms),
            "availableRooms": sum(1 for r in rooms if _free(r)),
            "occupiedRooms": len(occupied_ids),
        },
    }


# -------------------------
# ROOMS
# -------------------------
@router.get("/rooms")
def admin_list_rooms(db: Session = Depends(get_db), me: User = Depends(admin_only)):
    return [room_out(r) for r in db.query(Room).order_by(Room.created_at.desc()).all()]


@router.post("/rooms", status_code=201)
def admin_create_room(body: RoomCreate, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    if db.query(Room).filter(Room.room_number == body.roomNumber).first():
        raise HTTPException(status_code=400, detail="Room number already exists")
    r = Room(id=str(uuid.uuid4()), **{col: getattr(body, f) for f, col in _ROOM_FIELDS.items()})
    db.add(r)
    log_audit(db, me.email, "room.create", "room", r.id, {"roomNumber": r.room_number})
    db.commit()
    db.refresh(r)
    return room_out(r)


@router.put("/rooms/{room_id}")
def admin_update_room(room_id: str, body: RoomUpdate, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    r = db.get(Room, room_id)
    if not r:
        raise HTTPException(status_code=404, detail="Room not found")
    changes = body.model_dump(exclude_unset=True)
    if changes.get("roomNumber"):
        clash = db.query(Room).filter(Room.room_number == changes["roomNumber"], Room.id != room_id).first()
        if clash:
            raise HTTPException(status_code=400, detail="Room number already exists")
    for field, value in changes.items():
        if value is not None:
            setattr(r, _ROOM_FIELDS[field], value)
    log_audit(db, me.email, "room.update", "room", r.id, changes)
    db.commit()
    db.refresh(r)
    return room_out(r)


@router.delete("/rooms/{room_id}")
def admin_delete_room(room_id: str, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    active = db.query(func.count(Booking.id)).filter(
        Booking.room_id == room_id, Booking.status.in_(ACTIVE_STATUSES)
    ).scalar()
    if active:
        raise HTTPException(status_code=400, detail="Cannot delete room with active bookings")
    r = db.get(Room, room_id)
    if not r:
        raise HTTPException(status_code=404, detail="Room not found")
    db.delete(r)
    log_audit(db, me.email, "room.delete", "room", room_id, {"roomNumber": r.room_number})
    db.commit()
    return {"success": True}


@router.post("/upload")
async def admin_upload(images: list[UploadFile] = File(default=[]), me: User = Depends(admin_only)):
    if not images:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(images) > settings.UPLOAD_MAX_FILES:
        raise HTTPException(status_code=400, detail=f"At most {settings.UPLOAD_MAX_FILES} files per upload")
    urls = []
    for f in images:
        data = await f.read()
        try:
            urls.append(save_image(data, f.filename))
        except UploadError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return {"urls": urls}


# -------------------------
# BOOKINGS
# -------------------------
@router.get("/bookings")
def admin_list_bookings(limit: int = 50, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    items = db.query(Booking).order_by(Booking.created_at.desc()).limit(min(max(limit, 1), 500)).all()
    return bookings_with_details(db, items)


@router.patch("/bookings/{booking_id}/status")
def admin_booking_status(booking_id: str, body: StatusUpdate, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    b = db.get(Booking, booking_id)
    if not b:
        raise HTTPException(status_code=404, detail="Booking not found")
    previous = b.status
    try:
        admin_set_status(db, b, body.status, me.email)
    except BookingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StripeError as e:
        db.rollback()
        logger.error("Refund failed for booking %s: %s", b.id, e)
        raise HTTPException(status_code=502, detail=str(e))
    log_audit(db, me.email, "booking.status", "booking", b.id, {"from": previous, "to": b.status})
    db.commit()
    db.refresh(b)
    return booking_out(b)


# -------------------------
# PROMO CODES
# -------------------------
@router.get("/promo-codes")
def admin_list_promos(db: Session = Depends(get_db), me: User = Depends(admin_only)):
    return [promo_out(p) for p in db.query(PromoCode).order_by(PromoCode.created_at.desc()).all()]


@router.post("/promo-codes", status_code=201)
def admin_create_promo(body: PromoCodeCreate, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    if db.query(PromoCode).filter(PromoCode.code == body.code).first():
        raise HTTPException(status_code=400, detail="Promo code already exists")
    p = PromoCode(id=str(uuid.uuid4()), usage_count=0, **{col: getattr(body, f) for f, col in _PROMO_FIELDS.items()})
    db.add(p)
    log_audit(db, me.email, "promo.create", "promo_code", p.id, {"code": p.code})
    db.commit()
    db.refresh(p)
    return promo_out(p)


def _promo_problem(p: PromoCode) -> str | None:
    """Rules the create schema enforces, re-checked on the merged row after an update."""
    valid_from = p.valid_from if p.valid_from.tzinfo else p.valid_from.replace(tzinfo=timezone.utc)
    valid_to = p.valid_to if p.valid_to.tzinfo else p.valid_to.replace(tzinfo=timezone.utc)
    if valid_to < valid_from:
        return "validTo must not be before validFrom"
    if p.discount_type == "percentage" and float(p.discount_value) > 100:
        return "Percentage discount cannot exceed 100"
    if p.usage_limit is not None and p.usage_limit < p.usage_count:
        return f"usageLimit cannot be below current usage ({p.usage_count})"
    return None


@router.put("/promo-codes/{promo_id}")
def admin_update_promo(promo_id: str, body: PromoCodeUpdate, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    p = db.get(PromoCode, promo_id)
    if not p:
        raise HTTPException(status_code=404, detail="Promo code not found")
    changes = body.model_dump(exclude_unset=True)
    if changes.get("code"):
        clash = db.query(PromoCode).filter(PromoCode.code == changes["code"], PromoCode.id != promo_id).first()
        if clash:
            raise HTTPException(status_code=400, detail="Promo code already exists")
    for field, value in changes.items():
        # maxDiscountAmount / usageLimit may be cleared with an explicit null
        if value is None and field not in ("maxDiscountAmount", "usageLimit", "description"):
            continue
        setattr(p, _PROMO_FIELDS[field], value)
    problem = _promo_problem(p)
    if problem:
        db.rollback()
        raise HTTPException(status_code=400, detail=problem)
    log_audit(db, me.email, "promo.update", "promo_code", p.id, changes)
    db.commit()
    db.refresh(p)
    return promo_out(p)


@router.delete("/promo-codes/{promo_id}")
def admin_delete_promo(promo_id: str, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    p = db.get(PromoCode, promo_id)
    if not p:
        raise HTTPException(status_code=404, detail="Promo code not found")
    db.delete(p)
    log_audit(db, me.email, "promo.delete", "promo_code", promo_id, {"code": p.code})
    db.commit()
    return {"success": True}


@router.patch("/promo-codes/{promo_id}/toggle")
def admin_toggle_promo(promo_id: str, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    p = db.get(PromoCode, promo_id)
    if not p:
        raise HTTPException(status_code=404, detail="Promo code not found")
    p.is_active = not p.is_active
    log_audit(db, me.email, "promo.toggle", "promo_code", p.id, {"isActive": p.is_active})
    db.commit()
    db.refresh(p)
    return promo_out(p)


# -------------------------
# USERS
# -------------------------
@router.get("/users")
def admin_list_users(role: str | None = None, q: str | None = None, limit: int = 50, offset: int = 0,
                     db: Session = Depends(get_db), me: User = Depends(admin_only)):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if q:
        ql = f"%{q.lower()}%"
        query = query.filter(
            func.lower(User.email).like(ql) | func.lower(User.first_name).like(ql) | func.lower(User.last_name).like(ql)
        )
    total = query.count()
    users = query.order_by(User.created_at.desc()).limit(min(limit, 200)).offset(max(offset, 0)).all()
    return {"total": total, "items": [user_out(u) for u in users]}


@router.post("/users", status_code=201)
def admin_create_user(body: UserCreate, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    if db.query(User).filter(User.email == body.email).first():
        raise HTTPException(status_code=409, detail="Email already exists")
    pw = body.tempPassword or (uuid.uuid4().hex[:10] + "A1!")
    u = User(
        id=str(uuid.uuid4()),
        email=body.email,
        first_name=body.firstName,
        last_name=body.lastName,
        phone=body.phone,
        role=body.role,
        password_hash=hash_password(pw),
        is_active=True,
    )
    db.add(u)
    log_audit(db, me.email, "user.create", "user", u.id, {"email": u.email, "role": u.role})
    db.commit()
    db.refresh(u)
    return {"user": user_out(u), "tempPassword": pw}


@router.patch("/users/{user_id}")
def admin_update_user(user_id: str, body: UserUpdate, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    u = db.get(User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    if u.id == me.id and (body.role not in (None, "admin") or body.isActive is False):
        raise HTTPException(status_code=400, detail="You cannot demote or deactivate yourself")
    if body.firstName is not None:
        u.first_name = body.firstName
    if body.lastName is not None:
        u.last_name = body.lastName
    if body.phone is not None:
        u.phone = body.phone
    if body.role is not None:
        u.role = body.role
    if body.isActive is not None:
        u.is_active = body.isActive
    log_audit(db, me.email, "user.update", "user", u.id, {"role": u.role, "isActive": u.is_active})
    db.commit()
    db.refresh(u)
    return user_out(u)
