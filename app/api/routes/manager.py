from datetime import date
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, or_, and_
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_roles
from app.api.serializers import booking_out, bookings_with_details
from app.models.user import User
from app.models.booking import Booking
from app.schemas.booking import StatusUpdate
from app.services.audit_service import log_audit
from app.services.booking_service import BookingError, manager_transition

router = APIRouter(prefix="/manager", tags=["manager"])

staff = require_roles("manager", "admin")


def _arrivals(today: date):
    return and_(Booking.check_in_date == today, Booking.status.in_(["pending", "confirmed"]))


def _departures(today: date):
    return and_(Booking.check_out_date == today, Booking.status == "checked_in")


@router.get("/stats")
def stats(db: Session = Depends(get_db), me: User = Depends(staff)):
    today = date.today()

    def count(*conds) -> int:
        return int(db.query(func.count(Booking.id)).filter(*conds).scalar() or 0)

    return {
        "todayCheckIns": count(_arrivals(today)),
        "todayCheckOuts": count(_departures(today)),
        "currentGuests": count(Booking.status == "checked_in"),
        "pendingBookings": count(Booking.status == "pending"),
    }


@router.get("/bookings")
def list_bookings(db: Session = Depends(get_db), me: User = Depends(staff)):
    items = db.query(Booking).order_by(Booking.check_in_date.asc()).all()
    return bookings_with_details(db, items)


@router.get("/bookings/today")
def today_bookings(db: Session = Depends(get_db), me: User = Depends(staff)):
    today = date.today()
    items = (
        db.query(Booking)
        .filter(or_(_arrivals(today), _departures(today)))
        .order_by(Booking.check_in_date.asc())
        .all()
    )
    return bookings_with_details(db, items)


@router.patch("/bookings/{booking_id}/status")
def update_status(booking_id: str, body: StatusUpdate, db: Session = Depends(get_db), me: User = Depends(staff)):
    b = db.get(Booking, booking_id)
    if not b:
        raise HTTPException(status_code=404, detail="Booking not found")
    previous = b.status
    try:
        manager_transition(b, body.status)
    except BookingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_audit(db, me.email, "booking.status", "booking", b.id, {"from": previous, "to": b.status})
    db.commit()
    db.refresh(b)
    return booking_out(b)
