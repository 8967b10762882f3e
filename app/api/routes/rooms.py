from datetime import date
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.models.room import Room
from app.services.booking_service import find_conflicts
from app.api.serializers import room_with_reviews

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("")
def list_rooms(category: str | None = None, minPrice: float | None = None, maxPrice: float | None = None,
               amenities: str | None = None, limit: int = 20, offset: int = 0,
               db: Session = Depends(get_db)):
    q = db.query(Room).filter(Room.is_available == True)
    if category:
        q = q.filter(Room.category == category)
    if minPrice is not None:
        q = q.filter(Room.price_per_night >= minPrice)
    if maxPrice is not None:
        q = q.filter(Room.price_per_night <= maxPrice)
    rooms = q.order_by(Room.created_at.desc()).all()
    if amenities:
        wanted = {a.strip() for a in amenities.split(",") if a.strip()}
        rooms = [r for r in rooms if wanted.issubset(set(r.amenities or []))]
    offset = max(offset, 0)
    rooms = rooms[offset:offset + min(max(limit, 0), 100)]
    return [room_with_reviews(db, r) for r in rooms]


@router.get("/{room_id}")
def get_room(room_id: str, db: Session = Depends(get_db)):
    room = db.get(Room, room_id)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return room_with_reviews(db, room)


@router.get("/{room_id}/availability")
def room_availability(room_id: str, checkIn: date | None = None, checkOut: date | None = None,
                      db: Session = Depends(get_db)):
    if not checkIn or not checkOut:
        raise HTTPException(status_code=400, detail="Check-in and check-out dates required")
    if checkOut <= checkIn:
        raise HTTPException(status_code=400, detail="Check-out date must be after check-in date")
    if not db.get(Room, room_id):
        raise HTTPException(status_code=404, detail="Room not found")
    conflicts = find_conflicts(db, room_id, checkIn, checkOut)
    return {"available": len(conflicts) == 0, "conflictingBookings": len(conflicts)}
