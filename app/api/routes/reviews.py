import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_current_user
from app.api.serializers import review_out, room_out
from app.models.user import User
from app.models.room import Room
from app.models.booking import Booking
from app.models.review import Review
from app.schemas.review import ReviewCreate

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", status_code=201)
def create_review(body: ReviewCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    b = db.query(Booking).filter(
        Booking.id == body.bookingId,
        Booking.user_id == me.id,
        Booking.room_id == body.roomId,
    ).first()
    if not b:
        raise HTTPException(status_code=404, detail="Booking not found")
    if b.status != "checked_out":
        raise HTTPException(status_code=400, detail="Can only review after checkout")
    if db.query(Review).filter(Review.booking_id == b.id).first():
        raise HTTPException(status_code=400, detail="You have already reviewed this stay")
    rv = Review(
        id=str(uuid.uuid4()),
        user_id=me.id,
        room_id=b.room_id,
        booking_id=b.id,
        rating=body.rating,
        comment=body.comment,
    )
    db.add(rv)
    db.commit()
    db.refresh(rv)
    return review_out(rv)


@router.get("/my")
def my_reviews(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    reviews = db.query(Review).filter(Review.user_id == me.id).order_by(Review.created_at.desc()).all()
    rooms = {r.id: r for r in db.query(Room).filter(Room.id.in_({rv.room_id for rv in reviews})).all()} if reviews else {}
    out = []
    for rv in reviews:
        item = review_out(rv)
        room = rooms.get(rv.room_id)
        item["room"] = {"_id": room.id, "name": room.name, "images": room_out(room)["images"]} if room else None
        out.append(item)
    return out
