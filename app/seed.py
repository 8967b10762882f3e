import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.db.session import SessionLocal
from app.core.config import settings
from app.core.security import hash_password
from app.models.user import User
from app.models.room import Room
from app.models.promo_code import PromoCode

logger = logging.getLogger(__name__)

_IMG = "https://images.unsplash.com/photo-{}?w=800"

ROOMS = [
    {
        "name": "Presidential Suite",
        "description": "Our most luxurious accommodation featuring a private terrace with panoramic ocean views, a master bedroom with king-size bed, separate living area and a marble bathroom with jacuzzi.",
        "category": "Presidential",
        "price_per_night": 899,
        "capacity": 4,
        "room_number": "PH01",
        "images": [_IMG.format("1631049307264-da0ec9d70304"), _IMG.format("1618773928121-c32242e63f39")],
        "amenities": ["WiFi", "Air Conditioning", "Ocean View", "Mini Bar", "Room Service", "Jacuzzi"],
    },
    {
        "name": "Deluxe Ocean View",
        "description": "Wake up to sunrise views over the ocean. A plush king-size bed, floor-to-ceiling windows, rain shower and a private balcony.",
        "category": "Deluxe",
        "price_per_night": 399,
        "capacity": 2,
        "room_number": "301",
        "images": [_IMG.format("1582719478250-c89cae4dc85b")],
        "amenities": ["WiFi", "Air Conditioning", "Ocean View", "Mini Bar", "Balcony"],
    },
    {
        "name": "Garden Executive Suite",
        "description": "A private suite surrounded by tropical gardens with two bedrooms, a private pool and a fully equipped kitchen.",
        "category": "Executive",
        "price_per_night": 649,
        "capacity": 6,
        "room_number": "V01",
        "images": [_IMG.format("1600596542815-ffad4c1539a9")],
        "amenities": ["WiFi", "Air Conditioning", "Refrigerator", "Coffee Maker"],
    },
    {
        "name": "Classic Double Room",
        "description": "Comfortable room with two queen-size beds, a work desk and modern amenities for business travelers or friends.",
        "category": "Standard",
        "price_per_night": 199,
        "capacity": 4,
        "room_number": "102",
        "images": [_IMG.format("1611892440504-42a792e24d32")],
        "amenities": ["WiFi", "Air Conditioning", "Work Desk", "Coffee Maker", "Iron"],
    },
    {
        "name": "Family Garden Room",
        "description": "Spacious family room with a king bed and twin beds, garden access and a kids' corner.",
        "category": "Family",
        "price_per_night": 329,
        "capacity": 5,
        "room_number": "120",
        "images": [_IMG.format("1566665797739-1674de7a421a")],
        "amenities": ["WiFi", "Air Conditioning", "TV", "Twin Beds", "Bathtub"],
    },
    {
        "name": "Skyline Penthouse",
        "description": "Top-floor penthouse with a wraparound terrace, private lounge and city skyline views.",
        "category": "Penthouse",
        "price_per_night": 1199,
        "capacity": 4,
        "room_number": "PH02",
        "images": [_IMG.format("1590490360182-c33d57733427")],
        "amenities": ["WiFi", "Air Conditioning", "Jacuzzi", "Mini Bar", "Room Service", "Balcony"],
    },
]


def ensure_user(db: Session, email: str, password: str, role: str, first: str, last: str):
    if db.query(User).filter(User.email == email).first():
        return
    db.add(
        User(
            id=str(uuid.uuid4()),
            email=email,
            first_name=first,
            last_name=last,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
        )
    )
    db.commit()


def ensure_room(db: Session, data: dict):
    if db.query(Room).filter(Room.room_number == data["room_number"]).first():
        return
    db.add(Room(id=str(uuid.uuid4()), is_available=True, **data))
    db.commit()


def ensure_promo(db: Session, code: str, **fields):
    if db.query(PromoCode).filter(PromoCode.code == code).first():
        return
    db.add(PromoCode(id=str(uuid.uuid4()), code=code, usage_count=0, is_active=True, **fields))
    db.commit()


def run(db=None):
    own_session = db is None
    if own_session:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("users table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        pw = settings.SEED_PASSWORD
        ensure_user(db, "admin@hotel.com", pw, "admin", "Admin", "User")
        ensure_user(db, "manager@hotel.com", pw, "manager", "Manager", "User")
        ensure_user(db, "customer@hotel.com", pw, "customer", "John", "Customer")

        for room in ROOMS:
            ensure_room(db, room)

        now = datetime.now(timezone.utc)
        ensure_promo(
            db, "WELCOME10",
            description="10% off your first stay",
            discount_type="percentage",
            discount_value=10,
            min_booking_amount=100,
            max_discount_amount=200,
            valid_from=now,
            valid_to=now + timedelta(days=365),
            usage_limit=100,
        )
        logger.info("Seed complete: %d rooms, 3 users", len(ROOMS))
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
