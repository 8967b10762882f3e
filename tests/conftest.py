"""
Pytest configuration and shared fixtures
"""
import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["PAYMENT_MODE"] = "test"
os.environ["SMTP_HOST"] = ""
os.environ["SENDGRID_API_KEY"] = ""
os.environ["CLOUDINARY_URL"] = ""
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="hotel-uploads-"))

import uuid
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from app.db.session import Base, get_db
from app.core.security import hash_password, create_access_token
from app.models.user import User
from app.models.room import Room
from app.models.booking import Booking
from app.models.promo_code import PromoCode
from app.models.review import Review  # noqa: F401
from app.models.payment import Payment  # noqa: F401
from app.models.audit_log import AuditLog  # noqa: F401
from app.models.email_log import EmailLog  # noqa: F401
from app.main import app


@pytest.fixture(scope="function")
def db_engine():
    """In-memory database engine"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== Users & auth ==============

def _make_user(db, email: str, role: str, first: str = "Test", last: str = "User") -> User:
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        first_name=first,
        last_name=last,
        role=role,
        password_hash=hash_password("secret123"),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db_session):
    return _make_user(db_session, "guest@example.com", "customer", "Jane", "Guest")


@pytest.fixture
def other_customer(db_session):
    return _make_user(db_session, "other@example.com", "customer", "Otto", "Other")


@pytest.fixture
def manager(db_session):
    return _make_user(db_session, "manager@example.com", "manager", "Mia", "Manager")


@pytest.fixture
def admin(db_session):
    return _make_user(db_session, "admin@example.com", "admin", "Ada", "Admin")


def _headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def customer_headers(customer):
    return _headers(customer)


@pytest.fixture
def other_headers(other_customer):
    return _headers(other_customer)


@pytest.fixture
def manager_headers(manager):
    return _headers(manager)


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


# ============== Domain objects ==============

@pytest.fixture
def room(db_session):
    r = Room(
        id=str(uuid.uuid4()),
        name="Deluxe Ocean View",
        description="King bed, balcony and a view of the bay.",
        category="Deluxe",
        price_per_night=100,
        capacity=2,
        images=["/uploads/a.jpg"],
        amenities=["WiFi", "Balcony"],
        is_available=True,
        room_number="301",
    )
    db_session.add(r)
    db_session.commit()
    db_session.refresh(r)
    return r


@pytest.fixture
def make_room(db_session):
    def _make(room_number: str, category: str = "Standard", price: float = 80, capacity: int = 2,
              amenities=None, is_available: bool = True) -> Room:
        r = Room(
            id=str(uuid.uuid4()),
            name=f"Room {room_number}",
            description="A comfortable room for two guests.",
            category=category,
            price_per_night=price,
            capacity=capacity,
            images=[],
            amenities=amenities or ["WiFi"],
            is_available=is_available,
            room_number=room_number,
        )
        db_session.add(r)
        db_session.commit()
        db_session.refresh(r)
        return r
    return _make


@pytest.fixture
def make_booking(db_session):
    def _make(user: User, room: Room, check_in: date, nights: int = 2, status: str = "pending",
              payment_status: str = "pending", price: float | None = None) -> Booking:
        total = price if price is not None else float(room.price_per_night) * nights
        b = Booking(
            id=str(uuid.uuid4()),
            user_id=user.id,
            room_id=room.id,
            check_in_date=check_in,
            check_out_date=check_in + timedelta(days=nights),
            total_price=total,
            discount_amount=0,
            final_price=total,
            status=status,
            guest_count=1,
            payment_status=payment_status,
        )
        db_session.add(b)
        db_session.commit()
        db_session.refresh(b)
        return b
    return _make


@pytest.fixture
def make_promo(db_session):
    def _make(code: str = "SAVE10", discount_type: str = "percentage", value: float = 10, **overrides) -> PromoCode:
        now = datetime.now(timezone.utc)
        fields = dict(
            id=str(uuid.uuid4()),
            code=code,
            discount_type=discount_type,
            discount_value=value,
            min_booking_amount=0,
            max_discount_amount=None,
            valid_from=now - timedelta(days=1),
            valid_to=now + timedelta(days=30),
            usage_limit=None,
            usage_count=0,
            is_active=True,
        )
        fields.update(overrides)
        p = PromoCode(**fields)
        db_session.add(p)
        db_session.commit()
        db_session.refresh(p)
        return p
    return _make


@pytest.fixture
def future():
    """A check-in date safely in the future."""
    return date.today() + timedelta(days=10)
