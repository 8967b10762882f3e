from decimal import Decimal
from sqlalchemy import String, Integer, Date, DateTime, Numeric, Text, Index
from sqlalchemy.orm import Mapped, mapped_column
from datetime import date, datetime, timezone
from app.db.session import Base

STATUSES = ("pending", "confirmed", "checked_in", "checked_out", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "refunded")

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_room_dates", "room_id", "check_in_date", "check_out_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    room_id: Mapped[str] = mapped_column(String(36), index=True)

    check_in_date: Mapped[date] = mapped_column(Date)
    check_out_date: Mapped[date] = mapped_column(Date)

    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    final_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    promo_code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, confirmed, checked_in, checked_out, cancelled
    guest_count: Mapped[int] = mapped_column(Integer, default=1)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)

    payment_intent_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    payment_status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, paid, refunded

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
