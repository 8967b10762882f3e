from decimal import Decimal
from sqlalchemy import String, Integer, DateTime, Boolean, Numeric, Index
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

DISCOUNT_TYPES = ("percentage", "fixed")

class PromoCode(Base):
    __tablename__ = "promo_codes"
    __table_args__ = (
        Index("ix_promo_codes_active_window", "is_active", "valid_from", "valid_to"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    code: Mapped[str] = mapped_column(String(20), unique=True, index=True)  # stored upper-cased
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    discount_type: Mapped[str] = mapped_column(String(20))  # percentage, fixed
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    min_booking_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    max_discount_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    valid_from: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    valid_to: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    usage_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
