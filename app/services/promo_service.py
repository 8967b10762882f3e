from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import update, or_
from sqlalchemy.orm import Session

from app.models.promo_code import PromoCode

CENTS = Decimal("0.01")


class PromoError(ValueError):
    pass


@dataclass
class PromoQuote:
    promo: PromoCode
    amount: Decimal
    discount: Decimal
    final: Decimal


def to_money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _aware(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def compute_discount(promo: PromoCode, amount) -> tuple[Decimal, Decimal]:
    """Return (discount, final) for `amount`.

    Percentage codes take value% of the amount, fixed codes take the value itself.
    The discount is then capped by max_discount_amount (when set) and by the amount,
    so the final price never goes negative.
    """
    amount = to_money(amount)
    value = Decimal(str(promo.discount_value))
    if promo.discount_type == "percentage":
        discount = amount * value / Decimal(100)
    else:
        discount = value
    if promo.max_discount_amount is not None:
        discount = min(discount, Decimal(str(promo.max_discount_amount)))
    discount = to_money(min(discount, amount))
    return discount, amount - discount


def find_active_promo(db: Session, code: str) -> PromoCode | None:
    code = (code or "").strip().upper()
    if not code:
        return None
    return db.query(PromoCode).filter(PromoCode.code == code, PromoCode.is_active == True).first()


def validate_promo(db: Session, code: str, amount, now: datetime | None = None) -> PromoQuote:
    if now is None:
        now = datetime.now(timezone.utc)
    promo = find_active_promo(db, code)
    if not promo:
        raise PromoError("Invalid or inactive promo code")
    if _aware(promo.valid_from) > now:
        raise PromoError("Promo code is not yet valid")
    if _aware(promo.valid_to) < now:
        raise PromoError("Promo code has expired")
    if promo.usage_limit is not None and promo.usage_count >= promo.usage_limit:
        raise PromoError("Promo code usage limit reached")
    amount = to_money(amount)
    if amount < to_money(promo.min_booking_amount):
        raise PromoError(f"Minimum booking amount for this code is {to_money(promo.min_booking_amount)}")
    discount, final = compute_discount(promo, amount)
    return PromoQuote(promo=promo, amount=amount, discount=discount, final=final)


def redeem_promo(db: Session, promo: PromoCode) -> None:
    """Count one use of `promo`.

    Single conditional UPDATE so two concurrent bookings cannot push usage_count past usage_limit.
    Does not commit.
    """
    res = db.execute(
        update(PromoCode)
        .where(
            PromoCode.id == promo.id,
            or_(PromoCode.usage_limit.is_(None), PromoCode.usage_count < PromoCode.usage_limit),
        )
        .values(usage_count=PromoCode.usage_count + 1)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        raise PromoError("Promo code usage limit reached")
    db.refresh(promo)
