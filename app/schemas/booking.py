from datetime import date
from pydantic import BaseModel, Field, model_validator
from typing import Literal, Optional

BookingStatus = Literal["pending", "confirmed", "checked_in", "checked_out", "cancelled"]


class BookingCreate(BaseModel):
    roomId: str
    checkInDate: date
    checkOutDate: date
    guestCount: int = Field(gt=0)
    specialRequests: Optional[str] = None
    promoCode: Optional[str] = None
    # Accepted for older clients; the server always prices the stay itself.
    totalPrice: Optional[float] = None

    @model_validator(mode="after")
    def _check_dates(self):
        if self.checkOutDate <= self.checkInDate:
            raise ValueError("Check-out date must be after check-in date")
        return self


class PromoValidateRequest(BaseModel):
    code: str = Field(min_length=1)
    amount: float = Field(ge=0)


class PromoQuoteOut(BaseModel):
    valid: bool = True
    code: str
    discountType: str
    discountValue: float
    discountAmount: float
    finalPrice: float


class ConfirmPaymentRequest(BaseModel):
    paymentIntentId: Optional[str] = None


class StatusUpdate(BaseModel):
    status: BookingStatus
