from datetime import datetime
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Literal, Optional


class PromoCodeCreate(BaseModel):
    code: str = Field(min_length=3, max_length=20)
    description: Optional[str] = None
    discountType: Literal["percentage", "fixed"]
    discountValue: float = Field(gt=0)
    minBookingAmount: float = Field(default=0, ge=0)
    maxDiscountAmount: Optional[float] = Field(default=None, gt=0)
    validFrom: datetime
    validTo: datetime
    usageLimit: Optional[int] = Field(default=None, ge=1)
    isActive: bool = True

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def _check(self):
        if self.validTo < self.validFrom:
            raise ValueError("validTo must not be before validFrom")
        if self.discountType == "percentage" and self.discountValue > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class PromoCodeUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=3, max_length=20)
    description: Optional[str] = None
    discountType: Optional[Literal["percentage", "fixed"]] = None
    discountValue: Optional[float] = Field(default=None, gt=0)
    minBookingAmount: Optional[float] = Field(default=None, ge=0)
    maxDiscountAmount: Optional[float] = Field(default=None, gt=0)
    validFrom: Optional[datetime] = None
    validTo: Optional[datetime] = None
    usageLimit: Optional[int] = Field(default=None, ge=1)
    isActive: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v is not None else v
