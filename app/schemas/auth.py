import re
from pydantic import BaseModel, Field, field_validator
from typing import Optional

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class _EmailModel(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if not _EMAIL_RE.match(v):
            raise ValueError("Invalid email address")
        return v


class RegisterRequest(_EmailModel):
    password: str = Field(min_length=6)
    firstName: str = Field(min_length=1)
    lastName: str = Field(min_length=1)
    phone: Optional[str] = None


class LoginRequest(_EmailModel):
    password: str = Field(min_length=1)


class ChangePasswordRequest(BaseModel):
    oldPassword: str
    newPassword: str = Field(min_length=6)


class UserCreate(_EmailModel):
    firstName: str = Field(min_length=1)
    lastName: str = Field(min_length=1)
    phone: Optional[str] = None
    role: str = Field(default="manager", pattern="^(customer|manager|admin)$")
    tempPassword: Optional[str] = Field(default=None, min_length=6)


class UserUpdate(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = Field(default=None, pattern="^(customer|manager|admin)$")
    isActive: Optional[bool] = None
