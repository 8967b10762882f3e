from pydantic import BaseModel, Field
from typing import List, Literal, Optional

Category = Literal["Standard", "Deluxe", "Suite", "Executive", "Presidential", "Family", "Penthouse"]


class RoomCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=10)
    category: Category
    pricePerNight: float = Field(gt=0)
    capacity: int = Field(gt=0)
    roomNumber: str = Field(min_length=1)
    images: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    isAvailable: bool = True


class RoomUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=10)
    category: Optional[Category] = None
    pricePerNight: Optional[float] = Field(default=None, gt=0)
    capacity: Optional[int] = Field(default=None, gt=0)
    roomNumber: Optional[str] = Field(default=None, min_length=1)
    images: Optional[List[str]] = None
    amenities: Optional[List[str]] = None
    isAvailable: Optional[bool] = None
