from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    bookingId: str
    roomId: str
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=10)
