from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.models.booking import BookingStatus


class BookingCreate(BaseModel):
    mentor_id: str
    start_time: datetime
    duration: int  # minutes
    # Defaults to the caller; anything else is refused by the insert policy
    user_id: Optional[str] = None
    status: BookingStatus = BookingStatus.pending


class BookingUpdate(BaseModel):
    mentor_id: Optional[str] = None
    start_time: Optional[datetime] = None
    duration: Optional[int] = None
    status: Optional[BookingStatus] = None


class BookingOut(BaseModel):
    id: str
    mentor_id: str
    user_id: str
    start_time: str
    duration: int
    status: BookingStatus
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
