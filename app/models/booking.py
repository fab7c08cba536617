from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
import enum
import uuid

from app.db import Base
from app.models.mixins import TimestampMixin


class BookingStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


BOOKING_STATUSES = tuple(s.value for s in BookingStatus)


class Booking(TimestampMixin, Base):
    __tablename__ = "bookings"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    mentor_id = Column(String, ForeignKey("mentors.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    # Stored as plain text; membership enforced by valid_status only
    status = Column(String, nullable=False, default=BookingStatus.pending.value)

    mentor = relationship("Mentor", back_populates="bookings")
    user = relationship("Profile", back_populates="bookings")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="valid_status",
        ),
    )

    def __repr__(self):
        return f"<Booking id={self.id} mentor={self.mentor_id} user={self.user_id} status={self.status}>"
