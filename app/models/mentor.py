from sqlalchemy import Column, String, Integer, Boolean, Text, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import TimestampMixin


class Mentor(TimestampMixin, Base):
    """Mentor extension of a profile (one-to-one, shares the profile id).

    ``available`` gates visibility: only available mentors are readable
    through the API.
    """
    __tablename__ = "mentors"

    id = Column(String, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True)
    company = Column(Text, nullable=False)
    position = Column(Text, nullable=False)
    experience_years = Column(Integer, nullable=False)
    hourly_rate = Column(Integer, nullable=False)  # USD
    bio = Column(Text, nullable=False)
    # text[] on Postgres; JSON list elsewhere (SQLite in tests)
    expertise = Column(ARRAY(Text).with_variant(JSON(), "sqlite"), nullable=False)
    available = Column(Boolean, default=True, nullable=True)

    profile = relationship("Profile", back_populates="mentor")
    bookings = relationship(
        "Booking",
        back_populates="mentor",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
