from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from app.db import Base
from app.utils.datetime import utc_now


class User(Base):
    """Local record of a Firebase identity; everything else hangs off it."""
    __tablename__ = "users"
    id = Column(String, primary_key=True, index=True)  # Firebase uid
    email = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    profile = relationship(
        "Profile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<User id={self.id} email={self.email}>"
