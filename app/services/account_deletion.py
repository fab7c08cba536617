"""
Account Deletion Service

Deleting the identity record is the only way rows leave the system through
the API. The foreign keys cascade:
- users -> profiles
- profiles -> mentors, bookings (as booker)
- mentors -> bookings (as booked mentor)
"""

from sqlalchemy.orm import Session
from sqlalchemy import or_
import logging

from app.db import commit_or_conflict
from app.models.user import User
from app.models.profile import Profile
from app.models.mentor import Mentor
from app.models.booking import Booking

logger = logging.getLogger(__name__)


def get_account_deletion_summary(db: Session, user: User) -> dict:
    """
    Get a summary of what will be deleted when the account is closed.
    Counts are taken without row security: the cascade ignores visibility.
    """
    is_mentor = db.query(Mentor).filter(Mentor.id == user.id).count() > 0
    return {
        "user_id": user.id,
        "email": user.email,
        "is_mentor": is_mentor,
        "items_to_delete": {
            "profile": db.query(Profile).filter(Profile.id == user.id).count(),
            "mentor": 1 if is_mentor else 0,
            "bookings_as_user": db.query(Booking).filter(Booking.user_id == user.id).count(),
            "bookings_as_mentor": db.query(Booking).filter(Booking.mentor_id == user.id).count(),
            "bookings_total": db.query(Booking).filter(
                or_(Booking.user_id == user.id, Booking.mentor_id == user.id)
            ).count(),
        },
    }


def delete_user_account(db: Session, user: User) -> dict:
    """
    Permanently delete an identity record and everything cascading from it.

    Returns the counts that were removed.
    """
    summary = get_account_deletion_summary(db, user)
    counts = dict(summary["items_to_delete"])
    user_id = user.id

    logger.info(f"Deleting account {user_id}: {counts}")
    db.delete(user)
    commit_or_conflict(db)
    logger.info(f"Deleted account {user_id}")

    return {
        "user_id": user_id,
        "deleted_counts": counts,
    }
