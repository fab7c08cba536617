"""Privileged mentor management used by ``manage_mentors.py``.

There is no insert or delete policy on ``mentors``, so these operations run
outside row security and are only reachable from admin tooling.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.db import commit_or_conflict
from app.exceptions import NotFoundException, ValidationException
from app.models.booking import Booking
from app.models.mentor import Mentor
from app.models.profile import Profile
from app.services import audit

logger = logging.getLogger(__name__)


def parse_expertise(raw: str | Iterable[str]) -> List[str]:
    """Accept ``"python, system design"`` or a list; keep order and drop duplicates."""
    items = raw.split(",") if isinstance(raw, str) else list(raw)
    seen = []
    for item in items:
        tag = item.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def onboard_mentor(
    db: Session,
    profile_id: str,
    company: str,
    position: str,
    experience_years: int,
    hourly_rate: int,
    bio: str,
    expertise: str | Iterable[str],
    available: bool = True,
) -> Mentor:
    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if not profile:
        raise NotFoundException(f"Profile {profile_id} not found")
    if db.query(Mentor).filter(Mentor.id == profile_id).first():
        raise ValidationException(f"Profile {profile_id} is already a mentor")

    mentor = Mentor(
        id=profile_id,
        company=company,
        position=position,
        experience_years=experience_years,
        hourly_rate=hourly_rate,
        bio=bio,
        expertise=parse_expertise(expertise),
        available=available,
    )
    db.add(mentor)
    commit_or_conflict(db)
    db.refresh(mentor)
    audit.log_mentor_onboard(mentor.id, actor="admin-cli")
    return mentor


def set_mentor_availability(db: Session, mentor_id: str, available: bool) -> Mentor:
    mentor = db.query(Mentor).filter(Mentor.id == mentor_id).first()
    if not mentor:
        raise NotFoundException(f"Mentor {mentor_id} not found")
    mentor.available = available
    commit_or_conflict(db)
    db.refresh(mentor)
    logger.info(f"Mentor {mentor_id} availability set to {available}")
    return mentor


def list_all_mentors(db: Session, available: Optional[bool] = None) -> List[Mentor]:
    q = db.query(Mentor)
    if available is not None:
        q = q.filter(Mentor.available == available)
    return q.order_by(Mentor.created_at).all()


def remove_mentor(db: Session, mentor_id: str) -> int:
    """Delete a mentor row (its bookings cascade). Returns the number of bookings removed."""
    mentor = db.query(Mentor).filter(Mentor.id == mentor_id).first()
    if not mentor:
        raise NotFoundException(f"Mentor {mentor_id} not found")
    booking_count = db.query(Booking).filter(Booking.mentor_id == mentor_id).count()
    db.delete(mentor)
    commit_or_conflict(db)
    logger.info(f"Removed mentor {mentor_id} and {booking_count} bookings")
    return booking_count
