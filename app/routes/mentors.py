from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional

from app.core.policies import row_security
from app.db import get_db, commit_or_conflict
from app.models.mentor import Mentor
from app.models.user import User
from app.schemas.mentor import MentorOut, MentorUpdate
from app.services import audit
from app.services.auth import get_current_user
from app.utils.datetime import isoformat_utc

router = APIRouter(prefix="/mentors", tags=["Mentors"])


def _to_out(mentor: Mentor) -> MentorOut:
    prof = mentor.profile
    return MentorOut(
        id=mentor.id,
        full_name=prof.full_name if prof else None,
        avatar_url=prof.avatar_url if prof else None,
        company=mentor.company,
        position=mentor.position,
        experience_years=mentor.experience_years,
        hourly_rate=mentor.hourly_rate,
        bio=mentor.bio,
        expertise=list(mentor.expertise or []),
        available=bool(mentor.available),
        created_at=isoformat_utc(mentor.created_at),
        updated_at=isoformat_utc(mentor.updated_at),
    )


@router.get("", response_model=List[MentorOut])
def list_mentors(
    expertise: Optional[str] = Query(None, description="Only mentors tagged with this expertise (case-insensitive)"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    mentors = (
        row_security.scoped(db, Mentor, current_user.id)
        .options(joinedload(Mentor.profile))
        .order_by(Mentor.created_at)
        .all()
    )
    # text[] and JSON columns don't share a containment operator, so filter here
    if expertise:
        wanted = expertise.strip().lower()
        mentors = [m for m in mentors if wanted in (tag.lower() for tag in (m.expertise or []))]
    return [_to_out(m) for m in mentors]


@router.get("/{mentor_id}", response_model=MentorOut)
def get_mentor(mentor_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    mentor = row_security.get_or_404(db, Mentor, current_user.id, mentor_id, detail="Mentor not found")
    return _to_out(mentor)


@router.patch("/{mentor_id}", response_model=MentorOut)
def update_mentor(
    mentor_id: str,
    payload: MentorUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True)
    # Required columns cannot be cleared with an explicit null
    changes = {k: v for k, v in changes.items() if v is not None}
    mentor = row_security.update(db, Mentor, current_user.id, mentor_id, changes, detail="Mentor not found")
    commit_or_conflict(db)
    db.refresh(mentor)
    audit.log_mentor_update(current_user.id, mentor.id, sorted(changes))
    return _to_out(mentor)
