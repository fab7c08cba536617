from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.core.policies import row_security
from app.db import get_db, commit_or_conflict
from app.models.profile import Profile
from app.models.user import User
from app.schemas.profile import ProfileOut, ProfileUpdate
from app.services import audit
from app.services.auth import get_current_user
from app.utils.datetime import isoformat_utc

router = APIRouter(prefix="/profiles", tags=["Profiles"])


def profile_out(prof: Profile) -> ProfileOut:
    return ProfileOut(
        id=prof.id,
        full_name=prof.full_name,
        avatar_url=prof.avatar_url,
        created_at=isoformat_utc(prof.created_at),
        updated_at=isoformat_utc(prof.updated_at),
    )


@router.get("", response_model=List[ProfileOut])
def list_profiles(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    profiles = row_security.scoped(db, Profile, current_user.id).order_by(Profile.created_at).all()
    return [profile_out(p) for p in profiles]


@router.get("/me", response_model=ProfileOut)
def get_my_profile(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    prof = row_security.get_or_404(db, Profile, current_user.id, current_user.id, detail="Profile not found")
    return profile_out(prof)


@router.get("/{profile_id}", response_model=ProfileOut)
def get_profile(profile_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    prof = row_security.get_or_404(db, Profile, current_user.id, profile_id, detail="Profile not found")
    return profile_out(prof)


@router.patch("/{profile_id}", response_model=ProfileOut)
def update_profile(
    profile_id: str,
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True)
    prof = row_security.update(db, Profile, current_user.id, profile_id, changes, detail="Profile not found")
    commit_or_conflict(db)
    db.refresh(prof)
    audit.log_profile_update(current_user.id, prof.id, sorted(changes))
    return profile_out(prof)
