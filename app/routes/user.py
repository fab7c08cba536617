import logging

from fastapi import APIRouter, Depends
from firebase_admin import auth
from sqlalchemy.orm import Session

from app.db import get_db
from app.exceptions import ValidationException
from app.models.mentor import Mentor
from app.models.user import User
from app.routes.profiles import profile_out
from app.schemas.user import DeleteAccountRequest, UserOut
from app.services import audit
from app.services.account_deletion import get_account_deletion_summary, delete_user_account
from app.services.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=UserOut)
def get_me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    # get_current_user handles token verification & provisioning
    is_mentor = db.query(Mentor).filter(Mentor.id == current_user.id).count() > 0
    return UserOut(
        id=current_user.id,
        email=current_user.email,
        created_at=current_user.created_at,
        profile=profile_out(current_user.profile) if current_user.profile else None,
        is_mentor=is_mentor,
    )


@router.get("/me/deletion-summary")
def get_deletion_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Get a summary of what will be deleted when the account is closed.
    Returns counts of all associated data so the user understands the impact.
    """
    return get_account_deletion_summary(db, current_user)


@router.delete("/me")
def close_account(
    request: DeleteAccountRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Permanently delete the current identity and everything hanging off it:
    profile, mentor row, and every booking the identity is party to.

    Requires confirmation_text to be exactly "DELETE" to proceed.
    """
    if request.confirmation_text != "DELETE":
        raise ValidationException(
            "Confirmation text must be exactly 'DELETE' to proceed with account deletion"
        )

    user_email = current_user.email
    user_id = current_user.id
    result = delete_user_account(db, current_user)
    audit.log_account_delete(user_id, result["deleted_counts"])

    # The database side is authoritative; the Firebase user may already be gone
    try:
        auth.delete_user(user_id)
    except Exception as firebase_error:
        logger.warning(f"Could not delete Firebase user {user_id}: {firebase_error}")

    return {
        "success": True,
        "message": f"Account {user_email} has been permanently deleted",
        "deleted_counts": result["deleted_counts"],
    }
