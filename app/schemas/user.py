from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.schemas.profile import ProfileOut


class UserOut(BaseModel):
    id: str
    email: str
    created_at: Optional[datetime]
    profile: Optional[ProfileOut] = None
    is_mentor: bool = False


class DeleteAccountRequest(BaseModel):
    """Request body for account deletion - requires explicit confirmation"""
    confirmation_text: str  # Must be "DELETE" to proceed
