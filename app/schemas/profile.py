from pydantic import BaseModel, field_validator
from typing import Optional


def _check_avatar_url(v: str | None):
    if v is None or v.strip() == "":
        return None
    # basic sanity; avoid strict HttpUrl so storage URLs with odd paths still pass
    if not (v.startswith('http://') or v.startswith('https://')):
        raise ValueError('avatar_url must start with http(s)://')
    return v


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None

    @field_validator('avatar_url')
    def validate_url(cls, v: str | None):
        return _check_avatar_url(v)


class ProfileOut(BaseModel):
    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
