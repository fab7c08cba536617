from pydantic import BaseModel, field_validator
from typing import List, Optional


class MentorUpdate(BaseModel):
    company: Optional[str] = None
    position: Optional[str] = None
    bio: Optional[str] = None
    experience_years: Optional[int] = None
    hourly_rate: Optional[int] = None
    expertise: Optional[List[str]] = None
    available: Optional[bool] = None

    @field_validator('company', 'position', 'bio')
    def not_blank(cls, v: str | None):
        if v is not None and v.strip() == "":
            raise ValueError('must not be blank')
        return v

    @field_validator('expertise')
    def clean_tags(cls, v: List[str] | None):
        if v is None:
            return v
        # keep order, drop empties
        return [tag.strip() for tag in v if tag and tag.strip()]


class MentorOut(BaseModel):
    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    company: str
    position: str
    experience_years: int
    hourly_rate: int
    bio: str
    expertise: List[str]
    available: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
