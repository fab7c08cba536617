from __future__ import annotations
from datetime import datetime, UTC
from typing import Optional

__all__ = ["utc_now", "ensure_aware_utc", "isoformat_utc"]

def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(UTC)

def ensure_aware_utc(dt: datetime | None) -> Optional[datetime]:
    """Attach UTC to naive values (SQLite drops tzinfo on the way back) and normalise aware ones."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)

def isoformat_utc(dt: datetime | None) -> Optional[str]:
    if dt is None:
        return None
    return ensure_aware_utc(dt).isoformat()
