"""Audit logging helper functions for key domain events.

Standard key=value single-line logs so they are easy to index.
"""
from __future__ import annotations
import logging
from typing import Optional, Any, Iterable

from app.utils.datetime import utc_now

_logger = logging.getLogger("app.audit")


def _emit(event: str, user_id: Optional[str] = None, **data: Any):
    payload = {"ts": utc_now().isoformat(), "event": event}
    if user_id:
        payload["user_id"] = user_id
    payload.update(data)
    parts = [f"{k}={repr(v)}" for k, v in payload.items()]
    _logger.info("AUDIT " + " ".join(parts))

# Public convenience wrappers

def log_profile_update(user_id: str, profile_id: str, fields: Iterable[str]):
    _emit("profile.update", user_id=user_id, profile_id=profile_id, fields=list(fields))

def log_mentor_update(user_id: str, mentor_id: str, fields: Iterable[str]):
    _emit("mentor.update", user_id=user_id, mentor_id=mentor_id, fields=list(fields))

def log_mentor_onboard(mentor_id: str, actor: str):
    _emit("mentor.onboard", mentor_id=mentor_id, actor=actor)

def log_booking_create(user_id: str, booking_id: str, mentor_id: str, status: str):
    _emit("booking.create", user_id=user_id, booking_id=booking_id, mentor_id=mentor_id, status=status)

def log_booking_update(user_id: str, booking_id: str, fields: Iterable[str],
                       previous_status: str | None, status: str | None):
    _emit(
        "booking.update",
        user_id=user_id,
        booking_id=booking_id,
        fields=list(fields),
        previous_status=previous_status,
        status=status,
    )

def log_account_delete(user_id: str, deleted_counts: dict):
    _emit("account.delete", user_id=user_id, **deleted_counts)
