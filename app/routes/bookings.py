from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.policies import row_security
from app.db import get_db, commit_or_conflict
from app.models.booking import Booking, BookingStatus
from app.models.user import User
from app.schemas.booking import BookingCreate, BookingOut, BookingUpdate
from app.services import audit
from app.services.auth import get_current_user
from app.utils.datetime import ensure_aware_utc, isoformat_utc

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def _to_out(booking: Booking) -> BookingOut:
    return BookingOut(
        id=booking.id,
        mentor_id=booking.mentor_id,
        user_id=booking.user_id,
        start_time=isoformat_utc(booking.start_time),
        duration=booking.duration,
        status=BookingStatus(booking.status),
        created_at=isoformat_utc(booking.created_at),
        updated_at=isoformat_utc(booking.updated_at),
    )


@router.get("", response_model=List[BookingOut])
def list_bookings(
    status: Optional[BookingStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    q = row_security.scoped(db, Booking, current_user.id)
    if status is not None:
        q = q.filter(Booking.status == status.value)
    return [_to_out(b) for b in q.order_by(Booking.start_time).all()]


@router.get("/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    booking = row_security.get_or_404(db, Booking, current_user.id, booking_id, detail="Booking not found")
    return _to_out(booking)


@router.post("", response_model=BookingOut, status_code=201)
def create_booking(
    payload: BookingCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    booking = Booking(
        mentor_id=payload.mentor_id,
        user_id=payload.user_id or current_user.id,
        start_time=ensure_aware_utc(payload.start_time),
        duration=payload.duration,
        status=payload.status.value,
    )
    row_security.insert(db, current_user.id, booking)
    commit_or_conflict(db)
    db.refresh(booking)
    audit.log_booking_create(current_user.id, booking.id, booking.mentor_id, booking.status)
    return _to_out(booking)


@router.patch("/{booking_id}", response_model=BookingOut)
def update_booking(
    booking_id: str,
    payload: BookingUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if "start_time" in changes:
        changes["start_time"] = ensure_aware_utc(changes["start_time"])
    if "status" in changes:
        changes["status"] = changes["status"].value
    booking = row_security.get_for_update(db, Booking, current_user.id, booking_id, detail="Booking not found")
    previous_status = booking.status
    row_security.apply_update(db, current_user.id, booking, changes)
    commit_or_conflict(db)
    db.refresh(booking)
    audit.log_booking_update(current_user.id, booking.id, sorted(changes), previous_status, booking.status)
    return _to_out(booking)
