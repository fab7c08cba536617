"""Shared column sets and the updated_at hook for every table."""
from sqlalchemy import Column, DateTime, event

from app.utils.datetime import utc_now


class TimestampMixin:
    """Adds ``created_at``/``updated_at`` columns kept current by mapper events.

    Clients never own ``updated_at``: any value assigned before an update is
    replaced with the flush time.
    """

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, nullable=True)


@event.listens_for(TimestampMixin, "before_insert", propagate=True)
def _stamp_on_insert(mapper, connection, target):
    now = utc_now()
    if target.created_at is None:
        target.created_at = now
    target.updated_at = target.created_at


@event.listens_for(TimestampMixin, "before_update", propagate=True)
def _touch_updated_at(mapper, connection, target):
    target.updated_at = utc_now()
