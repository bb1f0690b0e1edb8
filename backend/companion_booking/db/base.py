"""
Declarative base and shared column mixins.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column
from sqlalchemy.orm import declarative_base

from companion_booking.db.types import UTCDateTime

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    """Row bookkeeping timestamps; business rules never read these."""

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)
