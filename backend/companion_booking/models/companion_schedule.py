"""
Per-companion schedule row.

Holds no schedule data itself: its `version` is bumped by every accept for
the companion, so two accepts checking the same calendar cannot both commit.
"""

from sqlalchemy import Column, Integer, String

from companion_booking.db.base import Base, TimestampMixin


class CompanionSchedule(Base, TimestampMixin):
    __tablename__ = "companion_schedules"

    companion_id = Column(String(36), primary_key=True)
    version = Column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<CompanionSchedule(companion={self.companion_id}, version={self.version})>"
