"""
Chat window derived from an accepted booking.

One row per booking (unique booking_id); the unique constraint is the
backstop against double creation under concurrent accepts.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, String

from companion_booking.db.base import Base, TimestampMixin, new_id
from companion_booking.db.types import UTCDateTime


class ChatWindow(Base, TimestampMixin):
    __tablename__ = "chats"

    id = Column(String(36), primary_key=True, default=new_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, unique=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    companion_id = Column(String(36), nullable=False, index=True)
    starts_at = Column(UTCDateTime, nullable=False)
    ends_at = Column(UTCDateTime, nullable=False)
    grace_period_ends_at = Column(UTCDateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("starts_at < ends_at", name="check_chat_starts_before_end"),
        CheckConstraint("ends_at < grace_period_ends_at", name="check_chat_grace_after_end"),
    )

    def __repr__(self) -> str:
        return f"<ChatWindow(booking={self.booking_id}, {self.starts_at} -> {self.grace_period_ends_at})>"
