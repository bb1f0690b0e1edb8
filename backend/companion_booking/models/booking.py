"""
Booking between a user and a companion.

Key design decisions:
- status and payment_status are independent columns, joined by one CHECK:
  a booking is only completed once payment is confirmed
- starts_at/ends_at are derived from date + start time at creation and
  drive the companion overlap query
- `version` column enables optimistic concurrency on every transition
- rows are never deleted; terminal states are completed, cancelled, rejected
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    Index,
    Integer,
    Numeric,
    String,
    Time,
)

from companion_booking.db.base import Base, TimestampMixin, new_id
from companion_booking.db.types import UTCDateTime
from companion_booking.models.enums import BookingStatus, PaymentStatus


def _in_clause(column: str, enum_cls) -> str:
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return f"{column} IN ({values})"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    companion_id = Column(String(36), nullable=False, index=True)

    # Schedule as entered, plus the absolute instants derived from it
    booking_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    duration_hours = Column(Integer, nullable=False)
    starts_at = Column(UTCDateTime, nullable=False)
    ends_at = Column(UTCDateTime, nullable=False)

    activity = Column(String(50), nullable=False)
    location = Column(String(255), nullable=True)
    user_notes = Column(String(1000), nullable=True)

    # Snapshot at creation, never recomputed
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    cancelled_by = Column(String(36), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)

    # Optimistic concurrency version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("duration_hours > 0", name="check_booking_duration_positive"),
        CheckConstraint("hourly_rate > 0", name="check_booking_rate_positive"),
        CheckConstraint("starts_at < ends_at", name="check_booking_window_ordered"),
        CheckConstraint(_in_clause("status", BookingStatus), name="check_booking_status"),
        CheckConstraint(_in_clause("payment_status", PaymentStatus), name="check_booking_payment_status"),
        CheckConstraint(
            "status <> 'completed' OR payment_status = 'confirmed'",
            name="check_completed_requires_confirmed_payment",
        ),
        # Overlap lookups: companion's bookings by start instant
        Index("ix_bookings_companion_starts_at", "companion_id", "starts_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, user={self.user_id}, companion={self.companion_id}, "
            f"status={self.status}, payment={self.payment_status})>"
        )
