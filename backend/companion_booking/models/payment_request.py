"""
Payment request raised by a companion against a booking.
Amount mirrors the booking's frozen total.
"""

from sqlalchemy import Column, ForeignKey, Numeric, String

from companion_booking.db.base import Base, TimestampMixin, new_id
from companion_booking.db.types import UTCDateTime
from companion_booking.models.enums import PaymentStatus


class PaymentRequest(Base, TimestampMixin):
    __tablename__ = "payment_requests"

    id = Column(String(36), primary_key=True, default=new_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, unique=True, index=True)
    user_id = Column(String(36), nullable=False)
    companion_id = Column(String(36), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.REQUESTED.value)
    requested_at = Column(UTCDateTime, nullable=False)
    paid_at = Column(UTCDateTime, nullable=True)
    confirmed_at = Column(UTCDateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<PaymentRequest(booking={self.booking_id}, amount={self.amount}, status={self.status})>"
