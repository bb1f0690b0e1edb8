"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from companion_booking.models.enums import Activity, BookingStatus, PaymentStatus


class BookingCreate(BaseModel):
    companion_id: str = Field(..., min_length=1, max_length=36)
    booking_date: date
    start_time: time
    # Bounds are enforced by the booking service so out-of-range values
    # surface as invalid_schedule rather than a validation error
    duration_hours: int
    activity: Activity
    hourly_rate: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    location: Optional[str] = Field(None, max_length=255)
    user_notes: Optional[str] = Field(None, max_length=1000)


class BookingDecision(BaseModel):
    decision: Literal["accept", "reject"]


class BookingCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class BookingResponse(BaseModel):
    id: str
    user_id: str
    companion_id: str
    booking_date: date
    start_time: time
    duration_hours: int
    starts_at: datetime
    ends_at: datetime
    activity: str
    location: Optional[str]
    user_notes: Optional[str]
    hourly_rate: Decimal
    total_amount: Decimal
    status: BookingStatus
    payment_status: PaymentStatus
    cancelled_by: Optional[str]
    cancellation_reason: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
