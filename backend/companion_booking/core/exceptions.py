"""
Domain errors raised by the booking core.

Every error is local to one booking operation and recoverable by the caller.
The API layer maps each class to an HTTP status via its `code`.
"""

from typing import Any, Optional


class BookingError(Exception):
    """Base class for all booking-core errors."""

    code = "booking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.message}


class InvalidScheduleError(BookingError):
    """Requested slot is in the past or the duration is out of bounds."""

    code = "invalid_schedule"


class SchedulingConflictError(BookingError):
    """Companion already holds an overlapping accepted/active booking."""

    code = "scheduling_conflict"

    def __init__(self, message: str, conflicting_booking_id: Optional[str] = None):
        super().__init__(message)
        self.conflicting_booking_id = conflicting_booking_id

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["conflicting_booking_id"] = self.conflicting_booking_id
        return data


class InvalidTransitionError(BookingError):
    """
    Operation not allowed in the booking's current state, or the actor is not
    the party entitled to perform it. Callers should re-fetch and re-render.
    """

    code = "invalid_transition"

    def __init__(
        self,
        action: str,
        current_status: Optional[str],
        current_payment_status: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        message = reason or (
            f"Cannot {action} a booking with status={current_status}, "
            f"payment_status={current_payment_status}"
        )
        super().__init__(message)
        self.action = action
        self.current_status = current_status
        self.current_payment_status = current_payment_status

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            action=self.action,
            current_status=self.current_status,
            current_payment_status=self.current_payment_status,
        )
        return data


class NotFoundError(BookingError):
    """Referenced booking or chat window does not exist."""

    code = "not_found"
