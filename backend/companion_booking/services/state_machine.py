"""Booking and payment state machines."""

from typing import Optional

from companion_booking.core.exceptions import InvalidTransitionError
from companion_booking.models.booking import Booking
from companion_booking.models.enums import TERMINAL_STATUSES, BookingStatus, PaymentStatus

BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.ACCEPTED, BookingStatus.REJECTED, BookingStatus.CANCELLED},
    BookingStatus.ACCEPTED: {BookingStatus.ACTIVE, BookingStatus.COMPLETED},
    BookingStatus.ACTIVE: {BookingStatus.COMPLETED},
    BookingStatus.REJECTED: set(),
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.REQUESTED},
    PaymentStatus.REQUESTED: {PaymentStatus.PAID, PaymentStatus.DISPUTED},
    PaymentStatus.PAID: {PaymentStatus.CONFIRMED, PaymentStatus.DISPUTED},
    PaymentStatus.CONFIRMED: set(),
    PaymentStatus.DISPUTED: set(),
}


def assert_transition(
    action: str,
    booking: Booking,
    status: Optional[BookingStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
) -> None:
    """
    Raise InvalidTransitionError unless every requested move is legal.
    A booking in a terminal status accepts no further moves on either axis.
    """
    current = BookingStatus(booking.status)
    current_payment = PaymentStatus(booking.payment_status)

    if current in TERMINAL_STATUSES:
        raise InvalidTransitionError(action, current.value, current_payment.value)
    if status is not None and status not in BOOKING_TRANSITIONS[current]:
        raise InvalidTransitionError(action, current.value, current_payment.value)
    if payment_status is not None and payment_status not in PAYMENT_TRANSITIONS[current_payment]:
        raise InvalidTransitionError(action, current.value, current_payment.value)
