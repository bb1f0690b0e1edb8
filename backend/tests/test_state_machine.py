"""
Tests for the booking and payment transition tables.
"""

import pytest

from companion_booking.core.exceptions import InvalidTransitionError
from companion_booking.models.booking import Booking
from companion_booking.models.enums import TERMINAL_STATUSES, BookingStatus, PaymentStatus
from companion_booking.services.state_machine import (
    BOOKING_TRANSITIONS,
    PAYMENT_TRANSITIONS,
    assert_transition,
)


def _booking(status: str, payment_status: str = "pending") -> Booking:
    return Booking(id="b-1", status=status, payment_status=payment_status)


def test_every_status_has_a_row():
    assert set(BOOKING_TRANSITIONS) == set(BookingStatus)
    assert set(PAYMENT_TRANSITIONS) == set(PaymentStatus)


def test_terminal_statuses_have_no_exits():
    for status in TERMINAL_STATUSES:
        assert BOOKING_TRANSITIONS[status] == set()


def test_cancel_only_from_pending():
    assert BookingStatus.CANCELLED in BOOKING_TRANSITIONS[BookingStatus.PENDING]
    assert BookingStatus.CANCELLED not in BOOKING_TRANSITIONS[BookingStatus.ACCEPTED]
    assert BookingStatus.CANCELLED not in BOOKING_TRANSITIONS[BookingStatus.ACTIVE]


def test_legal_moves_pass():
    assert_transition("accept", _booking("pending"), status=BookingStatus.ACCEPTED)
    assert_transition("request_payment", _booking("accepted"), payment_status=PaymentStatus.REQUESTED)
    assert_transition(
        "confirm_payment",
        _booking("active", "paid"),
        status=BookingStatus.COMPLETED,
        payment_status=PaymentStatus.CONFIRMED,
    )


@pytest.mark.parametrize("status", ["completed", "cancelled", "rejected"])
def test_terminal_booking_rejects_payment_moves(status):
    with pytest.raises(InvalidTransitionError) as exc_info:
        assert_transition("request_payment", _booking(status), payment_status=PaymentStatus.REQUESTED)
    assert exc_info.value.current_status == status


def test_joint_move_fails_if_either_axis_is_illegal():
    with pytest.raises(InvalidTransitionError) as exc_info:
        assert_transition(
            "confirm_payment",
            _booking("accepted", "requested"),
            status=BookingStatus.COMPLETED,
            payment_status=PaymentStatus.CONFIRMED,
        )
    err = exc_info.value
    assert err.action == "confirm_payment"
    assert err.current_payment_status == "requested"
    assert err.to_dict()["error"] == "invalid_transition"
