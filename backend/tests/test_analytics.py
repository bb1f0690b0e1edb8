"""
Tests for trend arithmetic and dashboard aggregations.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from companion_booking.services import analytics_service, booking_service
from companion_booking.services.analytics_service import compute_trend_percent
from conftest import COMPANION_ID, OTHER_USER_ID, USER_ID


@pytest.mark.parametrize(
    "current,previous,expected",
    [
        (150, 100, 50),
        (50, 100, -50),
        (0, 100, -100),
        (100, 100, 0),
        (5, 0, 100),
        (0, 0, 0),
        (1, 3, -67),
        (2, 3, -33),
    ],
)
def test_trend_percent(current, previous, expected):
    assert compute_trend_percent(current, previous) == expected


def test_trend_rounds_half_up():
    # +12.5% and -12.5%
    assert compute_trend_percent(9, 8) == 13
    assert compute_trend_percent(7, 8) == -12


def test_trend_accepts_decimal_amounts():
    assert compute_trend_percent(Decimal("1500.00"), Decimal("1000.00")) == 50
    assert compute_trend_percent(Decimal("900"), Decimal("800")) == 13


@pytest.mark.parametrize(
    "current,previous,expected",
    [
        (Decimal("150"), 100.0, 50),
        (1.5, Decimal("1"), 50),
        (Decimal("900.00"), 800, 13),
        (7, Decimal("8"), -12),
        (Decimal("5"), 0.0, 100),
    ],
)
def test_trend_mixes_decimal_with_float_and_int(current, previous, expected):
    result = compute_trend_percent(current, previous)
    assert result == expected
    assert isinstance(result, int)


def test_trend_result_is_int():
    assert isinstance(compute_trend_percent(2.0, 3.0), int)


async def _complete(db, notifier, clock, booking):
    await booking_service.request_payment(db, notifier, clock, booking.id, COMPANION_ID)
    await booking_service.mark_payment_paid(db, notifier, clock, booking.id, booking.user_id)
    return await booking_service.confirm_payment(db, notifier, clock, booking.id, COMPANION_ID)


@pytest.mark.asyncio
async def test_earnings_summary(db_session, notifier, clock, make_booking, accepted_booking):
    done = await accepted_booking()
    await _complete(db_session, notifier, clock, done)
    await accepted_booking(user_id=OTHER_USER_ID, booking_date=date(2024, 6, 12))
    await make_booking(booking_date=date(2024, 6, 14))

    summary = await analytics_service.companion_earnings_summary(
        db_session, COMPANION_ID, datetime(2024, 6, 11, tzinfo=timezone.utc)
    )
    assert summary["total_earnings"] == Decimal("1000")
    assert summary["earnings_last_30_days"] == Decimal("1000")
    assert summary["earnings_previous_30_days"] == Decimal("0")
    assert summary["earnings_trend"] == 100
    assert summary["pending_requests"] == 1
    assert summary["active_bookings"] == 1


@pytest.mark.asyncio
async def test_earnings_summary_empty(db_session, clock):
    summary = await analytics_service.companion_earnings_summary(db_session, "nobody", clock.now())
    assert summary["total_earnings"] == Decimal("0")
    assert summary["earnings_trend"] == 0
    assert summary["pending_requests"] == 0


@pytest.mark.asyncio
async def test_dashboard_stats(db_session, notifier, clock, make_booking, accepted_booking):
    done = await accepted_booking()
    await _complete(db_session, notifier, clock, done)
    await make_booking(user_id=OTHER_USER_ID, booking_date=date(2024, 6, 20))
    cancelled = await make_booking(booking_date=date(2024, 6, 21))
    await booking_service.cancel_booking(db_session, notifier, clock, cancelled.id, USER_ID)

    stats = await analytics_service.dashboard_stats(db_session, datetime(2024, 6, 2, tzinfo=timezone.utc))
    assert stats["active_bookings"] == 1
    assert stats["completed_bookings"] == 1
    assert stats["total_revenue"] == Decimal("1000")
    assert stats["bookings_last_30_days"] == 3
    assert stats["bookings_previous_30_days"] == 0
    assert stats["bookings_trend"] == 100
