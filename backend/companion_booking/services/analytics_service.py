"""
Aggregations for companion and admin dashboards.

All trend figures go through compute_trend_percent so earnings, bookings
and activity trends share one definition.
"""

import math
from datetime import datetime, timedelta
from decimal import Decimal
from numbers import Real
from typing import Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from companion_booking.models.booking import Booking
from companion_booking.models.enums import SCHEDULED_STATUSES, BookingStatus, PaymentStatus, sql_values

TREND_WINDOW = timedelta(days=30)

Number = Union[int, float, Decimal]


def _as_decimal(value: Union[Real, Decimal, None]) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_trend_percent(current: Number, previous: Number) -> int:
    """
    Percentage change from `previous` to `current`, rounded half up.
    A zero baseline reports 100 when anything happened, else 0.
    """
    if isinstance(current, Decimal) or isinstance(previous, Decimal):
        current, previous = _as_decimal(current), _as_decimal(previous)
    if previous == 0:
        return 100 if current > 0 else 0
    change = (current - previous) / previous * 100
    half = Decimal("0.5") if isinstance(change, Decimal) else 0.5
    return math.floor(change + half)


async def _sum_confirmed_earnings(db: AsyncSession, companion_id: str, since=None, until=None) -> Decimal:
    query = select(func.coalesce(func.sum(Booking.total_amount), 0)).where(
        Booking.companion_id == companion_id,
        Booking.payment_status == PaymentStatus.CONFIRMED.value,
    )
    if since is not None:
        query = query.where(Booking.starts_at >= since)
    if until is not None:
        query = query.where(Booking.starts_at < until)
    return _as_decimal((await db.execute(query)).scalar())


async def _count_bookings(db: AsyncSession, *criteria) -> int:
    query = select(func.count()).select_from(Booking).where(*criteria)
    return (await db.execute(query)).scalar() or 0


async def companion_earnings_summary(db: AsyncSession, companion_id: str, now: datetime) -> dict:
    window_start = now - TREND_WINDOW
    previous_start = window_start - TREND_WINDOW

    total = await _sum_confirmed_earnings(db, companion_id)
    current = await _sum_confirmed_earnings(db, companion_id, since=window_start, until=now)
    previous = await _sum_confirmed_earnings(db, companion_id, since=previous_start, until=window_start)

    pending_requests = await _count_bookings(
        db,
        Booking.companion_id == companion_id,
        Booking.status == BookingStatus.PENDING.value,
    )
    active_bookings = await _count_bookings(
        db,
        Booking.companion_id == companion_id,
        Booking.status.in_(sql_values(SCHEDULED_STATUSES)),
    )

    return {
        "companion_id": companion_id,
        "total_earnings": total,
        "earnings_last_30_days": current,
        "earnings_previous_30_days": previous,
        "earnings_trend": compute_trend_percent(current, previous),
        "pending_requests": pending_requests,
        "active_bookings": active_bookings,
    }


async def dashboard_stats(db: AsyncSession, now: datetime) -> dict:
    window_start = now - TREND_WINDOW
    previous_start = window_start - TREND_WINDOW

    open_statuses = sql_values({BookingStatus.PENDING, *SCHEDULED_STATUSES})
    active = await _count_bookings(db, Booking.status.in_(open_statuses))
    completed = await _count_bookings(db, Booking.status == BookingStatus.COMPLETED.value)

    revenue_query = select(func.coalesce(func.sum(Booking.total_amount), 0)).where(
        Booking.payment_status == PaymentStatus.CONFIRMED.value
    )
    revenue = _as_decimal((await db.execute(revenue_query)).scalar())

    recent = await _count_bookings(db, Booking.created_at >= window_start, Booking.created_at < now)
    earlier = await _count_bookings(db, Booking.created_at >= previous_start, Booking.created_at < window_start)

    return {
        "active_bookings": active,
        "completed_bookings": completed,
        "total_revenue": revenue,
        "bookings_last_30_days": recent,
        "bookings_previous_30_days": earlier,
        "bookings_trend": compute_trend_percent(recent, earlier),
    }
