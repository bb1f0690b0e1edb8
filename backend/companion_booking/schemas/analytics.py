from decimal import Decimal

from pydantic import BaseModel


class EarningsSummary(BaseModel):
    companion_id: str
    total_earnings: Decimal
    earnings_last_30_days: Decimal
    earnings_previous_30_days: Decimal
    earnings_trend: int
    pending_requests: int
    active_bookings: int


class DashboardStats(BaseModel):
    active_bookings: int
    completed_bookings: int
    total_revenue: Decimal
    bookings_last_30_days: int
    bookings_previous_30_days: int
    bookings_trend: int
    cached: bool = False
