"""
Dashboard aggregation endpoints. Admin stats are cached in Redis.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from companion_booking.api.deps import get_actor_id, get_clock
from companion_booking.core.logging import get_logger
from companion_booking.db.session import get_db
from companion_booking.schemas.analytics import DashboardStats, EarningsSummary
from companion_booking.services.analytics_service import companion_earnings_summary, dashboard_stats
from companion_booking.services.cache_service import get_cached_dashboard_stats, set_cached_dashboard_stats
from companion_booking.services.interfaces.clock import Clock

logger = get_logger(__name__)
router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/earnings", response_model=EarningsSummary)
async def get_earnings_summary(
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Earnings summary for the calling companion."""
    summary = await companion_earnings_summary(db, actor_id, clock.now())
    return EarningsSummary(**summary)


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    cached = await get_cached_dashboard_stats()
    if cached:
        logger.info("dashboard_stats_cache_hit")
        cached["cached"] = True
        return DashboardStats(**cached)

    stats = await dashboard_stats(db, clock.now())
    await set_cached_dashboard_stats(DashboardStats(**stats).model_dump(mode="json"))
    return DashboardStats(**stats)
