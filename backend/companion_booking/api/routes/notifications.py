from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from companion_booking.api.deps import get_actor_id
from companion_booking.db.session import get_db
from companion_booking.schemas.notification import NotificationResponse
from companion_booking.services.notification_service import list_notifications

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=list[NotificationResponse])
async def get_notifications(
    unread_only: bool = Query(False),
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await list_notifications(db, actor_id, unread_only)
