"""
Notification delivery backed by the notifications table.

Rows are written in the caller's session inside a SAVEPOINT: they commit
with the transition, but a failed insert only rolls back the savepoint and
the transition still commits.
"""

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from companion_booking.core.logging import get_logger
from companion_booking.core.metrics import notification_failures
from companion_booking.models.notification import Notification
from companion_booking.services.interfaces.notifier import NotificationSink

logger = get_logger(__name__)


class DatabaseNotificationSink(NotificationSink):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def notify(
        self,
        recipient_id: str,
        type: str,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        try:
            async with self.db.begin_nested():
                self.db.add(
                    Notification(
                        user_id=recipient_id,
                        type=type,
                        title=title,
                        message=message,
                        data=data,
                    )
                )
                await self.db.flush()
        except SQLAlchemyError as e:
            notification_failures.labels(type=type).inc()
            logger.error("notification_failed", recipient_id=recipient_id, type=type, error=str(e))
            return

        logger.debug("notification_stored", recipient_id=recipient_id, type=type)


async def list_notifications(
    db: AsyncSession,
    user_id: str,
    unread_only: bool = False,
) -> list[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    result = await db.execute(query.order_by(Notification.created_at.desc()))
    return list(result.scalars().all())
