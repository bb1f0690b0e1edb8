"""
Request-scoped collaborators for the route handlers.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from companion_booking.db.session import get_db
from companion_booking.services.interfaces.clock import Clock, SystemClock
from companion_booking.services.interfaces.notifier import NotificationSink
from companion_booking.services.notification_service import DatabaseNotificationSink

_system_clock = SystemClock()


def get_clock() -> Clock:
    return _system_clock


def get_notifier(db: AsyncSession = Depends(get_db)) -> NotificationSink:
    return DatabaseNotificationSink(db)


def get_actor_id(x_actor_id: Optional[str] = Header(None, alias="X-Actor-Id")) -> str:
    """
    Verified profile id of the caller, injected by the upstream auth gateway.
    """
    if not x_actor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing actor identity",
        )
    return x_actor_id
