from companion_booking.schemas.booking import BookingCreate, BookingDecision, BookingCancel, BookingResponse
from companion_booking.schemas.chat import (
    ChatWindowResponse,
    ChatAccessResponse,
    BlockCreate,
    BlockResponse,
    MessageCreate,
    MessageResponse,
)
from companion_booking.schemas.analytics import EarningsSummary, DashboardStats
from companion_booking.schemas.notification import NotificationResponse

__all__ = [
    "BookingCreate", "BookingDecision", "BookingCancel", "BookingResponse",
    "ChatWindowResponse", "ChatAccessResponse", "BlockCreate", "BlockResponse",
    "MessageCreate", "MessageResponse",
    "EarningsSummary", "DashboardStats",
    "NotificationResponse",
]
