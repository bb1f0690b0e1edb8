"""
Chat window derivation and reachability.

A chat window is anchored to the booking's scheduled start, closes
`duration_hours` later, and stays reachable for a fixed grace period after
that. Everything here is pure: callers pass the current instant in.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from companion_booking.models.booking import Booking
from companion_booking.models.chat import ChatWindow
from companion_booking.models.enums import CHAT_STATUSES, BookingStatus

GRACE_PERIOD = timedelta(minutes=30)


class ChatStatus(str, Enum):
    NOT_STARTED = "not_started"
    OPEN = "open"
    ENDED = "ended"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ChatState:
    status: ChatStatus
    reachable: bool
    opens_in_seconds: Optional[int] = None
    closes_in_seconds: Optional[int] = None


def resolve_schedule(
    booking_date: date,
    start_time: time,
    duration_hours: int,
    tz_name: str,
) -> tuple[datetime, datetime]:
    """Combine a local date and time-of-day into absolute start/end instants."""
    local_start = datetime.combine(booking_date, start_time.replace(tzinfo=None), tzinfo=ZoneInfo(tz_name))
    starts_at = local_start.astimezone(timezone.utc)
    return starts_at, starts_at + timedelta(hours=duration_hours)


def derive_chat_window(booking: Booking) -> ChatWindow:
    """
    Build the (unsaved) chat window for an accepted booking.
    Persisting it is the caller's job; bookings.id uniqueness on chats
    guarantees one window per booking.
    """
    starts_at = booking.starts_at
    ends_at = starts_at + timedelta(hours=booking.duration_hours)
    return ChatWindow(
        booking_id=booking.id,
        user_id=booking.user_id,
        companion_id=booking.companion_id,
        starts_at=starts_at,
        ends_at=ends_at,
        grace_period_ends_at=ends_at + GRACE_PERIOD,
        is_active=True,
    )


def _status_allows_chat(booking_status) -> bool:
    try:
        return BookingStatus(booking_status) in CHAT_STATUSES
    except ValueError:
        return False


def is_chat_reachable(chat_window: ChatWindow, booking_status, now: datetime) -> bool:
    """True iff the booking status allows chat, the window is active and now is inside it (inclusive)."""
    if not _status_allows_chat(booking_status):
        return False
    if chat_window.is_active is False:
        return False
    return chat_window.starts_at <= now <= chat_window.grace_period_ends_at


def chat_status(chat_window: ChatWindow, booking_status, now: datetime) -> ChatState:
    """
    Phase of the chat plus countdowns. The reachability verdict is always
    is_chat_reachable's; the phase only explains it.
    """
    reachable = is_chat_reachable(chat_window, booking_status, now)
    if reachable:
        return ChatState(
            status=ChatStatus.OPEN,
            reachable=True,
            closes_in_seconds=int((chat_window.grace_period_ends_at - now).total_seconds()),
        )

    if not _status_allows_chat(booking_status) or chat_window.is_active is False:
        return ChatState(status=ChatStatus.UNAVAILABLE, reachable=False)
    if now < chat_window.starts_at:
        return ChatState(
            status=ChatStatus.NOT_STARTED,
            reachable=False,
            opens_in_seconds=int((chat_window.starts_at - now).total_seconds()),
        )
    return ChatState(status=ChatStatus.ENDED, reachable=False)
