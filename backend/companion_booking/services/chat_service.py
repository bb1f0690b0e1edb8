"""
Chat window lookup, messaging and moderation.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from companion_booking.core.exceptions import InvalidTransitionError, NotFoundError
from companion_booking.core.logging import get_logger
from companion_booking.core.metrics import chat_messages, record_reachability
from companion_booking.models.block import Block
from companion_booking.models.booking import Booking
from companion_booking.models.chat import ChatWindow
from companion_booking.models.message import Message
from companion_booking.services.chat_window import ChatState, chat_status, is_chat_reachable

logger = get_logger(__name__)


async def get_chat_window(db: AsyncSession, booking_id: str, actor_id: str) -> tuple[ChatWindow, Booking]:
    """Chat window of a booking together with its owning booking, for one of its parties."""
    result = await db.execute(
        select(ChatWindow, Booking)
        .join(Booking, Booking.id == ChatWindow.booking_id)
        .where(ChatWindow.booking_id == booking_id)
        .execution_options(populate_existing=True)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFoundError(f"No chat window for booking {booking_id}")

    chat, booking = row
    if actor_id not in (chat.user_id, chat.companion_id):
        raise NotFoundError(f"No chat window for booking {booking_id}")
    return chat, booking


async def evaluate_chat_access(
    db: AsyncSession,
    booking_id: str,
    actor_id: str,
    now: datetime,
) -> tuple[ChatWindow, ChatState]:
    chat, booking = await get_chat_window(db, booking_id, actor_id)
    state = chat_status(chat, booking.status, now)
    record_reachability(state.reachable)
    return chat, state


async def block_user(
    db: AsyncSession,
    blocker_id: str,
    blocked_id: str,
    reason: Optional[str] = None,
) -> int:
    """
    Record a block and close every chat window the two parties share.
    Blocking the same person twice is a no-op for the block row.
    Returns the number of chat windows deactivated.
    """
    if blocker_id == blocked_id:
        raise ValueError("Cannot block yourself")

    existing = await db.execute(
        select(Block).where(Block.blocker_id == blocker_id, Block.blocked_id == blocked_id)
    )
    if existing.scalar_one_or_none() is None:
        db.add(Block(blocker_id=blocker_id, blocked_id=blocked_id, reason=reason))
        await db.flush()
        logger.info("user_blocked", blocker_id=blocker_id, blocked_id=blocked_id)
    else:
        logger.info("user_already_blocked", blocker_id=blocker_id, blocked_id=blocked_id)

    result = await db.execute(
        update(ChatWindow)
        .where(
            ChatWindow.is_active.is_(True),
            or_(
                and_(ChatWindow.user_id == blocker_id, ChatWindow.companion_id == blocked_id),
                and_(ChatWindow.user_id == blocked_id, ChatWindow.companion_id == blocker_id),
            ),
        )
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    deactivated = result.rowcount or 0
    if deactivated:
        logger.info("chat_deactivated", blocker_id=blocker_id, blocked_id=blocked_id, count=deactivated)
    return deactivated


async def post_message(
    db: AsyncSession,
    booking_id: str,
    sender_id: str,
    content: str,
    now: datetime,
) -> Message:
    """
    Store a message from one of the booking's parties.
    Refused with InvalidTransitionError unless the chat is reachable at `now`.
    """
    chat, booking = await get_chat_window(db, booking_id, sender_id)
    if not is_chat_reachable(chat, booking.status, now):
        chat_messages.labels(result="rejected").inc()
        state = chat_status(chat, booking.status, now)
        logger.info("message_rejected", booking_id=booking_id, sender_id=sender_id, chat_status=state.status)
        raise InvalidTransitionError(
            "send_message", booking.status, booking.payment_status,
            reason=f"Chat is not open ({state.status.value})",
        )

    message = Message(chat_id=chat.id, sender_id=sender_id, content=content, created_at=now, updated_at=now)
    db.add(message)
    await db.flush()
    chat_messages.labels(result="sent").inc()
    logger.info("message_posted", booking_id=booking_id, chat_id=chat.id, sender_id=sender_id)
    return message


async def list_messages(db: AsyncSession, booking_id: str, actor_id: str) -> list[Message]:
    """Messages of a booking's chat, oldest first. History stays readable after the window closes."""
    chat, _ = await get_chat_window(db, booking_id, actor_id)
    result = await db.execute(
        select(Message).where(Message.chat_id == chat.id).order_by(Message.created_at, Message.id)
    )
    return list(result.scalars().all())
