"""
Chat window access, messages and blocking.

Reachability depends only on the clock, so clients should poll
GET /chats/{booking_id} (or recompute from the returned window) rather
than wait for an event.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from companion_booking.api.deps import get_actor_id, get_clock
from companion_booking.db.session import get_db
from companion_booking.schemas.chat import (
    BlockCreate,
    BlockResponse,
    ChatAccessResponse,
    ChatWindowResponse,
    MessageCreate,
    MessageResponse,
)
from companion_booking.services.chat_service import block_user, evaluate_chat_access, list_messages, post_message
from companion_booking.services.interfaces.clock import Clock

router = APIRouter(prefix="/chats", tags=["Chats"])


@router.get("/{booking_id}", response_model=ChatAccessResponse)
async def get_chat_access(
    booking_id: str,
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    now = clock.now()
    chat, state = await evaluate_chat_access(db, booking_id, actor_id, now)
    return ChatAccessResponse(
        chat=ChatWindowResponse.model_validate(chat),
        status=state.status,
        reachable=state.reachable,
        opens_in_seconds=state.opens_in_seconds,
        closes_in_seconds=state.closes_in_seconds,
        evaluated_at=now,
    )


@router.post("/blocks", response_model=BlockResponse, status_code=status.HTTP_201_CREATED)
async def create_block(
    body: BlockCreate,
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Block another profile; every chat window shared with them closes immediately."""
    if body.blocked_id == actor_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot block yourself")
    deactivated = await block_user(db, actor_id, body.blocked_id, body.reason)
    return BlockResponse(blocker_id=actor_id, blocked_id=body.blocked_id, chats_deactivated=deactivated)


@router.get("/{booking_id}/messages", response_model=list[MessageResponse])
async def get_messages(
    booking_id: str,
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await list_messages(db, booking_id, actor_id)


@router.post("/{booking_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    booking_id: str,
    body: MessageCreate,
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Post a message; 409 unless the chat window is open right now."""
    return await post_message(db, booking_id, actor_id, body.content, clock.now())
