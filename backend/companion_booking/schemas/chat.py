"""
Pydantic schemas for chat window responses and moderation requests.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from companion_booking.services.chat_window import ChatStatus


class ChatWindowResponse(BaseModel):
    id: str
    booking_id: str
    user_id: str
    companion_id: str
    starts_at: datetime
    ends_at: datetime
    grace_period_ends_at: datetime
    is_active: bool

    model_config = {"from_attributes": True}


class ChatAccessResponse(BaseModel):
    chat: ChatWindowResponse
    status: ChatStatus
    reachable: bool
    opens_in_seconds: Optional[int] = None
    closes_in_seconds: Optional[int] = None
    evaluated_at: datetime


class BlockCreate(BaseModel):
    blocked_id: str = Field(..., min_length=1, max_length=36)
    reason: Optional[str] = Field(None, max_length=500)


class BlockResponse(BaseModel):
    blocker_id: str
    blocked_id: str
    chats_deactivated: int


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class MessageResponse(BaseModel):
    id: str
    chat_id: str
    sender_id: str
    content: str
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
