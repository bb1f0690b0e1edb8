"""
Tests for chat access checks, messaging and user blocking.
"""

from datetime import time

import pytest
from sqlalchemy import select, update

from companion_booking.core.exceptions import InvalidTransitionError, NotFoundError
from companion_booking.models.block import Block
from companion_booking.models.booking import Booking
from companion_booking.services import chat_service
from companion_booking.services.chat_window import ChatStatus
from conftest import COMPANION_ID, OTHER_USER_ID, USER_ID, at


@pytest.mark.asyncio
async def test_party_sees_open_chat(db_session, accepted_booking):
    booking = await accepted_booking()
    chat, state = await chat_service.evaluate_chat_access(db_session, booking.id, USER_ID, at(19))
    assert chat.booking_id == booking.id
    assert state.status == ChatStatus.OPEN
    assert state.reachable is True


@pytest.mark.asyncio
async def test_chat_not_started_yet(db_session, accepted_booking):
    booking = await accepted_booking()
    _, state = await chat_service.evaluate_chat_access(db_session, booking.id, COMPANION_ID, at(17))
    assert state.status == ChatStatus.NOT_STARTED
    assert state.reachable is False
    assert state.opens_in_seconds == 3600


@pytest.mark.asyncio
async def test_chat_closed_after_grace(db_session, accepted_booking):
    booking = await accepted_booking()
    _, state = await chat_service.evaluate_chat_access(db_session, booking.id, USER_ID, at(20, 31))
    assert state.status == ChatStatus.ENDED
    assert state.reachable is False


@pytest.mark.asyncio
async def test_stranger_cannot_see_chat(db_session, accepted_booking):
    booking = await accepted_booking()
    with pytest.raises(NotFoundError):
        await chat_service.get_chat_window(db_session, booking.id, OTHER_USER_ID)


@pytest.mark.asyncio
async def test_pending_booking_has_no_chat(db_session, make_booking):
    booking = await make_booking()
    with pytest.raises(NotFoundError):
        await chat_service.get_chat_window(db_session, booking.id, USER_ID)


@pytest.mark.asyncio
async def test_block_deactivates_shared_chats(db_session, accepted_booking):
    first = await accepted_booking()
    second = await accepted_booking(start_time=time(10, 0))
    other = await accepted_booking(user_id=OTHER_USER_ID, start_time=time(13, 0))

    count = await chat_service.block_user(db_session, COMPANION_ID, USER_ID, reason="Rude")
    assert count == 2

    for booking_id, expected in ((first.id, False), (second.id, False), (other.id, True)):
        chat, _ = await chat_service.get_chat_window(db_session, booking_id, COMPANION_ID)
        await db_session.refresh(chat)
        assert chat.is_active is expected

    chat, state = await chat_service.evaluate_chat_access(db_session, first.id, USER_ID, at(19))
    assert state.status == ChatStatus.UNAVAILABLE
    assert state.reachable is False


@pytest.mark.asyncio
async def test_block_is_idempotent(db_session, accepted_booking):
    await accepted_booking()
    assert await chat_service.block_user(db_session, USER_ID, COMPANION_ID) == 1
    assert await chat_service.block_user(db_session, USER_ID, COMPANION_ID) == 0

    result = await db_session.execute(select(Block).where(Block.blocker_id == USER_ID))
    assert len(result.scalars().all()) == 1


@pytest.mark.asyncio
async def test_cannot_block_yourself(db_session):
    with pytest.raises(ValueError):
        await chat_service.block_user(db_session, USER_ID, USER_ID)


# --- messages --------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize("sent_at", [at(18), at(19), at(20), at(20, 30)])
async def test_message_accepted_while_chat_open(db_session, accepted_booking, sent_at):
    booking = await accepted_booking()
    message = await chat_service.post_message(db_session, booking.id, USER_ID, "On my way", sent_at)
    assert message.sender_id == USER_ID
    assert message.content == "On my way"
    assert message.is_read is False
    assert message.created_at == sent_at


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "sent_at, expected",
    [
        (at(17, 59, 59), ChatStatus.NOT_STARTED),
        (at(20, 30, 1), ChatStatus.ENDED),
        (at(20, 31), ChatStatus.ENDED),
    ],
)
async def test_message_refused_outside_window(db_session, accepted_booking, sent_at, expected):
    booking = await accepted_booking()
    with pytest.raises(InvalidTransitionError) as exc_info:
        await chat_service.post_message(db_session, booking.id, COMPANION_ID, "Hello?", sent_at)
    assert exc_info.value.action == "send_message"
    assert expected.value in str(exc_info.value)
    assert await chat_service.list_messages(db_session, booking.id, USER_ID) == []


@pytest.mark.asyncio
async def test_message_refused_after_block(db_session, accepted_booking):
    booking = await accepted_booking()
    await chat_service.post_message(db_session, booking.id, USER_ID, "Hi", at(18, 5))
    await chat_service.block_user(db_session, COMPANION_ID, USER_ID)

    with pytest.raises(InvalidTransitionError):
        await chat_service.post_message(db_session, booking.id, USER_ID, "Are you there?", at(18, 10))
    with pytest.raises(InvalidTransitionError):
        await chat_service.post_message(db_session, booking.id, COMPANION_ID, "Bye", at(18, 10))

    history = await chat_service.list_messages(db_session, booking.id, COMPANION_ID)
    assert [m.content for m in history] == ["Hi"]


@pytest.mark.asyncio
async def test_message_refused_for_cancelled_booking(db_session, accepted_booking):
    booking = await accepted_booking()
    await db_session.execute(
        update(Booking).where(Booking.id == booking.id).values(status="cancelled")
    )
    with pytest.raises(InvalidTransitionError):
        await chat_service.post_message(db_session, booking.id, USER_ID, "Hi", at(19))


@pytest.mark.asyncio
async def test_stranger_cannot_post_or_read(db_session, accepted_booking):
    booking = await accepted_booking()
    with pytest.raises(NotFoundError):
        await chat_service.post_message(db_session, booking.id, OTHER_USER_ID, "Hi", at(19))
    with pytest.raises(NotFoundError):
        await chat_service.list_messages(db_session, booking.id, OTHER_USER_ID)


@pytest.mark.asyncio
async def test_messages_listed_oldest_first(db_session, accepted_booking):
    booking = await accepted_booking()
    await chat_service.post_message(db_session, booking.id, USER_ID, "first", at(18, 1))
    await chat_service.post_message(db_session, booking.id, COMPANION_ID, "second", at(18, 2))
    await chat_service.post_message(db_session, booking.id, USER_ID, "third", at(20, 29))

    history = await chat_service.list_messages(db_session, booking.id, COMPANION_ID)
    assert [m.content for m in history] == ["first", "second", "third"]
    assert [m.sender_id for m in history] == [USER_ID, COMPANION_ID, USER_ID]
