"""
Booking lifecycle endpoints.

Every mutation runs as one conditional update per booking row; a request that
lost a race gets 409 invalid_transition and should re-fetch.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from companion_booking.api.deps import get_actor_id, get_clock, get_notifier
from companion_booking.db.session import get_db
from companion_booking.models.enums import BookingStatus
from companion_booking.schemas.booking import BookingCancel, BookingCreate, BookingDecision, BookingResponse
from companion_booking.services import booking_service
from companion_booking.services.cache_service import invalidate_dashboard_cache
from companion_booking.services.interfaces.clock import Clock
from companion_booking.services.interfaces.notifier import NotificationSink

router = APIRouter(prefix="/bookings", tags=["Bookings"])


async def _commit_and_invalidate(db: AsyncSession) -> None:
    """Commit the transition first so a dashboard read cannot re-cache the old numbers."""
    await db.commit()
    await invalidate_dashboard_cache()


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
):
    """
    Request a booking with a companion.

    Rejected with 400 if the slot is in the past or the duration is out of
    bounds, and with 409 if the companion is already booked for an
    overlapping slot.
    """
    booking = await booking_service.create_booking(db, notifier, clock, actor_id, booking_data)
    await _commit_and_invalidate(db)
    return booking


@router.get("/", response_model=list[BookingResponse])
async def list_bookings(
    role: Literal["user", "companion"] = Query("user"),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Bookings the caller made (role=user) or received (role=companion), newest first."""
    if role == "companion":
        return await booking_service.list_bookings_for_companion(db, actor_id, status_filter)
    return await booking_service.list_bookings_for_user(db, actor_id, status_filter)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await booking_service.get_booking(db, booking_id, actor_id)


@router.post("/{booking_id}/respond", response_model=BookingResponse)
async def respond_to_booking(
    booking_id: str,
    body: BookingDecision,
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
):
    """Companion accepts (opening the chat window) or rejects a pending request."""
    booking = await booking_service.respond_to_booking(db, notifier, clock, booking_id, actor_id, body.decision)
    await _commit_and_invalidate(db)
    return booking


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    body: BookingCancel,
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
):
    """Either party cancels a booking while it is still pending."""
    booking = await booking_service.cancel_booking(db, notifier, clock, booking_id, actor_id, body.reason)
    await _commit_and_invalidate(db)
    return booking


@router.post("/{booking_id}/start", response_model=BookingResponse)
async def start_booking(
    booking_id: str,
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    booking = await booking_service.start_booking(db, clock, booking_id, actor_id)
    await _commit_and_invalidate(db)
    return booking


@router.post("/{booking_id}/payment/request", response_model=BookingResponse)
async def request_payment(
    booking_id: str,
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
):
    booking = await booking_service.request_payment(db, notifier, clock, booking_id, actor_id)
    await _commit_and_invalidate(db)
    return booking


@router.post("/{booking_id}/payment/paid", response_model=BookingResponse)
async def mark_payment_paid(
    booking_id: str,
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
):
    booking = await booking_service.mark_payment_paid(db, notifier, clock, booking_id, actor_id)
    await _commit_and_invalidate(db)
    return booking


@router.post("/{booking_id}/payment/dispute", response_model=BookingResponse)
async def dispute_payment(
    booking_id: str,
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
):
    booking = await booking_service.dispute_payment(db, notifier, clock, booking_id, actor_id)
    await _commit_and_invalidate(db)
    return booking


@router.post("/{booking_id}/payment/confirm", response_model=BookingResponse)
async def confirm_payment(
    booking_id: str,
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
):
    """Companion confirms receipt; the booking completes in the same write."""
    booking = await booking_service.confirm_payment(db, notifier, clock, booking_id, actor_id)
    await _commit_and_invalidate(db)
    return booking
