"""
Booking lifecycle with concurrency-safe transitions.

CONCURRENCY STRATEGY: Optimistic Locking
========================================

Problem:
  A companion double-clicks "accept" while the user cancels, or two tabs
  accept the same request. Both read status=pending, both write.
  Result: a cancelled booking with a chat window, or two chat windows.

Solution:
  Every booking row carries a `version` counter.

  1. Read the booking and validate the move against the state tables
  2. UPDATE bookings SET ..., version = version + 1
     WHERE id = :booking_id AND version = :seen_version
  3. If rows_affected == 0, someone else moved the booking first ->
     the caller gets InvalidTransitionError and should re-fetch

  Status and payment status change in the same UPDATE statement, so
  confirm_payment can never be observed half-applied.

  The unique constraint on chats.booking_id is the final safety net
  against a second chat window for the same booking.

Double booking:
  A companion may not hold two accepted/active bookings whose windows
  overlap. Checked on creation and again on accept. Two accepts for
  different bookings of one companion write different booking rows, so the
  accept also bumps a per-companion `companion_schedules.version` with the
  same conditional UPDATE; the loser re-checks the calendar.
"""

import time
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from companion_booking.core.config import get_settings
from companion_booking.core.exceptions import (
    BookingError,
    InvalidScheduleError,
    InvalidTransitionError,
    NotFoundError,
    SchedulingConflictError,
)
from companion_booking.core.logging import get_logger
from companion_booking.core.metrics import (
    booking_transition_latency,
    record_transition,
    schedule_claim_conflicts,
    stale_version_conflicts,
)
from companion_booking.models.booking import Booking
from companion_booking.models.companion_schedule import CompanionSchedule
from companion_booking.models.enums import SCHEDULED_STATUSES, BookingStatus, PaymentStatus, sql_values
from companion_booking.models.payment_request import PaymentRequest
from companion_booking.schemas.booking import BookingCreate
from companion_booking.services.chat_window import derive_chat_window, resolve_schedule
from companion_booking.services.interfaces.clock import Clock
from companion_booking.services.interfaces.notifier import NotificationSink
from companion_booking.services.state_machine import assert_transition

logger = get_logger(__name__)
settings = get_settings()

SCHEDULE_CLAIM_ATTEMPTS = 3


@contextmanager
def _tracked(action: str):
    """Time one operation and count its outcome."""
    started = time.perf_counter()
    try:
        yield
    except BookingError as e:
        record_transition(action, e.code)
        logger.warning("booking_transition_rejected", **{**e.to_dict(), "action": action})
        raise
    else:
        record_transition(action, "success")
    finally:
        booking_transition_latency.labels(action=action).observe(time.perf_counter() - started)


async def _load_booking(db: AsyncSession, booking_id: str) -> Booking:
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()
    if not booking:
        raise NotFoundError(f"Booking {booking_id} not found")
    return booking


def _require_companion(booking: Booking, actor_id: str, action: str) -> None:
    if booking.companion_id != actor_id:
        raise InvalidTransitionError(
            action, booking.status, booking.payment_status,
            reason="Only the booked companion can do this",
        )


def _require_user(booking: Booking, actor_id: str, action: str) -> None:
    if booking.user_id != actor_id:
        raise InvalidTransitionError(
            action, booking.status, booking.payment_status,
            reason="Only the booking user can do this",
        )


def _require_party(booking: Booking, actor_id: str, action: str) -> None:
    if actor_id not in (booking.user_id, booking.companion_id):
        raise InvalidTransitionError(
            action, booking.status, booking.payment_status,
            reason="Only a party to the booking can do this",
        )


async def _find_overlap(
    db: AsyncSession,
    companion_id: str,
    starts_at: datetime,
    ends_at: datetime,
    exclude_id: Optional[str] = None,
) -> Optional[Booking]:
    """First accepted/active booking of the companion intersecting [starts_at, ends_at)."""
    query = select(Booking).where(
        Booking.companion_id == companion_id,
        Booking.status.in_(sql_values(SCHEDULED_STATUSES)),
        Booking.starts_at < ends_at,
        Booking.ends_at > starts_at,
    )
    if exclude_id is not None:
        query = query.where(Booking.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none()


async def _ensure_companion_free(
    db: AsyncSession,
    companion_id: str,
    starts_at: datetime,
    ends_at: datetime,
    exclude_id: Optional[str] = None,
) -> None:
    clash = await _find_overlap(db, companion_id, starts_at, ends_at, exclude_id)
    if clash:
        raise SchedulingConflictError(
            "Companion is already booked for an overlapping time slot",
            conflicting_booking_id=clash.id,
        )


def _schedule_insert(db: AsyncSession, companion_id: str):
    """INSERT of the companion's schedule row that is a no-op when it already exists."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        insert = pg_insert
    elif dialect == "sqlite":
        insert = sqlite_insert
    else:
        raise RuntimeError(f"Unsupported database dialect: {dialect}")
    return (
        insert(CompanionSchedule)
        .values(companion_id=companion_id, version=1)
        .on_conflict_do_nothing(index_elements=["companion_id"])
    )


async def _claim_companion_schedule(
    db: AsyncSession,
    booking: Booking,
    action: str,
) -> None:
    """
    Check the companion is free for the booking's window and bump the
    companion's schedule version in the same transaction.

    Two accepts for the same companion read the same version; only one
    conditional UPDATE matches it. The other re-reads the calendar (which now
    shows the winner once it commits) and either finds the overlap or claims
    the next version.
    """
    await db.execute(_schedule_insert(db, booking.companion_id))

    for attempt in range(1, SCHEDULE_CLAIM_ATTEMPTS + 1):
        seen_version = (
            await db.execute(
                select(CompanionSchedule.version).where(CompanionSchedule.companion_id == booking.companion_id)
            )
        ).scalar_one()

        await _ensure_companion_free(
            db, booking.companion_id, booking.starts_at, booking.ends_at, exclude_id=booking.id
        )

        result = await db.execute(
            update(CompanionSchedule)
            .where(
                CompanionSchedule.companion_id == booking.companion_id,
                CompanionSchedule.version == seen_version,
            )
            .values(version=seen_version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return

        schedule_claim_conflicts.inc()
        logger.info(
            "companion_schedule_contended",
            booking_id=booking.id,
            companion_id=booking.companion_id,
            action=action,
            attempt=attempt,
            seen_version=seen_version,
        )

    raise SchedulingConflictError(
        "Companion's schedule is being changed by another request; try again"
    )


async def apply_transition(
    db: AsyncSession,
    booking: Booking,
    action: str,
    now: datetime,
    **values,
) -> Booking:
    """
    Conditionally write `values` to the booking row.
    Fails with InvalidTransitionError if the row changed since `booking` was read.
    """
    seen_version = booking.version
    result = await db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.version == seen_version)
        .values(version=seen_version + 1, updated_at=now, **values)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        stale_version_conflicts.inc()
        await db.refresh(booking)
        logger.info(
            "booking_version_conflict",
            booking_id=booking.id,
            action=action,
            seen_version=seen_version,
            current_version=booking.version,
        )
        raise InvalidTransitionError(
            action, booking.status, booking.payment_status,
            reason="Booking was changed by another request; refresh and try again",
        )

    await db.refresh(booking)
    return booking


async def _update_payment_request(db: AsyncSession, booking_id: str, **values) -> None:
    await db.execute(
        update(PaymentRequest)
        .where(PaymentRequest.booking_id == booking_id)
        .values(**values)
    )


async def create_booking(
    db: AsyncSession,
    notifier: NotificationSink,
    clock: Clock,
    user_id: str,
    data: BookingCreate,
) -> Booking:
    """
    Create a pending booking request.
    Total amount is frozen here from the hourly rate snapshot.
    """
    with _tracked("create"):
        duration = data.duration_hours
        if isinstance(duration, bool) or duration < 1 or duration > settings.MAX_BOOKING_HOURS:
            raise InvalidScheduleError(
                f"duration_hours must be between 1 and {settings.MAX_BOOKING_HOURS}, got {duration}"
            )
        if user_id == data.companion_id:
            raise InvalidTransitionError("create", None, reason="You cannot book yourself")

        starts_at, ends_at = resolve_schedule(
            data.booking_date, data.start_time, duration, settings.BOOKING_TIMEZONE
        )
        now = clock.now()
        if starts_at < now:
            raise InvalidScheduleError("Booking start must not be in the past")

        await _ensure_companion_free(db, data.companion_id, starts_at, ends_at)

        booking = Booking(
            user_id=user_id,
            companion_id=data.companion_id,
            booking_date=data.booking_date,
            start_time=data.start_time.replace(tzinfo=None),
            duration_hours=duration,
            starts_at=starts_at,
            ends_at=ends_at,
            activity=data.activity.value,
            location=data.location,
            user_notes=data.user_notes,
            hourly_rate=data.hourly_rate,
            total_amount=data.hourly_rate * duration,
            status=BookingStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            version=1,
            created_at=now,
            updated_at=now,
        )
        db.add(booking)
        await db.flush()
        await db.refresh(booking)

    logger.info(
        "booking_created",
        booking_id=booking.id,
        user_id=user_id,
        companion_id=booking.companion_id,
        starts_at=booking.starts_at,
        duration_hours=duration,
        total_amount=booking.total_amount,
    )
    await notifier.notify(
        booking.companion_id,
        "booking_request",
        "New Booking Request",
        f"You have a new booking request for {booking.activity} on {booking.booking_date.isoformat()}",
        {"booking_id": booking.id, "activity": booking.activity},
    )
    return booking


async def respond_to_booking(
    db: AsyncSession,
    notifier: NotificationSink,
    clock: Clock,
    booking_id: str,
    companion_id: str,
    decision: str,
) -> Booking:
    """
    Companion accepts or rejects a pending request.
    Accepting creates the booking's chat window in the same transaction.
    """
    if decision not in ("accept", "reject"):
        raise ValueError(f"decision must be 'accept' or 'reject', got {decision!r}")
    accept = decision == "accept"

    with _tracked(decision):
        booking = await _load_booking(db, booking_id)
        _require_companion(booking, companion_id, decision)
        target = BookingStatus.ACCEPTED if accept else BookingStatus.REJECTED
        assert_transition(decision, booking, status=target)

        if accept:
            await _claim_companion_schedule(db, booking, decision)

        booking = await apply_transition(db, booking, decision, clock.now(), status=target.value)

        if accept:
            chat = derive_chat_window(booking)
            db.add(chat)
            payment_status = booking.payment_status
            try:
                await db.flush()
            except IntegrityError:
                await db.rollback()
                raise InvalidTransitionError(
                    decision, BookingStatus.ACCEPTED.value, payment_status,
                    reason="A chat window already exists for this booking",
                )
            logger.info(
                "chat_window_created",
                booking_id=booking.id,
                starts_at=chat.starts_at,
                grace_period_ends_at=chat.grace_period_ends_at,
            )

    if accept:
        logger.info("booking_accepted", booking_id=booking.id, companion_id=companion_id)
        await notifier.notify(
            booking.user_id,
            "booking_accepted",
            "Booking Confirmed!",
            f"Your booking for {booking.activity} was accepted.",
            {"booking_id": booking.id},
        )
    else:
        logger.info("booking_rejected", booking_id=booking.id, companion_id=companion_id)
        await notifier.notify(
            booking.user_id,
            "booking_rejected",
            "Booking Declined",
            f"Your booking request for {booking.activity} was declined.",
            {"booking_id": booking.id},
        )
    return booking


async def cancel_booking(
    db: AsyncSession,
    notifier: NotificationSink,
    clock: Clock,
    booking_id: str,
    actor_id: str,
    reason: Optional[str] = None,
) -> Booking:
    """
    Either party cancels a booking that is still pending.
    Accepted bookings cannot be cancelled.
    """
    with _tracked("cancel"):
        booking = await _load_booking(db, booking_id)
        _require_party(booking, actor_id, "cancel")
        assert_transition("cancel", booking, status=BookingStatus.CANCELLED)
        booking = await apply_transition(
            db, booking, "cancel", clock.now(),
            status=BookingStatus.CANCELLED.value,
            cancelled_by=actor_id,
            cancellation_reason=reason,
        )

    logger.info("booking_cancelled", booking_id=booking.id, cancelled_by=actor_id)
    counterparty = booking.companion_id if actor_id == booking.user_id else booking.user_id
    await notifier.notify(
        counterparty,
        "booking_cancelled",
        "Booking Cancelled",
        f"Booking for {booking.activity} cancelled.",
        {"booking_id": booking.id, "reason": reason},
    )
    return booking


async def start_booking(
    db: AsyncSession,
    clock: Clock,
    booking_id: str,
    actor_id: str,
) -> Booking:
    """Mark an accepted booking as in progress once its scheduled start has passed."""
    with _tracked("start"):
        booking = await _load_booking(db, booking_id)
        _require_party(booking, actor_id, "start")
        assert_transition("start", booking, status=BookingStatus.ACTIVE)
        now = clock.now()
        if now < booking.starts_at:
            raise InvalidTransitionError(
                "start", booking.status, booking.payment_status,
                reason="The session has not started yet",
            )
        booking = await apply_transition(db, booking, "start", now, status=BookingStatus.ACTIVE.value)

    logger.info("booking_started", booking_id=booking.id, actor_id=actor_id)
    return booking


async def request_payment(
    db: AsyncSession,
    notifier: NotificationSink,
    clock: Clock,
    booking_id: str,
    companion_id: str,
) -> Booking:
    with _tracked("request_payment"):
        booking = await _load_booking(db, booking_id)
        _require_companion(booking, companion_id, "request_payment")
        if BookingStatus(booking.status) not in SCHEDULED_STATUSES:
            raise InvalidTransitionError("request_payment", booking.status, booking.payment_status)
        assert_transition("request_payment", booking, payment_status=PaymentStatus.REQUESTED)

        now = clock.now()
        booking = await apply_transition(
            db, booking, "request_payment", now, payment_status=PaymentStatus.REQUESTED.value
        )
        db.add(
            PaymentRequest(
                booking_id=booking.id,
                user_id=booking.user_id,
                companion_id=booking.companion_id,
                amount=booking.total_amount,
                status=PaymentStatus.REQUESTED.value,
                requested_at=now,
            )
        )
        await db.flush()

    logger.info("payment_requested", booking_id=booking.id, amount=booking.total_amount)
    await notifier.notify(
        booking.user_id,
        "payment_requested",
        "Payment Requested",
        f"Your companion has requested payment of Rs. {booking.total_amount}.",
        {"booking_id": booking.id, "amount": str(booking.total_amount)},
    )
    return booking


async def mark_payment_paid(
    db: AsyncSession,
    notifier: NotificationSink,
    clock: Clock,
    booking_id: str,
    user_id: str,
) -> Booking:
    """User reports that the requested payment has been sent."""
    with _tracked("mark_paid"):
        booking = await _load_booking(db, booking_id)
        _require_user(booking, user_id, "mark_paid")
        assert_transition("mark_paid", booking, payment_status=PaymentStatus.PAID)
        now = clock.now()
        booking = await apply_transition(db, booking, "mark_paid", now, payment_status=PaymentStatus.PAID.value)
        await _update_payment_request(db, booking.id, status=PaymentStatus.PAID.value, paid_at=now, updated_at=now)

    logger.info("payment_marked_paid", booking_id=booking.id, user_id=user_id)
    await notifier.notify(
        booking.companion_id,
        "payment_marked_paid",
        "Payment Marked as Paid",
        f"User has marked their payment of Rs. {booking.total_amount} as paid. Please verify and confirm.",
        {"booking_id": booking.id, "amount": str(booking.total_amount)},
    )
    return booking


async def dispute_payment(
    db: AsyncSession,
    notifier: NotificationSink,
    clock: Clock,
    booking_id: str,
    user_id: str,
) -> Booking:
    with _tracked("dispute"):
        booking = await _load_booking(db, booking_id)
        _require_user(booking, user_id, "dispute")
        assert_transition("dispute", booking, payment_status=PaymentStatus.DISPUTED)
        now = clock.now()
        booking = await apply_transition(db, booking, "dispute", now, payment_status=PaymentStatus.DISPUTED.value)
        await _update_payment_request(db, booking.id, status=PaymentStatus.DISPUTED.value, updated_at=now)

    logger.info("payment_disputed", booking_id=booking.id, user_id=user_id)
    await notifier.notify(
        booking.companion_id,
        "payment_disputed",
        "Payment Disputed",
        f"The payment for {booking.activity} has been disputed. An admin will review it.",
        {"booking_id": booking.id},
    )
    return booking


async def confirm_payment(
    db: AsyncSession,
    notifier: NotificationSink,
    clock: Clock,
    booking_id: str,
    companion_id: str,
) -> Booking:
    """
    Companion confirms receipt. Payment status and booking status move
    together in one conditional UPDATE: confirmed + completed, or neither.
    """
    with _tracked("confirm_payment"):
        booking = await _load_booking(db, booking_id)
        _require_companion(booking, companion_id, "confirm_payment")
        assert_transition(
            "confirm_payment", booking,
            status=BookingStatus.COMPLETED,
            payment_status=PaymentStatus.CONFIRMED,
        )
        now = clock.now()
        booking = await apply_transition(
            db, booking, "confirm_payment", now,
            status=BookingStatus.COMPLETED.value,
            payment_status=PaymentStatus.CONFIRMED.value,
        )
        await _update_payment_request(
            db, booking.id, status=PaymentStatus.CONFIRMED.value, confirmed_at=now, updated_at=now
        )

    logger.info("payment_confirmed", booking_id=booking.id, amount=booking.total_amount)
    await notifier.notify(
        booking.user_id,
        "payment_confirmed",
        "Payment Confirmed",
        f"Your payment for {booking.activity} was confirmed. Booking complete.",
        {"booking_id": booking.id},
    )
    return booking


async def get_booking(db: AsyncSession, booking_id: str, actor_id: str) -> Booking:
    """Fetch a booking visible to one of its parties."""
    booking = await _load_booking(db, booking_id)
    if actor_id not in (booking.user_id, booking.companion_id):
        raise NotFoundError(f"Booking {booking_id} not found")
    return booking


async def list_bookings_for_user(
    db: AsyncSession,
    user_id: str,
    status: Optional[BookingStatus] = None,
) -> list[Booking]:
    query = select(Booking).where(Booking.user_id == user_id)
    if status is not None:
        query = query.where(Booking.status == status.value)
    result = await db.execute(query.order_by(Booking.created_at.desc()))
    return list(result.scalars().all())


async def list_bookings_for_companion(
    db: AsyncSession,
    companion_id: str,
    status: Optional[BookingStatus] = None,
) -> list[Booking]:
    query = select(Booking).where(Booking.companion_id == companion_id)
    if status is not None:
        query = query.where(Booking.status == status.value)
    result = await db.execute(query.order_by(Booking.created_at.desc()))
    return list(result.scalars().all())
