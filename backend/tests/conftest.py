"""
Pytest fixtures for test database, client, clock and booking factories.

Uses an in-memory SQLite database with tables created per test for
isolation and speed. Point TEST_DATABASE_URL at PostgreSQL to run the
same suite against the production dialect.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from companion_booking.main import app
from companion_booking.db.base import Base
from companion_booking.db.session import get_db
from companion_booking.api.deps import get_clock
from companion_booking.models.enums import Activity
from companion_booking.schemas.booking import BookingCreate
from companion_booking.services import booking_service
from companion_booking.services.interfaces.clock import Clock
from companion_booking.services.notification_service import DatabaseNotificationSink

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

USER_ID = "user-0001"
OTHER_USER_ID = "user-0002"
COMPANION_ID = "companion-0001"

# Fixed "now" for every test: well before the default booking slot
DEFAULT_NOW = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


class FixedClock(Clock):
    """Clock frozen at a settable instant."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def set(self, now: datetime) -> None:
        self.current = now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(DEFAULT_NOW)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop everything with the engine."""
    connect_args = {"check_same_thread": False} if TEST_DATABASE_URL.startswith("sqlite") else {}
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool, connect_args=connect_args)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """
    Sessions on separate connections to one database, for racing requests.
    SQLite runs on a file here: the in-memory StaticPool shares one connection.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        url = f"sqlite+aiosqlite:///{tmp_path / 'race.db'}"
    else:
        url = TEST_DATABASE_URL
    engine = create_async_engine(url, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def notifier(db_session: AsyncSession) -> DatabaseNotificationSink:
    return DatabaseNotificationSink(db_session)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, clock: FixedClock) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB session and the clock."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def booking_request(**overrides) -> BookingCreate:
    fields = dict(
        companion_id=COMPANION_ID,
        booking_date=date(2024, 6, 10),
        start_time=time(18, 0),
        duration_hours=2,
        activity=Activity.COFFEE,
        hourly_rate=Decimal("500"),
    )
    fields.update(overrides)
    return BookingCreate(**fields)


@pytest.fixture
def make_booking(db_session, notifier, clock):
    """Factory creating a pending booking through the service."""

    async def _make(user_id: str = USER_ID, **overrides):
        return await booking_service.create_booking(
            db_session, notifier, clock, user_id, booking_request(**overrides)
        )

    return _make


@pytest.fixture
def accepted_booking(db_session, notifier, clock, make_booking):
    """Factory creating a booking the companion has already accepted."""

    async def _make(user_id: str = USER_ID, **overrides):
        booking = await make_booking(user_id, **overrides)
        return await booking_service.respond_to_booking(
            db_session, notifier, clock, booking.id, booking.companion_id, "accept"
        )

    return _make


def at(hour: int, minute: int = 0, second: int = 0, day: int = 10) -> datetime:
    return datetime(2024, 6, day, hour, minute, second, tzinfo=timezone.utc)


def hours(n: float) -> timedelta:
    return timedelta(hours=n)
