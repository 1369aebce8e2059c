"""
Shared test fixtures.

Uses a file-backed SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  SQLite has no row locks, so every transaction
is opened with ``BEGIN IMMEDIATE``: concurrent writers then queue on the
database lock the way they would on ``SELECT ... FOR UPDATE``.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from carpool.domain.entities import Location, Waypoint
from carpool.infrastructure import models
from carpool.infrastructure.database import Base
from carpool.services.booking import BookingService
from carpool.services.lifecycle import RideLifecycleService
from carpool.services.rides import RideService

NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
TOMORROW = NOW + timedelta(days=1)

DRIVER_ID = 1
OTHER_DRIVER_ID = 2
PASSENGER_IDS = list(range(3, 13))
CAR_ID = 1  # 4 seats, owned by DRIVER_ID
VAN_ID = 2  # 7 seats, owned by OTHER_DRIVER_ID

PUNE = Location(18.5204, 73.8567, "Pune Station")
LONAVALA = Location(18.7546, 73.4062, "Lonavala")
MUMBAI = Location(19.0760, 72.8777, "Mumbai Central")


class InMemoryCache:
    """Dict-backed stand-in for ``ReadCache`` that records invalidations."""

    def __init__(self):
        self.store: dict[str, Any] = {}
        self.invalidated: list[str] = []

    async def get(self, key: str) -> Optional[Any]:
        return self.store.get(key)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        self.store[key] = value

    async def invalidate(self, *keys: str) -> None:
        self.invalidated.extend(keys)
        for key in keys:
            self.store.pop(key, None)

    async def close(self) -> None:
        pass


class Clock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ── Database ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def engine(tmp_path):
    db_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'carpool.db'}",
        connect_args={"timeout": 30},
    )

    @event.listens_for(db_engine.sync_engine, "connect")
    def _autocommit_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(db_engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield db_engine
    await db_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as session:
        session.add_all(
            [
                models.UserModel(id=DRIVER_ID, uid="driver-1", name="Dev Driver", email="dev@example.com"),
                models.UserModel(id=OTHER_DRIVER_ID, uid="driver-2", name="Ola Owner", email="ola@example.com"),
            ]
            + [
                models.UserModel(id=pid, uid=f"passenger-{pid}", name=f"Passenger {pid}", email=f"p{pid}@example.com")
                for pid in PASSENGER_IDS
            ]
        )
        await session.flush()
        session.add_all(
            [
                models.VehicleModel(
                    id=CAR_ID, owner_id=DRIVER_ID, vehicle_number="MH12AB1234",
                    vehicle_name="Swift", capacity=4,
                ),
                models.VehicleModel(
                    id=VAN_ID, owner_id=OTHER_DRIVER_ID, vehicle_number="MH14CD5678",
                    vehicle_name="Innova", capacity=7,
                ),
            ]
        )
        await session.commit()

    return factory


# ── Services ──────────────────────────────────────────────────────────


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def ride_service(session_factory, cache, clock) -> RideService:
    return RideService(session_factory, cache, clock=clock)


@pytest.fixture
def booking_service(session_factory, cache, clock) -> BookingService:
    return BookingService(session_factory, cache, clock=clock)


@pytest.fixture
def lifecycle_service(session_factory, cache, clock) -> RideLifecycleService:
    return RideLifecycleService(session_factory, cache, clock=clock)


@pytest.fixture
def publish(ride_service):
    """Publish a Pune -> Mumbai ride via Lonavala; keyword overrides win."""

    async def _publish(**overrides):
        fields = dict(
            driver_id=DRIVER_ID,
            vehicle_id=CAR_ID,
            pickup=PUNE,
            destination=MUMBAI,
            waypoints=[Waypoint(LONAVALA.latitude, LONAVALA.longitude, "Lonavala")],
            scheduled_at=TOMORROW,
            capacity=3,
            price=450.0,
        )
        fields.update(overrides)
        return await ride_service.publish_ride(**fields)

    return _publish


# ── API ───────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client(session_factory, cache) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient wired to the SQLite store and the in-memory cache."""
    from carpool.api.app import create_app
    from carpool.api.dependencies import get_cache, get_session_factory
    from carpool.api.middleware import limiter

    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_cache] = lambda: cache
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    limiter.enabled = True
