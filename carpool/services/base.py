"""
Shared plumbing for the ride engine services.

Each service owns a session factory (one short unit of work per step) and
the injected read cache.  ``_with_ride_locked`` is the single place where a
ride row is locked: booking and every lifecycle transition go through it, so
concurrent writers on one ride are serialised by the store.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from carpool.config import settings
from carpool.domain.errors import EntityKind, InternalError, NotFoundError
from carpool.infrastructure.cache import ReadCache
from carpool.infrastructure.models import RideModel
from carpool.infrastructure.repositories import RideRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalise to aware UTC; naive values (e.g. read back from SQLite) are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class BaseService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: ReadCache,
        *,
        reject_past_bookings: bool = settings.reject_past_bookings,
        max_attempts: int = settings.booking_max_attempts,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.cache = cache
        self.reject_past_bookings = reject_past_bookings
        self.max_attempts = max_attempts
        self.clock = clock

    def is_past(self, when: datetime) -> bool:
        return as_utc(when) < self.clock()

    async def _with_ride_locked(
        self,
        ride_id: int,
        work: Callable[[AsyncSession, RideModel], Awaitable[T]],
    ) -> tuple[RideModel, T]:
        """
        Run *work* inside one transaction holding the ride's row lock.

        Lock / serialisation failures are retried up to ``max_attempts``;
        nothing is committed by a failed attempt.
        """
        last_error: Optional[DBAPIError] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                async with self.session_factory() as session:
                    async with session.begin():
                        ride = await RideRepository(session).get_for_update(ride_id)
                        if ride is None:
                            raise NotFoundError(EntityKind.RIDE, ride_id)
                        result = await work(session, ride)
                return ride, result
            except IntegrityError:
                raise
            except DBAPIError as exc:
                last_error = exc
                logger.warning(
                    "Store conflict on ride %d (attempt %d/%d): %s",
                    ride_id, attempt, self.max_attempts, exc.orig,
                )

        logger.error("Giving up on ride %d after %d attempts", ride_id, self.max_attempts)
        raise InternalError() from last_error
