"""FastAPI dependency injection helpers."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from carpool.infrastructure.cache import ReadCache
from carpool.infrastructure.database import async_session_factory
from carpool.services.booking import BookingService
from carpool.services.lifecycle import RideLifecycleService
from carpool.services.rides import RideService


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_session_factory


def get_cache(request: Request) -> ReadCache:
    """The read cache created in the app lifespan."""
    return request.app.state.cache


def get_ride_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    cache: ReadCache = Depends(get_cache),
) -> RideService:
    return RideService(session_factory, cache)


def get_booking_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    cache: ReadCache = Depends(get_cache),
) -> BookingService:
    return BookingService(session_factory, cache)


def get_lifecycle_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    cache: ReadCache = Depends(get_cache),
) -> RideLifecycleService:
    return RideLifecycleService(session_factory, cache)
