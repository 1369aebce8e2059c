"""
Per-user listings
=================

GET /api/v1/users/{user_id}/driver-rides     -- rides the user published
GET /api/v1/users/{user_id}/passenger-rides  -- bookings the user holds, with their rides

Both are read through the Redis cache; writes on a ride invalidate the
entries of its driver and of every affected passenger.
"""

from fastapi import APIRouter, Depends, Request

from carpool.api.dependencies import get_cache, get_ride_service
from carpool.api.middleware import RATE_LIMIT, limiter
from carpool.api.schemas import ErrorResponse, PassengerBookingResponse, RideResponse
from carpool.infrastructure.cache import (
    ReadCache,
    driver_rides_key,
    passenger_bookings_key,
)
from carpool.services.rides import RideService

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/{user_id}/driver-rides",
    response_model=list[RideResponse],
    summary="Rides published by a driver",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def get_driver_rides(
    request: Request,
    user_id: int,
    service: RideService = Depends(get_ride_service),
    cache: ReadCache = Depends(get_cache),
):
    key = driver_rides_key(user_id)
    cached = await cache.get(key)
    if cached is not None:
        return cached

    rides = await service.list_driver_rides(user_id)
    payload = [
        RideResponse.from_ride(r, include_bookings=True).model_dump(mode="json")
        for r in rides
    ]
    await cache.set(key, payload)
    return payload


@router.get(
    "/{user_id}/passenger-rides",
    response_model=list[PassengerBookingResponse],
    summary="Bookings held by a passenger, newest first",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def get_passenger_rides(
    request: Request,
    user_id: int,
    service: RideService = Depends(get_ride_service),
    cache: ReadCache = Depends(get_cache),
):
    key = passenger_bookings_key(user_id)
    cached = await cache.get(key)
    if cached is not None:
        return cached

    bookings = await service.list_passenger_bookings(user_id)
    payload = [
        PassengerBookingResponse.from_booking(b).model_dump(mode="json")
        for b in bookings
    ]
    await cache.set(key, payload)
    return payload
