"""
Ride endpoints
==============

POST /api/v1/rides                     -- publish a ride
GET  /api/v1/rides                     -- discover bookable rides matching a route
GET  /api/v1/rides/{ride_id}           -- ride details, bookings and remaining seats
POST /api/v1/rides/{ride_id}/book      -- reserve seats
POST /api/v1/rides/{ride_id}/start     -- driver starts the trip
POST /api/v1/rides/{ride_id}/complete  -- driver completes the trip
POST /api/v1/rides/{ride_id}/cancel    -- driver or passenger cancels
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from carpool.api.dependencies import (
    get_booking_service,
    get_cache,
    get_lifecycle_service,
    get_ride_service,
)
from carpool.api.middleware import RATE_LIMIT, limiter
from carpool.api.schemas import (
    BookingConfirmation,
    BookingRequest,
    BookingResponse,
    CancelRequest,
    CancelResponse,
    ErrorResponse,
    LifecycleRequest,
    RidePublishRequest,
    RideResponse,
)
from carpool.domain.entities import Location
from carpool.infrastructure.cache import ReadCache, ride_details_key
from carpool.services.booking import BookingService
from carpool.services.lifecycle import RideLifecycleService
from carpool.services.rides import RideService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rides", tags=["rides"])

_ERRORS = {
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


@router.post(
    "",
    status_code=201,
    response_model=RideResponse,
    summary="Publish a ride",
    responses=_ERRORS,
)
@limiter.limit(RATE_LIMIT)
async def publish_ride(
    request: Request,
    body: RidePublishRequest,
    service: RideService = Depends(get_ride_service),
):
    ride = await service.publish_ride(
        driver_id=body.driver_id,
        vehicle_id=body.vehicle_id,
        pickup=body.pickup.to_domain(),
        destination=body.destination.to_domain(),
        waypoints=[w.to_domain() for w in body.waypoints],
        scheduled_at=body.scheduled_at,
        capacity=body.capacity,
        price=body.price,
        price_per_km=body.price_per_km,
        estimated_distance_km=body.estimated_distance_km,
        estimated_duration_min=body.estimated_duration_min,
        immediate_mode=body.immediate_mode,
        scheduled_mode=body.scheduled_mode,
        is_recurring=body.is_recurring,
        recurring_days=body.recurring_days,
        notes=body.notes,
    )
    return RideResponse.from_ride(ride)


@router.get(
    "",
    response_model=list[RideResponse],
    summary="Find bookable rides matching a route",
)
@limiter.limit(RATE_LIMIT)
async def find_rides(
    request: Request,
    exclude_driver_id: Optional[int] = Query(None, description="Hide this driver's own rides"),
    max_price: Optional[float] = Query(None, ge=0),
    pickup_lat: Optional[float] = Query(None, ge=-90, le=90),
    pickup_lng: Optional[float] = Query(None, ge=-180, le=180),
    pickup_place: str = "",
    destination_lat: Optional[float] = Query(None, ge=-90, le=90),
    destination_lng: Optional[float] = Query(None, ge=-180, le=180),
    destination_place: str = "",
    service: RideService = Depends(get_ride_service),
):
    matches = await service.find_matching_rides(
        exclude_driver_id=exclude_driver_id,
        max_price=max_price,
        rider_pickup=_rider_point(pickup_lat, pickup_lng, pickup_place),
        rider_destination=_rider_point(destination_lat, destination_lng, destination_place),
    )
    return [RideResponse.from_ride(ride) for ride, _ in matches]


@router.get(
    "/{ride_id}",
    response_model=RideResponse,
    summary="Get ride details with bookings and remaining capacity",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def get_ride(
    request: Request,
    ride_id: int,
    service: RideService = Depends(get_ride_service),
    cache: ReadCache = Depends(get_cache),
):
    key = ride_details_key(ride_id)
    cached = await cache.get(key)
    if cached is not None:
        return cached

    ride = await service.get_ride(ride_id)
    payload = RideResponse.from_ride(ride, include_bookings=True).model_dump(mode="json")
    await cache.set(key, payload)
    return payload


@router.post(
    "/{ride_id}/book",
    status_code=201,
    response_model=BookingConfirmation,
    summary="Reserve seats on a ride",
    description=(
        "Re-validates remaining capacity inside a locked transaction. "
        "A 409 for insufficient capacity reports the current remaining seats."
    ),
    responses=_ERRORS,
)
@limiter.limit(RATE_LIMIT)
async def book_ride(
    request: Request,
    ride_id: int,
    body: BookingRequest,
    service: BookingService = Depends(get_booking_service),
):
    receipt = await service.book(
        ride_id,
        body.passenger_id,
        seats=body.seats,
        special_requests=body.special_requests,
        source=body.source,
        destination=body.destination,
    )
    return BookingConfirmation(
        booking=BookingResponse.model_validate(receipt.booking),
        remaining_capacity=receipt.remaining_capacity,
    )


@router.post(
    "/{ride_id}/start",
    response_model=RideResponse,
    summary="Start a ride (driver only)",
    responses=_ERRORS,
)
@limiter.limit(RATE_LIMIT)
async def start_ride(
    request: Request,
    ride_id: int,
    body: LifecycleRequest,
    service: RideLifecycleService = Depends(get_lifecycle_service),
):
    ride = await service.start_ride(ride_id, body.caller_id)
    return RideResponse.from_ride(ride, include_bookings=True)


@router.post(
    "/{ride_id}/complete",
    response_model=RideResponse,
    summary="Complete a ride (driver only)",
    responses=_ERRORS,
)
@limiter.limit(RATE_LIMIT)
async def complete_ride(
    request: Request,
    ride_id: int,
    body: LifecycleRequest,
    service: RideLifecycleService = Depends(get_lifecycle_service),
):
    ride = await service.complete_ride(ride_id, body.caller_id)
    return RideResponse.from_ride(ride, include_bookings=True)


@router.post(
    "/{ride_id}/cancel",
    response_model=CancelResponse,
    summary="Cancel a ride or withdraw a booking",
    description=(
        "A driver cancels the whole ride and refunds every passenger. "
        "A passenger only withdraws their own booking; when it was the "
        "last one the ride becomes bookable again."
    ),
    responses=_ERRORS,
)
@limiter.limit(RATE_LIMIT)
async def cancel_ride(
    request: Request,
    ride_id: int,
    body: CancelRequest,
    service: RideLifecycleService = Depends(get_lifecycle_service),
):
    ride, outcome = await service.cancel_ride(ride_id, body.caller_id, body.role)
    return CancelResponse(
        ride=RideResponse.from_ride(ride, include_bookings=True),
        cancelled_by=outcome.role,
        cancelled_booking_ids=[b.id for b in outcome.cancelled_bookings],
        ride_reverted=outcome.ride_reverted,
    )


def _rider_point(lat: Optional[float], lng: Optional[float], place: str) -> Optional[Location]:
    point = Location(latitude=lat, longitude=lng, place_name=place.strip())
    return None if point.is_empty() else point
