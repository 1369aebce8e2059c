"""
Ride publishing, discovery and per-user listings.

Discovery
---------
1. Fetch UPCOMING rides (future-dated when past rides are rejected),
   excluding the requesting driver and rides above ``max_price``.
2. Drop rides whose remaining capacity, derived from their bookings, is
   not positive.
3. Keep the rides whose route matches the rider's pickup / destination.

Complexity: O(R x (B + W)) for R candidate rides with B bookings and W
waypoints each.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from carpool.config import settings
from carpool.domain.capacity import remaining_capacity
from carpool.domain.entities import Location, Waypoint
from carpool.domain.errors import EntityKind, InvalidError, InvalidReason, NotFoundError
from carpool.domain.matching import dedupe_waypoints, route_matches
from carpool.domain.pricing import estimate_route_km
from carpool.infrastructure.cache import driver_rides_key
from carpool.infrastructure.models import BookingModel, RideModel
from carpool.infrastructure.repositories import (
    BookingRepository,
    RideRepository,
    UserRepository,
    VehicleRepository,
)

from .base import BaseService, as_utc

logger = logging.getLogger(__name__)


class RideService(BaseService):
    def __init__(
        self,
        *args,
        route_tolerance_deg: float = settings.route_tolerance_deg,
        proximity_km: float = settings.proximity_km,
        same_location_km: float = settings.same_location_km,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.route_tolerance_deg = route_tolerance_deg
        self.proximity_km = proximity_km
        self.same_location_km = same_location_km

    async def publish_ride(
        self,
        *,
        driver_id: int,
        vehicle_id: int,
        pickup: Location,
        destination: Location,
        scheduled_at: datetime,
        capacity: int,
        price: float,
        waypoints: Sequence[Waypoint] = (),
        price_per_km: Optional[float] = None,
        estimated_distance_km: Optional[float] = None,
        estimated_duration_min: Optional[int] = None,
        immediate_mode: bool = False,
        scheduled_mode: bool = True,
        is_recurring: bool = False,
        recurring_days: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> RideModel:
        stops = [
            replace(
                w,
                stop_order=i,
                estimated_arrival=as_utc(w.estimated_arrival) if w.estimated_arrival else None,
            )
            for i, w in enumerate(
                dedupe_waypoints(pickup, destination, waypoints, self.same_location_km),
                start=1,
            )
        ]
        if price_per_km is not None and estimated_distance_km is None:
            estimated_distance_km = estimate_route_km(pickup, destination, stops)

        async with self.session_factory() as session:
            async with session.begin():
                if await UserRepository(session).get_by_id(driver_id) is None:
                    raise NotFoundError(EntityKind.DRIVER, driver_id)
                vehicle = await VehicleRepository(session).get_by_id(vehicle_id)
                if vehicle is None or vehicle.owner_id != driver_id or not vehicle.is_active:
                    raise NotFoundError(EntityKind.VEHICLE, vehicle_id)
                if capacity > vehicle.capacity:
                    raise InvalidError(
                        InvalidReason.CAPACITY_EXCEEDS_VEHICLE,
                        f"Capacity {capacity} exceeds the vehicle's {vehicle.capacity} seats",
                    )
                if self.reject_past_bookings and self.is_past(scheduled_at):
                    raise InvalidError(
                        InvalidReason.PAST_RIDE, "Cannot publish a ride in the past"
                    )

                ride = await RideRepository(session).create_with_locations(
                    driver_id=driver_id,
                    vehicle_id=vehicle_id,
                    pickup=pickup,
                    destination=destination,
                    waypoints=stops,
                    scheduled_at=as_utc(scheduled_at),
                    selected_capacity=capacity,
                    price=price,
                    price_per_km=price_per_km,
                    estimated_distance_km=estimated_distance_km,
                    estimated_duration_min=estimated_duration_min,
                    immediate_mode=immediate_mode,
                    scheduled_mode=scheduled_mode,
                    is_recurring=is_recurring,
                    recurring_days=recurring_days,
                    notes=notes,
                )

        await self.cache.invalidate(driver_rides_key(driver_id))
        logger.info(
            "Ride %d published by driver %d: %d seats, %d waypoints",
            ride.id, driver_id, capacity, len(stops),
        )
        return ride

    async def find_matching_rides(
        self,
        *,
        exclude_driver_id: Optional[int] = None,
        max_price: Optional[float] = None,
        rider_pickup: Optional[Location] = None,
        rider_destination: Optional[Location] = None,
    ) -> list[tuple[RideModel, int]]:
        """Bookable rides serving the rider, each with its remaining capacity."""
        async with self.session_factory() as session:
            candidates = await RideRepository(session).get_open_rides(
                exclude_driver_id=exclude_driver_id,
                max_price=max_price,
                scheduled_after=self.clock() if self.reject_past_bookings else None,
            )

        matches: list[tuple[RideModel, int]] = []
        for ride in candidates:
            remaining = remaining_capacity(ride.selected_capacity, ride.bookings)
            if remaining <= 0:
                continue
            if not route_matches(
                ride,
                rider_pickup,
                rider_destination,
                tolerance=self.route_tolerance_deg,
                proximity_km=self.proximity_km,
            ):
                continue
            matches.append((ride, remaining))

        logger.debug(
            "Discovery: %d of %d candidate rides match", len(matches), len(candidates)
        )
        return matches

    async def get_ride(self, ride_id: int) -> RideModel:
        async with self.session_factory() as session:
            ride = await RideRepository(session).get_by_id(ride_id)
        if ride is None:
            raise NotFoundError(EntityKind.RIDE, ride_id)
        return ride

    async def list_driver_rides(self, driver_id: int) -> list[RideModel]:
        async with self.session_factory() as session:
            if await UserRepository(session).get_by_id(driver_id) is None:
                raise NotFoundError(EntityKind.USER, driver_id)
            return await RideRepository(session).get_by_driver(driver_id)

    async def list_passenger_bookings(self, passenger_id: int) -> list[BookingModel]:
        async with self.session_factory() as session:
            if await UserRepository(session).get_by_id(passenger_id) is None:
                raise NotFoundError(EntityKind.USER, passenger_id)
            return await BookingRepository(session).get_by_passenger(passenger_id)
