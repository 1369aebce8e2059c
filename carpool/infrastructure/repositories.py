"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Rides eagerly load their locations,
waypoints and bookings, so a fetched ride is a consistent snapshot for the
capacity ledger.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import (
    BookingModel,
    LocationModel,
    RideModel,
    UserModel,
    VehicleModel,
    WaypointModel,
)
from carpool.domain.entities import Location, Waypoint
from carpool.domain.enums import RideStatus


class RideRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_with_locations(
        self,
        *,
        driver_id: int,
        vehicle_id: Optional[int],
        pickup: Location,
        destination: Location,
        waypoints: Sequence[Waypoint] = (),
        **ride_fields,
    ) -> RideModel:
        """Create a ride with its pickup / destination rows and waypoints in one flush."""
        ride = RideModel(
            driver_id=driver_id,
            vehicle_id=vehicle_id,
            pickup=_location_row(pickup),
            destination=_location_row(destination),
            waypoints=[
                WaypointModel(
                    latitude=w.latitude,
                    longitude=w.longitude,
                    place_name=w.place_name,
                    stop_order=w.stop_order,
                    estimated_arrival=w.estimated_arrival,
                )
                for w in waypoints
            ],
            bookings=[],
            status=RideStatus.UPCOMING,
            **ride_fields,
        )
        self.session.add(ride)
        await self.session.flush()
        return ride

    async def get_by_id(self, ride_id: int) -> Optional[RideModel]:
        return await self.session.get(RideModel, ride_id)

    async def get_for_update(self, ride_id: int) -> Optional[RideModel]:
        """SELECT ... FOR UPDATE on the ride row, then load its bookings fresh."""
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.id == ride_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_open_rides(
        self,
        *,
        exclude_driver_id: Optional[int] = None,
        max_price: Optional[float] = None,
        scheduled_after: Optional[datetime] = None,
    ) -> list[RideModel]:
        query = select(RideModel).where(RideModel.status == RideStatus.UPCOMING)
        if exclude_driver_id is not None:
            query = query.where(RideModel.driver_id != exclude_driver_id)
        if max_price is not None:
            query = query.where(RideModel.price <= max_price)
        if scheduled_after is not None:
            query = query.where(RideModel.scheduled_at >= scheduled_after)
        result = await self.session.execute(
            query.order_by(RideModel.scheduled_at, RideModel.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_by_driver(self, driver_id: int) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.driver_id == driver_id)
            .order_by(RideModel.scheduled_at.desc())
        )
        return list(result.scalars().all())


class BookingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, booking: BookingModel) -> BookingModel:
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def get_by_passenger(self, passenger_id: int) -> list[BookingModel]:
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.passenger_id == passenger_id)
            .options(selectinload(BookingModel.ride).selectinload(RideModel.bookings))
            .order_by(BookingModel.booked_at.desc(), BookingModel.id.desc())
        )
        return list(result.scalars().all())


class VehicleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, vehicle_id: int) -> Optional[VehicleModel]:
        return await self.session.get(VehicleModel, vehicle_id)


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)


def _location_row(location: Location) -> LocationModel:
    return LocationModel(
        latitude=location.latitude,
        longitude=location.longitude,
        place_name=location.place_name,
        address=location.address,
        city=location.city,
        state=location.state,
        country=location.country,
        zip_code=location.zip_code,
    )
