"""
Booking service with concurrency-safe seat reservation.

CONCURRENCY STRATEGY: Optimistic Pre-check + Locked Re-check
=============================================================

Problem:
  Two passengers try to book the last seat simultaneously.
  Both see remaining=1, both insert a booking.
  Result: the ride is oversold.

Solution:
  1. Pre-check every precondition in a short read-only session.  This
     gives fast feedback without holding a transaction open.
  2. Open a transaction, ``SELECT ... FOR UPDATE`` the ride row, re-read
     its bookings, recompute remaining capacity, re-run every check and
     insert the booking.  Concurrent bookings for the same ride queue on
     the row lock, so this re-check is the sole arbiter of correctness.

  Remaining capacity is derived from the booking rows each time; the ride
  never stores a counter that could drift.  The partial unique index on
  active (ride, passenger) pairs is the final safety net.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carpool.domain.capacity import ensure_capacity
from carpool.domain.enums import BookingStatus, PaymentStatus, RideStatus
from carpool.domain.errors import (
    ConflictError,
    ConflictReason,
    EntityKind,
    ForbiddenError,
    ForbiddenReason,
    InvalidError,
    InvalidReason,
    NotFoundError,
)
from carpool.domain.lifecycle import ensure_not_terminal, find_active_booking, mark_booked
from carpool.domain.pricing import booking_amount
from carpool.infrastructure.cache import keys_for_ride_change
from carpool.infrastructure.models import BookingModel, RideModel
from carpool.infrastructure.repositories import (
    BookingRepository,
    RideRepository,
    UserRepository,
)

from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class BookingReceipt:
    booking: BookingModel
    remaining_capacity: int


class BookingService(BaseService):
    async def book(
        self,
        ride_id: int,
        passenger_id: int,
        seats: int = 1,
        special_requests: Optional[str] = None,
        source: Optional[str] = None,
        destination: Optional[str] = None,
    ) -> BookingReceipt:
        """Reserve *seats* on a ride for a passenger, or raise a typed error."""
        try:
            async with self.session_factory() as session:
                ride = await RideRepository(session).get_by_id(ride_id)
                await self._check(session, ride, ride_id, passenger_id, seats)

            passenger_ids = [passenger_id]

            async def insert(session: AsyncSession, locked: RideModel) -> BookingReceipt:
                remaining = await self._check(session, locked, ride_id, passenger_id, seats)
                passenger_ids.extend(b.passenger_id for b in locked.bookings)
                booking = BookingModel(
                    ride_id=locked.id,
                    passenger_id=passenger_id,
                    driver_id=locked.driver_id,
                    passenger_count=seats,
                    source=source or locked.pickup.place_name,
                    destination=destination or locked.destination.place_name,
                    status=BookingStatus.CONFIRMED,
                    payment_status=PaymentStatus.PENDING,
                    payment_amount=booking_amount(locked),
                    special_requests=special_requests,
                )
                await BookingRepository(session).create(booking)
                if mark_booked(locked):
                    logger.info("Ride %d received its first booking", locked.id)
                return BookingReceipt(booking, remaining - seats)

            try:
                _, receipt = await self._with_ride_locked(ride_id, insert)
            except IntegrityError as exc:
                raise ConflictError(
                    ConflictReason.ALREADY_BOOKED,
                    "You already have an active booking on this ride",
                ) from exc
        except ConflictError as exc:
            logger.warning("Booking rejected on ride %d: %s", ride_id, exc.message)
            raise

        booking = receipt.booking
        await self.cache.invalidate(
            *keys_for_ride_change(ride_id, booking.driver_id, passenger_ids)
        )
        logger.info(
            "Booking %d created: ride=%d passenger=%d seats=%d amount=%.2f",
            booking.id, ride_id, passenger_id, seats, booking.payment_amount,
        )
        return receipt

    async def _check(
        self,
        session: AsyncSession,
        ride: Optional[RideModel],
        ride_id: int,
        passenger_id: int,
        seats: int,
    ) -> int:
        """Run every booking precondition in order; return the remaining capacity."""
        if ride is None:
            raise NotFoundError(EntityKind.RIDE, ride_id)
        if await UserRepository(session).get_by_id(passenger_id) is None:
            raise NotFoundError(EntityKind.PASSENGER, passenger_id)

        ensure_not_terminal(ride)
        if RideStatus(ride.status) != RideStatus.UPCOMING:
            raise InvalidError(
                InvalidReason.RIDE_STARTED, f"Ride {ride.id} has already started"
            )
        if ride.driver_id == passenger_id:
            raise ForbiddenError(
                ForbiddenReason.ROLE_MISMATCH, "Drivers cannot book their own ride"
            )

        if find_active_booking(ride, passenger_id) is not None:
            raise ConflictError(
                ConflictReason.ALREADY_BOOKED,
                "You already have an active booking on this ride",
            )
        remaining = ensure_capacity(ride.selected_capacity, ride.bookings, seats)

        if self.reject_past_bookings and self.is_past(ride.scheduled_at):
            raise InvalidError(
                InvalidReason.PAST_RIDE, f"Ride {ride.id} departed in the past"
            )
        return remaining
