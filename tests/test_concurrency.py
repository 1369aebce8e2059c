"""
Concurrency safety tests.

Demonstrates:
1. Concurrent bookings never oversell a ride.
2. A passenger racing themselves ends up with one active booking.
3. Concurrent terminal transitions produce exactly one winner.
4. Store failures are retried, then surfaced as a retryable error.
"""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from carpool.domain.capacity import booked_seats
from carpool.domain.errors import (
    ConflictError,
    ConflictReason,
    InternalError,
    InvalidError,
    InvalidReason,
)
from carpool.infrastructure.repositories import RideRepository
from tests.conftest import DRIVER_ID, PASSENGER_IDS


class TestConcurrentBooking:
    @pytest.mark.asyncio
    async def test_no_overselling(self, publish, booking_service, ride_service):
        ride = await publish(capacity=3)
        results = await asyncio.gather(
            *(booking_service.book(ride.id, pid) for pid in PASSENGER_IDS[:8]),
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, Exception)]
        assert len(succeeded) == 3
        assert len(failed) == 5
        assert all(isinstance(e, ConflictError) for e in failed)
        assert {e.reason for e in failed} == {ConflictReason.INSUFFICIENT_CAPACITY}

        stored = await ride_service.get_ride(ride.id)
        assert booked_seats(stored.bookings) == 3
        assert sorted(r.remaining_capacity for r in succeeded) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_multi_seat_requests_never_exceed_capacity(self, publish, booking_service, ride_service):
        ride = await publish(capacity=3)
        await asyncio.gather(
            *(booking_service.book(ride.id, pid, seats=2) for pid in PASSENGER_IDS[:4]),
            return_exceptions=True,
        )
        stored = await ride_service.get_ride(ride.id)
        assert booked_seats(stored.bookings) == 2

    @pytest.mark.asyncio
    async def test_same_passenger_twice(self, publish, booking_service, ride_service):
        ride = await publish(capacity=3)
        passenger = PASSENGER_IDS[0]
        results = await asyncio.gather(
            booking_service.book(ride.id, passenger),
            booking_service.book(ride.id, passenger),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert errors[0].reason == ConflictReason.ALREADY_BOOKED

        stored = await ride_service.get_ride(ride.id)
        assert len(stored.bookings) == 1


class TestConcurrentTransitions:
    @pytest.mark.asyncio
    async def test_cancel_and_complete_race(self, publish, booking_service, lifecycle_service, ride_service):
        ride = await publish()
        await booking_service.book(ride.id, PASSENGER_IDS[0])

        results = await asyncio.gather(
            lifecycle_service.cancel_ride(ride.id, DRIVER_ID),
            lifecycle_service.complete_ride(ride.id, DRIVER_ID),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], InvalidError)
        assert errors[0].reason == InvalidReason.TERMINAL_RIDE


class TestStoreFailures:
    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self, publish, booking_service, monkeypatch):
        ride = await publish()
        original = RideRepository.get_for_update
        calls = {"n": 0}

        async def flaky(self, ride_id):
            calls["n"] += 1
            if calls["n"] == 1:
                raise OperationalError("SELECT", {}, Exception("database is locked"))
            return await original(self, ride_id)

        monkeypatch.setattr(RideRepository, "get_for_update", flaky)
        receipt = await booking_service.book(ride.id, PASSENGER_IDS[0])
        assert receipt.booking.id is not None
        assert calls["n"] == 2

    @pytest.mark.asyncio
    async def test_persistent_failure_surfaces_internal_error(self, publish, booking_service, monkeypatch):
        ride = await publish()

        async def broken(self, ride_id):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(RideRepository, "get_for_update", broken)
        with pytest.raises(InternalError) as exc_info:
            await booking_service.book(ride.id, PASSENGER_IDS[0])
        assert exc_info.value.status_code == 503
