"""Unit tests for the ride lifecycle state machine."""

import pytest

from carpool.domain import lifecycle
from carpool.domain.entities import Booking, Ride
from carpool.domain.enums import (
    RIDE_TRANSITIONS,
    BookingStatus,
    ParticipantRole,
    PaymentStatus,
    RideStatus,
    RideType,
)
from carpool.domain.errors import (
    ForbiddenError,
    ForbiddenReason,
    InvalidError,
    InvalidReason,
)

DRIVER = 1


def _ride(*passengers, status=RideStatus.UPCOMING):
    bookings = [Booking(id=i, passenger_id=p, driver_id=DRIVER) for i, p in enumerate(passengers, 1)]
    return Ride(
        id=10,
        driver_id=DRIVER,
        status=status,
        ride_type=RideType.BOOKED if bookings else RideType.PUBLISHED,
        bookings=bookings,
    )


class TestTransitionTable:
    def test_terminal_states_have_no_exits(self):
        assert RIDE_TRANSITIONS[RideStatus.COMPLETED] == set()
        assert RIDE_TRANSITIONS[RideStatus.CANCELLED] == set()

    def test_upcoming_can_start(self):
        assert RideStatus.IN_PROGRESS in RIDE_TRANSITIONS[RideStatus.UPCOMING]

    def test_illegal_transition_raises(self):
        ride = _ride(status=RideStatus.CANCELLED)
        with pytest.raises(InvalidError) as exc_info:
            lifecycle.transition(ride, RideStatus.UPCOMING)
        assert exc_info.value.reason == InvalidReason.TERMINAL_RIDE


class TestStart:
    def test_driver_starts_and_bookings_go_ongoing(self):
        ride = _ride(5, 6)
        started = lifecycle.start(ride, DRIVER)
        assert ride.status == RideStatus.IN_PROGRESS
        assert [b.status for b in started] == [BookingStatus.ONGOING] * 2

    def test_passenger_cannot_start(self):
        ride = _ride(5)
        with pytest.raises(ForbiddenError) as exc_info:
            lifecycle.start(ride, 5)
        assert exc_info.value.reason == ForbiddenReason.NOT_DRIVER
        assert ride.status == RideStatus.UPCOMING

    def test_cannot_start_twice(self):
        ride = _ride(5)
        lifecycle.start(ride, DRIVER)
        with pytest.raises(InvalidError) as exc_info:
            lifecycle.start(ride, DRIVER)
        assert exc_info.value.reason == InvalidReason.RIDE_STARTED


class TestComplete:
    def test_complete_settles_active_bookings(self):
        ride = _ride(5, 6)
        ride.bookings[1].status = BookingStatus.CANCELLED
        completed = lifecycle.complete(ride, DRIVER)
        assert ride.status == RideStatus.COMPLETED
        assert [b.passenger_id for b in completed] == [5]
        assert ride.bookings[0].payment_status == PaymentStatus.COMPLETED
        assert ride.bookings[1].status == BookingStatus.CANCELLED

    def test_complete_is_terminal(self):
        ride = _ride(5)
        lifecycle.complete(ride, DRIVER)
        with pytest.raises(InvalidError) as exc_info:
            lifecycle.complete(ride, DRIVER)
        assert exc_info.value.reason == InvalidReason.TERMINAL_RIDE

    def test_terminal_check_precedes_caller_check(self):
        ride = _ride(5, status=RideStatus.COMPLETED)
        with pytest.raises(InvalidError):
            lifecycle.cancel(ride, 999)


class TestCancel:
    def test_driver_cancel_refunds_everyone(self):
        ride = _ride(5, 6)
        outcome = lifecycle.cancel(ride, DRIVER)
        assert outcome.role == ParticipantRole.DRIVER
        assert ride.status == RideStatus.CANCELLED
        assert all(b.status == BookingStatus.CANCELLED for b in ride.bookings)
        assert all(b.payment_status == PaymentStatus.REFUNDED for b in ride.bookings)

    def test_passenger_cancel_keeps_ride(self):
        ride = _ride(5, 6)
        outcome = lifecycle.cancel(ride, 5)
        assert outcome.role == ParticipantRole.PASSENGER
        assert [b.passenger_id for b in outcome.cancelled_bookings] == [5]
        assert not outcome.ride_reverted
        assert ride.status == RideStatus.UPCOMING
        assert ride.ride_type == RideType.BOOKED
        assert ride.bookings[1].status == BookingStatus.CONFIRMED

    def test_last_passenger_cancel_reverts_ride(self):
        ride = _ride(5)
        outcome = lifecycle.cancel(ride, 5)
        assert outcome.ride_reverted
        assert ride.ride_type == RideType.PUBLISHED
        assert ride.status == RideStatus.UPCOMING

    def test_last_passenger_cancel_on_started_ride_reverts_to_upcoming(self):
        ride = _ride(5)
        lifecycle.start(ride, DRIVER)
        outcome = lifecycle.cancel(ride, 5, ParticipantRole.PASSENGER)
        assert outcome.ride_reverted
        assert ride.status == RideStatus.UPCOMING

    def test_stranger_is_not_a_participant(self):
        ride = _ride(5)
        with pytest.raises(ForbiddenError) as exc_info:
            lifecycle.cancel(ride, 42)
        assert exc_info.value.reason == ForbiddenReason.NOT_A_PARTICIPANT

    def test_role_hint_must_agree(self):
        ride = _ride(5)
        with pytest.raises(ForbiddenError) as exc_info:
            lifecycle.cancel(ride, 5, ParticipantRole.DRIVER)
        assert exc_info.value.reason == ForbiddenReason.ROLE_MISMATCH
        assert ride.bookings[0].status == BookingStatus.CONFIRMED

    def test_cancelled_passenger_is_no_longer_a_participant(self):
        ride = _ride(5, 6)
        lifecycle.cancel(ride, 5)
        with pytest.raises(ForbiddenError):
            lifecycle.cancel(ride, 5)
