"""
Ride lifecycle state machine.

Patterns used
-------------
- **State Pattern** on ride status: ``RIDE_TRANSITIONS`` enforces the legal
  moves (UPCOMING -> IN_PROGRESS -> COMPLETED | CANCELLED).  COMPLETED and
  CANCELLED are terminal.
- **Tagged relationship** for cancellation: the caller is resolved to either
  ``DriverRelation`` or ``PassengerRelation``; an asserted role is only a
  consistency check, never the source of authorisation.

The functions mutate the ride / booking objects they are given (ORM models
or domain dataclasses) and return what changed; persistence is the
caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from .capacity import active_bookings
from .enums import (
    RIDE_TRANSITIONS,
    TERMINAL_RIDE_STATUSES,
    BookingStatus,
    ParticipantRole,
    PaymentStatus,
    RideStatus,
    RideType,
)
from .errors import ForbiddenError, ForbiddenReason, InvalidError, InvalidReason


@dataclass(frozen=True)
class DriverRelation:
    role = ParticipantRole.DRIVER


@dataclass(frozen=True)
class PassengerRelation:
    booking: object
    role = ParticipantRole.PASSENGER


CallerRelation = Union[DriverRelation, PassengerRelation]


@dataclass
class CancelOutcome:
    role: ParticipantRole
    cancelled_bookings: list = field(default_factory=list)
    ride_reverted: bool = False


# ── Guards ────────────────────────────────────────────────────────────


def is_terminal(ride) -> bool:
    return RideStatus(ride.status) in TERMINAL_RIDE_STATUSES


def ensure_not_terminal(ride) -> None:
    if is_terminal(ride):
        raise InvalidError(
            InvalidReason.TERMINAL_RIDE,
            f"Ride {ride.id} is already {RideStatus(ride.status).value}",
        )


def ensure_driver(ride, caller_id: int) -> None:
    if ride.driver_id != caller_id:
        raise ForbiddenError(
            ForbiddenReason.NOT_DRIVER,
            "Only the ride's driver can do this",
        )


def transition(ride, new_status: RideStatus) -> None:
    """Move *ride* to *new_status* if the transition is legal, else raise."""
    current = RideStatus(ride.status)
    if new_status not in RIDE_TRANSITIONS.get(current, set()):
        if current in TERMINAL_RIDE_STATUSES:
            ensure_not_terminal(ride)
        raise InvalidError(
            InvalidReason.RIDE_STARTED,
            f"Cannot transition ride from {current.value} to {new_status.value}",
        )
    ride.status = new_status


def find_active_booking(ride, passenger_id: int):
    for booking in active_bookings(ride.bookings):
        if booking.passenger_id == passenger_id:
            return booking
    return None


def resolve_caller(
    ride, caller_id: int, role_hint: Optional[ParticipantRole] = None
) -> CallerRelation:
    """Work out how *caller_id* relates to *ride*; check *role_hint* agrees."""
    relation: Optional[CallerRelation] = None
    if ride.driver_id == caller_id:
        relation = DriverRelation()
    else:
        booking = find_active_booking(ride, caller_id)
        if booking is not None:
            relation = PassengerRelation(booking)

    if relation is None:
        raise ForbiddenError(
            ForbiddenReason.NOT_A_PARTICIPANT,
            "Caller is neither the driver nor a passenger of this ride",
        )
    if role_hint is not None and ParticipantRole(role_hint) != relation.role:
        raise ForbiddenError(
            ForbiddenReason.ROLE_MISMATCH,
            f"Caller claimed role {ParticipantRole(role_hint).value} "
            f"but is the {relation.role.value} of this ride",
        )
    return relation


# ── Transitions ───────────────────────────────────────────────────────


def mark_booked(ride) -> bool:
    """Flag the ride as booked on its first active booking. Returns True if it flipped."""
    if RideType(ride.ride_type) == RideType.PUBLISHED:
        ride.ride_type = RideType.BOOKED
        return True
    return False


def start(ride, caller_id: int) -> list:
    ensure_not_terminal(ride)
    ensure_driver(ride, caller_id)
    transition(ride, RideStatus.IN_PROGRESS)
    started = active_bookings(ride.bookings)
    for booking in started:
        booking.status = BookingStatus.ONGOING
    return started


def complete(ride, caller_id: int) -> list:
    ensure_not_terminal(ride)
    ensure_driver(ride, caller_id)
    completed = active_bookings(ride.bookings)
    for booking in completed:
        booking.status = BookingStatus.COMPLETED
        booking.payment_status = PaymentStatus.COMPLETED
    transition(ride, RideStatus.COMPLETED)
    return completed


def cancel(
    ride, caller_id: int, role_hint: Optional[ParticipantRole] = None
) -> CancelOutcome:
    ensure_not_terminal(ride)
    relation = resolve_caller(ride, caller_id, role_hint)

    if isinstance(relation, DriverRelation):
        cancelled = active_bookings(ride.bookings)
        for booking in cancelled:
            _refund(booking)
        transition(ride, RideStatus.CANCELLED)
        return CancelOutcome(role=relation.role, cancelled_bookings=cancelled)

    _refund(relation.booking)
    reverted = False
    if not active_bookings(ride.bookings):
        # A passenger's withdrawal frees capacity; it never cancels the ride.
        ride.ride_type = RideType.PUBLISHED
        if RideStatus(ride.status) != RideStatus.UPCOMING:
            transition(ride, RideStatus.UPCOMING)
        reverted = True
    return CancelOutcome(
        role=relation.role,
        cancelled_bookings=[relation.booking],
        ride_reverted=reverted,
    )


def _refund(booking) -> None:
    booking.status = BookingStatus.CANCELLED
    booking.payment_status = PaymentStatus.REFUNDED
