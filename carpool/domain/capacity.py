"""
Seat capacity ledger.

Remaining capacity is always derived from the booking set; a ride never
stores a running counter.  ``passenger_count`` defaults to 1 when unset.
"""

from __future__ import annotations

from typing import Iterable

from .enums import BookingStatus
from .errors import ConflictError, InvalidError, InvalidReason


def is_active(booking) -> bool:
    return BookingStatus(booking.status) != BookingStatus.CANCELLED


def active_bookings(bookings: Iterable) -> list:
    return [b for b in bookings if is_active(b)]


def seats_held(booking) -> int:
    return booking.passenger_count or 1


def booked_seats(bookings: Iterable) -> int:
    return sum(seats_held(b) for b in active_bookings(bookings))


def remaining_capacity(capacity: int, bookings: Iterable) -> int:
    return capacity - booked_seats(bookings)


def ensure_capacity(capacity: int, bookings: Iterable, seats: int) -> int:
    """Raise ``ConflictError`` when *seats* do not fit; return what remains before booking.

    A request for fewer than one seat is rejected with ``InvalidError``.
    """
    if seats < 1:
        raise InvalidError(
            InvalidReason.INVALID_SEATS, f"Seat count must be at least 1, got {seats}"
        )
    remaining = remaining_capacity(capacity, bookings)
    if seats > remaining:
        raise ConflictError.insufficient_capacity(seats, max(remaining, 0))
    return remaining
