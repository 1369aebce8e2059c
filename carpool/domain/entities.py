"""
Plain domain entities.

The matcher, the capacity ledger and the lifecycle transitions only read
attributes, so they work on these dataclasses and on the ORM models alike.
The services build ``Location`` / ``Waypoint`` values from requests and
hand them to the repositories.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import BookingStatus, PaymentStatus, RideStatus, RideType


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    place_name: str = ""
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None

    def is_empty(self) -> bool:
        return self.latitude is None and self.longitude is None and not self.place_name


@dataclass(frozen=True)
class Waypoint:
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    place_name: str = ""
    stop_order: int = 0
    estimated_arrival: Optional[datetime] = None


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Booking:
    id: Optional[int] = None
    ride_id: Optional[int] = None
    passenger_id: int = 0
    driver_id: int = 0
    passenger_count: Optional[int] = 1
    status: BookingStatus = BookingStatus.CONFIRMED
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_amount: float = 0.0


@dataclass
class Ride:
    id: Optional[int] = None
    driver_id: int = 0
    pickup: Location = field(default_factory=Location)
    destination: Location = field(default_factory=Location)
    waypoints: list[Waypoint] = field(default_factory=list)
    selected_capacity: int = 1
    price: float = 0.0
    price_per_km: Optional[float] = None
    estimated_distance_km: Optional[float] = None
    scheduled_at: Optional[datetime] = None
    status: RideStatus = RideStatus.UPCOMING
    ride_type: RideType = RideType.PUBLISHED
    bookings: list[Booking] = field(default_factory=list)
