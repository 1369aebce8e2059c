"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from carpool.domain.capacity import booked_seats, remaining_capacity
from carpool.domain.entities import Location, Waypoint
from carpool.domain.enums import (
    BookingStatus,
    ParticipantRole,
    PaymentStatus,
    RideStatus,
    RideType,
)


# ── Requests ──────────────────────────────────────────────────────────


class LocationIn(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    place_name: str = Field("", max_length=255)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None

    def to_domain(self) -> Location:
        return Location(**self.model_dump())


class WaypointIn(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    place_name: str = Field("", max_length=255)
    estimated_arrival: Optional[datetime] = None

    def to_domain(self) -> Waypoint:
        return Waypoint(**self.model_dump())


class RidePublishRequest(BaseModel):
    driver_id: int
    vehicle_id: int
    pickup: LocationIn
    destination: LocationIn
    waypoints: list[WaypointIn] = []
    scheduled_at: datetime
    capacity: int = Field(..., ge=1, le=12)
    price: float = Field(..., ge=0)
    price_per_km: Optional[float] = Field(None, ge=0)
    estimated_distance_km: Optional[float] = Field(None, ge=0)
    estimated_duration_min: Optional[int] = Field(None, ge=0)
    immediate_mode: bool = False
    scheduled_mode: bool = True
    is_recurring: bool = False
    recurring_days: Optional[str] = Field(None, max_length=64)
    notes: Optional[str] = None


class BookingRequest(BaseModel):
    passenger_id: int
    seats: int = Field(1, ge=1, le=12)
    special_requests: Optional[str] = Field(None, max_length=500)
    source: Optional[str] = Field(None, max_length=255)
    destination: Optional[str] = Field(None, max_length=255)


class LifecycleRequest(BaseModel):
    caller_id: int


class CancelRequest(BaseModel):
    caller_id: int
    role: Optional[ParticipantRole] = Field(
        None,
        description="Asserted role; rejected when it disagrees with the caller's relationship to the ride.",
    )


# ── Responses ─────────────────────────────────────────────────────────


class LocationResponse(BaseModel):
    id: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    place_name: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None

    model_config = {"from_attributes": True}


class WaypointResponse(BaseModel):
    id: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    place_name: str
    stop_order: int
    estimated_arrival: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: int
    ride_id: int
    passenger_id: int
    driver_id: int
    passenger_count: int
    source: str
    destination: str
    status: BookingStatus
    payment_status: PaymentStatus
    payment_amount: float
    special_requests: Optional[str] = None
    booked_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "use_enum_values": True}


class RideResponse(BaseModel):
    id: int
    driver_id: int
    vehicle_id: Optional[int] = None
    pickup: LocationResponse
    destination: LocationResponse
    waypoints: list[WaypointResponse] = []
    scheduled_at: datetime
    selected_capacity: int
    booked_seats: int
    remaining_capacity: int
    price: float
    price_per_km: Optional[float] = None
    estimated_distance_km: Optional[float] = None
    estimated_duration_min: Optional[int] = None
    status: RideStatus
    ride_type: RideType
    immediate_mode: bool
    scheduled_mode: bool
    is_recurring: bool
    recurring_days: Optional[str] = None
    notes: Optional[str] = None
    bookings: Optional[list[BookingResponse]] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "use_enum_values": True}

    @classmethod
    def from_ride(cls, ride, include_bookings: bool = False) -> "RideResponse":
        return cls.model_validate(
            {
                **{name: getattr(ride, name) for name in _RIDE_COLUMNS},
                "pickup": ride.pickup,
                "destination": ride.destination,
                "waypoints": list(ride.waypoints),
                "booked_seats": booked_seats(ride.bookings),
                "remaining_capacity": remaining_capacity(
                    ride.selected_capacity, ride.bookings
                ),
                "bookings": list(ride.bookings) if include_bookings else None,
            },
            from_attributes=True,
        )


class PassengerBookingResponse(BookingResponse):
    ride: RideResponse

    @classmethod
    def from_booking(cls, booking) -> "PassengerBookingResponse":
        data = BookingResponse.model_validate(booking).model_dump()
        return cls(**data, ride=RideResponse.from_ride(booking.ride))


class BookingConfirmation(BaseModel):
    booking: BookingResponse
    remaining_capacity: int
    message: str = "Ride booked successfully"


class CancelResponse(BaseModel):
    ride: RideResponse
    cancelled_by: ParticipantRole
    cancelled_booking_ids: list[int]
    ride_reverted: bool


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    kind: str
    reason: str
    remaining: Optional[int] = None


_RIDE_COLUMNS = (
    "id",
    "driver_id",
    "vehicle_id",
    "scheduled_at",
    "selected_capacity",
    "price",
    "price_per_km",
    "estimated_distance_km",
    "estimated_duration_min",
    "status",
    "ride_type",
    "immediate_mode",
    "scheduled_mode",
    "is_recurring",
    "recurring_days",
    "notes",
    "created_at",
)
