"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``users``      -- drivers and passengers (read-only for the engine)
* ``vehicles``   -- a driver's vehicles with their seat capacity
* ``locations``  -- pickup / destination points owned by one ride
* ``rides``      -- trips published by drivers
* ``waypoints``  -- ordered intermediate stops of a ride
* ``bookings``   -- a passenger's seats on a ride

Remaining capacity is never stored: it is derived from ``bookings``.

Indexes
-------
* **Partial unique** on ``bookings (ride_id, passenger_id)`` where the
  booking is not cancelled: at most one active booking per passenger/ride.
* **B-Tree** on ``status``, ``driver_id``, ``scheduled_at``, ``passenger_id``
  for the discovery and per-user listings.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship

from .database import Base
from carpool.domain.enums import BookingStatus, PaymentStatus, RideStatus, RideType


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(128), unique=True, nullable=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    vehicle_number = Column(String(32), nullable=False)
    vehicle_name = Column(String(120), nullable=False)
    vehicle_type = Column(String(32), nullable=False, default="CAR")
    capacity = Column(Integer, nullable=False, default=4)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("idx_vehicles_owner", "owner_id"),)


class LocationModel(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    place_name = Column(String(255), nullable=False, default="")
    address = Column(String(255), nullable=True)
    city = Column(String(120), nullable=True)
    state = Column(String(120), nullable=True)
    country = Column(String(120), nullable=True)
    zip_code = Column(String(20), nullable=True)


class RideModel(Base):
    __tablename__ = "rides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)
    pickup_id = Column(Integer, ForeignKey("locations.id"), nullable=False)
    destination_id = Column(Integer, ForeignKey("locations.id"), nullable=False)

    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    selected_capacity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    price_per_km = Column(Float, nullable=True)
    estimated_distance_km = Column(Float, nullable=True)
    estimated_duration_min = Column(Integer, nullable=True)

    status = Column(Enum(RideStatus), default=RideStatus.UPCOMING, nullable=False)
    ride_type = Column(Enum(RideType), default=RideType.PUBLISHED, nullable=False)

    immediate_mode = Column(Boolean, nullable=False, default=False)
    scheduled_mode = Column(Boolean, nullable=False, default=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_days = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    pickup = relationship("LocationModel", foreign_keys=[pickup_id], lazy="selectin")
    destination = relationship(
        "LocationModel", foreign_keys=[destination_id], lazy="selectin"
    )
    waypoints = relationship(
        "WaypointModel",
        order_by="WaypointModel.stop_order",
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    bookings = relationship(
        "BookingModel",
        back_populates="ride",
        order_by="BookingModel.id",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_rides_status", "status"),
        Index("idx_rides_driver", "driver_id"),
        Index("idx_rides_scheduled", "scheduled_at"),
    )


class WaypointModel(Base):
    __tablename__ = "waypoints"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ride_id = Column(Integer, ForeignKey("rides.id"), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    place_name = Column(String(255), nullable=False, default="")
    stop_order = Column(Integer, nullable=False)
    estimated_arrival = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("idx_waypoints_ride", "ride_id", "stop_order"),)


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ride_id = Column(Integer, ForeignKey("rides.id"), nullable=False)
    passenger_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    passenger_count = Column(Integer, nullable=False, default=1)
    source = Column(String(255), nullable=False, default="")
    destination = Column(String(255), nullable=False, default="")
    status = Column(
        Enum(BookingStatus), default=BookingStatus.CONFIRMED, nullable=False
    )
    payment_status = Column(
        Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False
    )
    payment_amount = Column(Float, nullable=False, default=0.0)
    special_requests = Column(Text, nullable=True)

    booked_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    ride = relationship("RideModel", back_populates="bookings", lazy="raise")

    __table_args__ = (
        Index(
            "uq_bookings_active_passenger",
            "ride_id",
            "passenger_id",
            unique=True,
            postgresql_where=text("status != 'CANCELLED'"),
            sqlite_where=text("status != 'CANCELLED'"),
        ),
        Index("idx_bookings_passenger", "passenger_id"),
        Index("idx_bookings_ride", "ride_id"),
    )
