"""Domain enumerations and state-transition rules."""

import enum


class RideStatus(str, enum.Enum):
    UPCOMING = "UPCOMING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class RideType(str, enum.Enum):
    PUBLISHED = "PUBLISHED"
    BOOKED = "BOOKED"


class BookingStatus(str, enum.Enum):
    ONGOING = "ONGOING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    REFUNDED = "REFUNDED"


class ParticipantRole(str, enum.Enum):
    DRIVER = "driver"
    PASSENGER = "passenger"


# State machine: maps current status -> set of valid next statuses.
# IN_PROGRESS -> UPCOMING only happens when the last passenger withdraws.
RIDE_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.UPCOMING: {
        RideStatus.IN_PROGRESS,
        RideStatus.COMPLETED,
        RideStatus.CANCELLED,
    },
    RideStatus.IN_PROGRESS: {
        RideStatus.UPCOMING,
        RideStatus.COMPLETED,
        RideStatus.CANCELLED,
    },
    RideStatus.COMPLETED: set(),
    RideStatus.CANCELLED: set(),
}

TERMINAL_RIDE_STATUSES = frozenset({RideStatus.COMPLETED, RideStatus.CANCELLED})
