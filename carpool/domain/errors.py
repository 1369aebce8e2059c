"""
Typed, caller-actionable errors raised by the ride engine.

Every error carries a ``kind`` (the family), a ``reason`` (the specific
failure) and the HTTP status the API layer renders it with.  Services raise
these; nothing below the API layer converts them to responses.
"""

from __future__ import annotations

import enum
from typing import Optional


class EntityKind(str, enum.Enum):
    RIDE = "Ride"
    PASSENGER = "Passenger"
    DRIVER = "Driver"
    USER = "User"
    VEHICLE = "Vehicle"


class ConflictReason(str, enum.Enum):
    ALREADY_BOOKED = "AlreadyBooked"
    INSUFFICIENT_CAPACITY = "InsufficientCapacity"


class InvalidReason(str, enum.Enum):
    PAST_RIDE = "PastRide"
    TERMINAL_RIDE = "TerminalRide"
    CAPACITY_EXCEEDS_VEHICLE = "CapacityExceedsVehicle"
    RIDE_STARTED = "RideStarted"
    INVALID_SEATS = "InvalidSeatCount"


class ForbiddenReason(str, enum.Enum):
    ROLE_MISMATCH = "RoleMismatch"
    NOT_A_PARTICIPANT = "NotAParticipant"
    NOT_DRIVER = "NotDriver"


class InternalReason(str, enum.Enum):
    STORE_FAILURE = "StoreFailure"


class CarpoolError(Exception):
    """Base class for every error the engine reports to its callers."""

    kind: str = "Error"
    status_code: int = 500

    def __init__(self, reason: enum.Enum, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "kind": self.kind,
            "reason": self.reason.value,
        }


class NotFoundError(CarpoolError):
    kind = "NotFound"
    status_code = 404

    def __init__(self, entity: EntityKind, entity_id: object = None):
        message = f"{entity.value} not found"
        if entity_id is not None:
            message = f"{entity.value} {entity_id} not found"
        super().__init__(entity, message)
        self.entity = entity


class ConflictError(CarpoolError):
    kind = "Conflict"
    status_code = 409

    def __init__(
        self,
        reason: ConflictReason,
        message: str,
        remaining: Optional[int] = None,
    ):
        super().__init__(reason, message)
        self.remaining = remaining

    @classmethod
    def insufficient_capacity(cls, requested: int, remaining: int) -> "ConflictError":
        return cls(
            ConflictReason.INSUFFICIENT_CAPACITY,
            f"Not enough seats. Requested: {requested}, remaining: {remaining}",
            remaining=remaining,
        )

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.remaining is not None:
            body["remaining"] = self.remaining
        return body


class InvalidError(CarpoolError):
    kind = "Invalid"

    _STATUS = {
        InvalidReason.TERMINAL_RIDE: 409,
        InvalidReason.RIDE_STARTED: 409,
    }

    def __init__(self, reason: InvalidReason, message: str):
        super().__init__(reason, message)
        self.status_code = self._STATUS.get(reason, 422)


class ForbiddenError(CarpoolError):
    kind = "Forbidden"
    status_code = 403


class InternalError(CarpoolError):
    kind = "Internal"
    status_code = 503

    def __init__(self, message: str = "Storage failure, safe to retry"):
        super().__init__(InternalReason.STORE_FAILURE, message)
