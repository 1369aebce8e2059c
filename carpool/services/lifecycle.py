"""
Ride lifecycle service: start, complete and cancel.

Every transition runs in one transaction holding the ride's row lock, so two
concurrent cancel / complete calls on the same ride produce exactly one
winning transition; the loser re-reads the committed terminal status and
fails with ``InvalidError(TERMINAL_RIDE)``.  Cache entries of every party
whose view changed are invalidated after the commit.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from carpool.domain import lifecycle
from carpool.domain.enums import ParticipantRole
from carpool.domain.lifecycle import CancelOutcome
from carpool.infrastructure.cache import keys_for_ride_change
from carpool.infrastructure.models import RideModel

from .base import BaseService

logger = logging.getLogger(__name__)


class RideLifecycleService(BaseService):
    async def start_ride(self, ride_id: int, caller_id: int) -> RideModel:
        async def apply(session: AsyncSession, ride: RideModel) -> list:
            return lifecycle.start(ride, caller_id)

        ride, started = await self._with_ride_locked(ride_id, apply)
        await self._invalidate(ride)
        logger.info("Ride %d started with %d bookings", ride_id, len(started))
        return ride

    async def complete_ride(self, ride_id: int, caller_id: int) -> RideModel:
        async def apply(session: AsyncSession, ride: RideModel) -> list:
            return lifecycle.complete(ride, caller_id)

        ride, completed = await self._with_ride_locked(ride_id, apply)
        await self._invalidate(ride)
        logger.info("Ride %d completed, %d bookings settled", ride_id, len(completed))
        return ride

    async def cancel_ride(
        self,
        ride_id: int,
        caller_id: int,
        role: Optional[ParticipantRole] = None,
    ) -> tuple[RideModel, CancelOutcome]:
        async def apply(session: AsyncSession, ride: RideModel) -> CancelOutcome:
            return lifecycle.cancel(ride, caller_id, role)

        ride, outcome = await self._with_ride_locked(ride_id, apply)
        await self._invalidate(ride)
        if outcome.role == ParticipantRole.DRIVER:
            logger.info(
                "Ride %d cancelled by driver, %d bookings refunded",
                ride_id, len(outcome.cancelled_bookings),
            )
        else:
            logger.info(
                "Passenger %d withdrew from ride %d (reverted=%s)",
                caller_id, ride_id, outcome.ride_reverted,
            )
        return ride, outcome

    async def _invalidate(self, ride: RideModel) -> None:
        # Every passenger listing embeds the ride, cancelled bookings included.
        await self.cache.invalidate(
            *keys_for_ride_change(
                ride.id, ride.driver_id, [b.passenger_id for b in ride.bookings]
            )
        )
