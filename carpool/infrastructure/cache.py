"""
Redis read cache for hydrated ride / user query results.

CACHING STRATEGY
================

What we cache:
  - Ride details (with bookings and remaining capacity)   ``ride:{id}:details``
  - A driver's published rides                            ``user:{id}:driver_rides``
  - A passenger's bookings                                ``user:{id}:passenger_bookings``

Keys are always ``{entityType}:{entityId}:{queryName}``.

Invalidation strategy:
  - Every write that touches a ride invalidates the entries of every party
    whose view changed (see ``keys_for_ride_change``), after the write
    commits.
  - TTL-based expiry as safety net.

The cache is a non-authoritative view.  Capacity decisions always read the
live store.  Failures are logged and treated as a miss / no-op: invalidation
is idempotent, so a later repeat is safe.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from carpool.config import settings

logger = logging.getLogger(__name__)


# ── Keys ──────────────────────────────────────────────────────────────


def cache_key(entity_type: str, entity_id: object, query_name: str) -> str:
    return f"{entity_type}:{entity_id}:{query_name}"


def ride_details_key(ride_id: int) -> str:
    return cache_key("ride", ride_id, "details")


def driver_rides_key(driver_id: int) -> str:
    return cache_key("user", driver_id, "driver_rides")


def passenger_bookings_key(passenger_id: int) -> str:
    return cache_key("user", passenger_id, "passenger_bookings")


def keys_for_ride_change(
    ride_id: int, driver_id: int, passenger_ids: Iterable[int] = ()
) -> list[str]:
    """Every cache entry that can show a ride whose state or bookings changed."""
    keys = [ride_details_key(ride_id), driver_rides_key(driver_id)]
    keys.extend(passenger_bookings_key(p) for p in sorted(set(passenger_ids)))
    return keys


# ── Cache ─────────────────────────────────────────────────────────────


class ReadCache:
    """Thin JSON cache over an injected async Redis client."""

    def __init__(
        self,
        client: aioredis.Redis,
        default_ttl: int = settings.cache_ttl_seconds,
    ):
        self.redis = client
        self.default_ttl = default_ttl

    async def get(self, key: str) -> Optional[Any]:
        try:
            data = await self.redis.get(key)
        except RedisError as exc:
            logger.warning("Cache get failed for %s: %s", key, exc)
            return None
        if data is None:
            logger.debug("Cache miss %s", key)
            return None
        logger.debug("Cache hit %s", key)
        return json.loads(data)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        try:
            await self.redis.set(
                key, json.dumps(value, default=str), ex=ttl or self.default_ttl
            )
        except RedisError as exc:
            logger.warning("Cache set failed for %s: %s", key, exc)

    async def invalidate(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self.redis.delete(*keys)
            logger.debug("Cache invalidated %s", ", ".join(keys))
        except RedisError as exc:
            logger.warning("Cache invalidation failed for %s: %s", ", ".join(keys), exc)

    async def close(self) -> None:
        await self.redis.aclose()
