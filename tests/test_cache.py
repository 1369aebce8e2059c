"""Tests for the Redis read cache (mocked Redis)."""

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from carpool.infrastructure.cache import (
    ReadCache,
    driver_rides_key,
    keys_for_ride_change,
    passenger_bookings_key,
    ride_details_key,
)


class TestKeys:
    def test_key_layout(self):
        assert ride_details_key(7) == "ride:7:details"
        assert driver_rides_key(3) == "user:3:driver_rides"
        assert passenger_bookings_key(4) == "user:4:passenger_bookings"

    def test_ride_change_covers_every_party_once(self):
        assert keys_for_ride_change(7, 3, [5, 4, 5]) == [
            "ride:7:details",
            "user:3:driver_rides",
            "user:4:passenger_bookings",
            "user:5:passenger_bookings",
        ]


class TestReadCache:
    @pytest.mark.asyncio
    async def test_get_hit_decodes_json(self):
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(return_value=json.dumps({"id": 7}))

        cache = ReadCache(mock_redis, default_ttl=60)
        assert await cache.get("ride:7:details") == {"id": 7}

    @pytest.mark.asyncio
    async def test_get_miss(self):
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(return_value=None)

        cache = ReadCache(mock_redis, default_ttl=60)
        assert await cache.get("ride:7:details") is None

    @pytest.mark.asyncio
    async def test_set_uses_default_ttl(self):
        mock_redis = AsyncMock()

        cache = ReadCache(mock_redis, default_ttl=60)
        await cache.set("ride:7:details", {"id": 7})

        mock_redis.set.assert_awaited_once_with("ride:7:details", '{"id": 7}', ex=60)

    @pytest.mark.asyncio
    async def test_invalidate_deletes_all_keys(self):
        mock_redis = AsyncMock()

        cache = ReadCache(mock_redis, default_ttl=60)
        await cache.invalidate("a", "b")

        mock_redis.delete.assert_awaited_once_with("a", "b")

    @pytest.mark.asyncio
    async def test_invalidate_nothing_is_a_no_op(self):
        mock_redis = AsyncMock()

        cache = ReadCache(mock_redis, default_ttl=60)
        await cache.invalidate()

        mock_redis.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_redis_outage_is_a_miss(self):
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(side_effect=RedisConnectionError("down"))
        mock_redis.delete = AsyncMock(side_effect=RedisConnectionError("down"))

        cache = ReadCache(mock_redis, default_ttl=60)
        assert await cache.get("ride:7:details") is None
        await cache.invalidate("ride:7:details")
