"""
Redis caching for room catalog listings.

CACHING STRATEGY
================

What we cache:
  - Room listing responses (paginated, JSON-serialized)
  - Cache key pattern: "rooms:list:page={page}&size={size}"

Why:
  - The catalog is read on every visit to the site and changes rarely
  - It holds no availability data, so a stale page never leads to a bad booking

Invalidation strategy:
  - On room create/update/archive/delete: delete all room list keys
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

  All room list keys start with "rooms:list:" so we can SCAN and delete them.

What we never cache:
  - Availability searches and anything on the booking path. Those must see
    current reservations.

Redis is optional. With REDIS_ENABLED=false, or when the server cannot be
reached, every operation is a no-op and callers fall through to the database.
"""

import json
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from hotel_booking.core.config import Settings
from hotel_booking.core.logging import get_logger
from hotel_booking.core.metrics import record_cache_operation

logger = get_logger(__name__)

KEY_PREFIX = "rooms:list:"


def make_room_list_key(page: int, page_size: int) -> str:
    return f"{KEY_PREFIX}page={page}&size={page_size}"


class RoomCache:
    def __init__(self, client: Optional[redis.Redis], ttl: int):
        self.client = client
        self.ttl = ttl

    @classmethod
    async def connect(cls, settings: Settings) -> "RoomCache":
        """Cache backed by REDIS_URL, or a disabled cache if Redis is off or unreachable."""
        if not settings.REDIS_ENABLED:
            return cls(None, settings.REDIS_CACHE_TTL)

        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        try:
            await client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except RedisError as e:
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return cls(None, settings.REDIS_CACHE_TTL)
        return cls(client, settings.REDIS_CACHE_TTL)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    async def get_rooms(self, page: int, page_size: int) -> Optional[dict]:
        """Retrieve a cached room list response."""
        if not self.enabled:
            return None

        key = make_room_list_key(page, page_size)
        try:
            data = await self.client.get(key)
        except RedisError as e:
            logger.error("cache_get_error", key=key, error=str(e))
            return None

        record_cache_operation("get", hit=bool(data))
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
        return None

    async def set_rooms(self, page: int, page_size: int, data: dict) -> None:
        if not self.enabled:
            return

        key = make_room_list_key(page, page_size)
        try:
            await self.client.setex(key, self.ttl, json.dumps(data, default=str))
            logger.debug("cache_set", key=key, ttl=self.ttl)
        except RedisError as e:
            logger.error("cache_set_error", key=key, error=str(e))

    async def invalidate_rooms(self) -> None:
        """Delete every cached room listing."""
        if not self.enabled:
            return

        try:
            deleted = 0
            async for key in self.client.scan_iter(match=f"{KEY_PREFIX}*", count=100):
                await self.client.delete(key)
                deleted += 1
            logger.info("cache_invalidated", keys_deleted=deleted)
        except RedisError as e:
            logger.error("cache_invalidation_error", error=str(e))

    async def stats(self) -> dict:
        """Redis cache statistics for the health endpoint."""
        if not self.enabled:
            return {"status": "disabled"}

        try:
            info = await self.client.info("stats")
            keyspace = await self.client.info("keyspace")
        except RedisError as e:
            return {"status": "error", "error": str(e)}

        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
            "keys": keyspace,
        }
