"""Redis-backed CacheStore."""

import logging

import logfire
from redis.asyncio import Redis

from dpid_resolver.domain.cache.port.cache_store import CacheStore

logger = logging.getLogger(__name__)


class RedisCacheStore(CacheStore):
    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheStore":
        return cls(
            Redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=2.0,
                socket_timeout=2.0,
                health_check_interval=30,
            )
        )

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._client.set(key, value, ex=ttl_seconds)

    async def bump_ttl(self, key: str, ttl_seconds: int) -> None:
        logger.debug("Refreshing TTL of %s to %ss", key, ttl_seconds)
        await self._client.expire(key, ttl_seconds)

    async def close(self) -> None:
        await self._client.aclose()
        logfire.info("Redis cache connection closed")


class NullCacheStore(CacheStore):
    """Used when caching is disabled: every read misses, writes are dropped."""

    async def get(self, key: str) -> str | None:
        return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        return None

    async def bump_ttl(self, key: str, ttl_seconds: int) -> None:
        return None
