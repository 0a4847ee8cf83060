"""Cache layer shared by all resolvers.

Reads are awaited and degrade to a miss on any store failure. Writes and TTL
bumps are best-effort side effects: they run as detached tasks whose failure
is only observable in the logs, never by the caller.
"""

import asyncio
import logging
from collections.abc import Coroutine
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter

from dpid_resolver.domain.cache.model.value import CacheKind, CacheNamespace, CacheTtl
from dpid_resolver.domain.cache.port.cache_store import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@lru_cache(maxsize=32)
def _adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


class ResolverCache:
    """Typed, namespaced facade over a CacheStore."""

    def __init__(
        self,
        store: CacheStore,
        namespace: CacheNamespace,
        ttl: CacheTtl | None = None,
    ) -> None:
        self._store = store
        self._namespace = namespace
        self.ttl = ttl or CacheTtl()
        self._pending: set[asyncio.Task[None]] = set()

    def key(self, kind: CacheKind, identifier: str | int) -> str:
        return self._namespace.key(kind, identifier)

    async def read(self, key: str, tp: type[T]) -> T | None:
        """Return the cached value, or None on a miss or any store failure."""
        try:
            raw = await self._store.get(key)
        except Exception:
            logger.warning("Cache read failed for %s, treating as miss", key, exc_info=True)
            return None

        if raw is None:
            logger.debug("Cache miss: %s", key)
            return None

        try:
            return _adapter(tp).validate_json(raw)
        except ValueError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    def write_async(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Schedule a cache write without waiting for it."""
        raw = _adapter(type(value)).dump_json(value, by_alias=True).decode()
        self._spawn(self._store.set(key, raw, ttl_seconds), op="set", key=key)

    def bump_async(self, key: str, ttl_seconds: int) -> None:
        """Schedule a TTL refresh without waiting for it."""
        self._spawn(self._store.bump_ttl(key, ttl_seconds), op="bump", key=key)

    async def drain(self) -> None:
        """Wait for all in-flight writes (shutdown and tests)."""
        while self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, None], *, op: str, key: str) -> None:
        task = asyncio.create_task(self._guarded(coro, op=op, key=key))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @staticmethod
    async def _guarded(coro: Coroutine[Any, Any, None], *, op: str, key: str) -> None:
        try:
            await coro
        except Exception:
            logger.warning("Cache %s failed for %s", op, key, exc_info=True)
