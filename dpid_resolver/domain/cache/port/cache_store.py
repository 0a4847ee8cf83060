from abc import abstractmethod
from typing import Protocol

from dpid_resolver.domain.shared.port import Port


class CacheStore(Port, Protocol):
    """Key-value store with per-key TTL. Values are serialized JSON strings."""

    @abstractmethod
    async def get(self, key: str) -> str | None: ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    @abstractmethod
    async def bump_ttl(self, key: str, ttl_seconds: int) -> None: ...
