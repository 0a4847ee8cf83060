from abc import abstractmethod
from typing import Protocol

from dpid_resolver.domain.registry.model.value import LegacyEntry
from dpid_resolver.domain.shared.port import Port


class AliasRegistry(Port, Protocol):
    """The on-chain dPID alias registry."""

    @abstractmethod
    async def resolve(self, dpid: int) -> str:
        """Return the stream ID a dPID is bound to, or "" if unmapped."""
        ...

    @abstractmethod
    async def legacy_lookup(self, dpid: int) -> LegacyEntry:
        """Return the legacy entry; a zero owner means there is none."""
        ...

    @abstractmethod
    async def next_dpid(self) -> int:
        """The next dPID to be minted, so ``next_dpid() - 1`` have been issued."""
        ...
