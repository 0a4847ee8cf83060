import logging

from dpid_resolver.domain.cache.model.value import CacheKind
from dpid_resolver.domain.cache.service.cache import ResolverCache
from dpid_resolver.domain.history.model.value import History, Version
from dpid_resolver.domain.history.service.history import HistoryService
from dpid_resolver.domain.registry.model.value import LegacyEntry, dedup_legacy_versions
from dpid_resolver.domain.registry.port.alias_registry import AliasRegistry
from dpid_resolver.domain.shared.error import (
    CeramicContactFailed,
    DpidNotFound,
    LegacyLookupError,
    OutOfRange,
    RegistryContactFailed,
)
from dpid_resolver.domain.shared.service import Service

logger = logging.getLogger(__name__)


class DpidService(Service):
    """Resolves numeric dPIDs through the alias registry.

    A dPID is either migrated (bound to a stream, resolved by HistoryService)
    or legacy (versions stored in the registry itself).
    """

    registry: AliasRegistry
    history_service: HistoryService
    cache: ResolverCache
    dedup_legacy: bool = False

    async def resolve_dpid(self, dpid: int, version_index: int | None = None) -> History:
        stream_id = await self.lookup_alias(dpid)

        if stream_id:
            try:
                history = await self.history_service.resolve_history(stream_id, version_index)
            except OutOfRange:
                raise
            except Exception as e:
                raise CeramicContactFailed(
                    f"Failed to resolve stream {stream_id} for dPID {dpid}", cause=e
                ) from e
            logger.info("Resolved dPID %s via stream %s", dpid, stream_id)
            return history

        logger.info("Alias for dPID %s not mapped, falling back to legacy lookup", dpid)
        return await self._resolve_legacy(dpid, version_index)

    async def lookup_alias(self, dpid: int) -> str:
        """Return the stream ID bound to ``dpid``, or "" if it is unmapped."""
        key = self.cache.key(CacheKind.DPID, dpid)
        cached = await self.cache.read(key, str)
        if cached is not None:
            return cached

        try:
            stream_id = await self.registry.resolve(dpid)
        except Exception as e:
            raise RegistryContactFailed(
                f"Failed to look up dPID {dpid} in alias registry", cause=e
            ) from e

        if stream_id:
            # Aliases are immutable once set
            self.cache.write_async(key, stream_id, self.cache.ttl.anchored)
        return stream_id

    async def legacy_entry(self, dpid: int) -> LegacyEntry:
        """Read the legacy entry, with the dev-registry dedup rule applied."""
        key = self.cache.key(CacheKind.LEGACY, dpid)
        entry = await self.cache.read(key, LegacyEntry)
        if entry is None:
            try:
                entry = await self.registry.legacy_lookup(dpid)
            except Exception as e:
                raise LegacyLookupError(f"Failed to look up legacy dPID {dpid}", cause=e) from e
            self.cache.write_async(key, entry, self.cache.ttl.pending)
            self.cache.write_async(self.cache.key(CacheKind.DPID, dpid), "", self.cache.ttl.pending)

        if self.dedup_legacy:
            entry = entry.model_copy(update={"versions": dedup_legacy_versions(entry.versions)})
        return entry

    async def _resolve_legacy(self, dpid: int, version_index: int | None) -> History:
        entry = await self.legacy_entry(dpid)
        if not entry.exists:
            raise DpidNotFound(f"dPID {dpid} doesn't exist in registry")

        count = len(entry.versions)
        index = count - 1 if version_index is None else version_index
        if index < 0 or index >= count:
            raise OutOfRange(index, count)

        logger.info(
            "Resolved dPID %s via legacy entry (%d versions, owner %s)", dpid, count, entry.owner
        )
        return History(
            id="",
            owner=entry.owner,
            latest_manifest_cid=entry.versions[index].cid,
            versions=[
                Version(commit_id="", manifest_cid=v.cid, anchor_time=v.timestamp)
                for v in entry.versions
            ],
        )
