import asyncio
import logging

from dpid_resolver.domain.cache.model.value import CacheKind
from dpid_resolver.domain.cache.service.cache import ResolverCache
from dpid_resolver.domain.history.model.streamid import parse_stream_id
from dpid_resolver.domain.registry.service.dpid import DpidService
from dpid_resolver.domain.registry.service.listing import ListingService
from dpid_resolver.domain.shared.error import DpidNotFound
from dpid_resolver.domain.shared.service import Service

logger = logging.getLogger(__name__)


class ReverseLookupService(Service):
    """Finds the dPID a stream is registered under.

    The registry has no reverse index, so this scans every issued dPID in
    concurrent batches and caches the answer.
    """

    dpid_service: DpidService
    listing_service: ListingService
    cache: ResolverCache
    batch_size: int = 50

    async def find_dpid(self, stream_id: str) -> int:
        parse_stream_id(stream_id)

        key = self.cache.key(CacheKind.REVERSE, stream_id)
        cached = await self.cache.read(key, int)
        if cached is not None:
            return cached

        total = await self.listing_service.total()
        for start in range(1, total + 1, self.batch_size):
            batch = range(start, min(start + self.batch_size, total + 1))
            aliases = await asyncio.gather(*(self._alias(dpid) for dpid in batch))
            for dpid, alias in zip(batch, aliases):
                if alias == stream_id:
                    logger.info("Stream %s is registered as dPID %s", stream_id, dpid)
                    self.cache.write_async(key, dpid, self.cache.ttl.anchored)
                    return dpid

        raise DpidNotFound(f"No dPID is registered for stream {stream_id}")

    async def _alias(self, dpid: int) -> str | None:
        try:
            return await self.dpid_service.lookup_alias(dpid)
        except Exception as e:
            logger.warning("Alias lookup for dPID %s failed during reverse scan: %s", dpid, e)
            return None
