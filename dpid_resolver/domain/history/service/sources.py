"""History sources and the fallback chain that orders them."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from dpid_resolver.domain.cache.model.value import CacheKind
from dpid_resolver.domain.cache.service.cache import ResolverCache
from dpid_resolver.domain.history.model.streamid import parse_stream_id
from dpid_resolver.domain.history.model.value import (
    EventType,
    History,
    LogEntry,
    StreamState,
    StreamSummary,
    SyncPolicy,
    Version,
)
from dpid_resolver.domain.history.port.batch_engine import BatchQueryEngine
from dpid_resolver.domain.history.port.history_source import HistorySource
from dpid_resolver.domain.history.port.stream_store import StreamStore
from dpid_resolver.domain.shared.error import BatchEngineError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BatchEngineSource(HistorySource):
    """Answers from the batch query engine in one round trip per call."""

    name = "batch-engine"

    def __init__(self, engine: BatchQueryEngine) -> None:
        self._engine = engine

    async def histories(self, stream_ids: list[str]) -> list[History]:
        summaries, logs = await asyncio.gather(
            self._engine.latest_states(stream_ids),
            self._engine.version_logs(stream_ids),
        )
        by_id = {s.stream_id: s for s in summaries}

        missing = [sid for sid in stream_ids if sid not in by_id or not logs.get(sid)]
        if missing:
            raise BatchEngineError(f"Batch engine has no rows for {len(missing)} stream(s): {missing}")

        return [
            History(
                id=sid,
                owner=by_id[sid].owner,
                latest_manifest_cid=by_id[sid].manifest_cid,
                versions=logs[sid],
            )
            for sid in stream_ids
        ]

    async def summaries(self, stream_ids: list[str]) -> list[StreamSummary]:
        rows = {s.stream_id: s for s in await self._engine.latest_states(stream_ids)}
        missing = [sid for sid in stream_ids if sid not in rows]
        if missing:
            raise BatchEngineError(f"Batch engine has no rows for {len(missing)} stream(s): {missing}")
        return [rows[sid] for sid in stream_ids]


class StreamStoreSource(HistorySource):
    """Builds histories from the streaming store, one commit load per version.

    Per-version results are cached by commit ID. Anchored versions are
    immutable and get the long TTL, refreshed on every hit; pending versions
    get the short TTL and are never refreshed so they are re-read soon.
    """

    name = "stream-store"

    def __init__(
        self,
        store: StreamStore,
        cache: ResolverCache,
        sync_timeout_seconds: int = 3,
    ) -> None:
        self._store = store
        self._cache = cache
        self._sync_timeout_seconds = sync_timeout_seconds

    async def histories(self, stream_ids: list[str]) -> list[History]:
        return list(await asyncio.gather(*(self.history(sid) for sid in stream_ids)))

    async def summaries(self, stream_ids: list[str]) -> list[StreamSummary]:
        return list(await asyncio.gather(*(self.summary(sid) for sid in stream_ids)))

    async def history(self, stream_id: str) -> History:
        stream = parse_stream_id(stream_id)
        state = await self._store.load_stream(stream_id)

        commit_ids = [str(stream.at_commit(e.cid)) for e in _commits(state)]
        # gather keeps input order, so versions stay in log order
        versions = list(await asyncio.gather(*(self._version(c) for c in commit_ids)))

        latest = state.manifest
        if latest is None:
            latest = versions[-1].manifest_cid if versions else ""

        return History(
            id=stream_id,
            owner=state.owner,
            latest_manifest_cid=latest,
            versions=versions,
        )

    async def summary(self, stream_id: str) -> StreamSummary:
        parse_stream_id(stream_id)
        state = await self._store.load_stream(stream_id)
        timestamps = [e.timestamp for e in state.log if e.timestamp is not None]
        return StreamSummary(
            stream_id=stream_id,
            owner=state.owner,
            manifest_cid=state.manifest or "",
            version_count=len(_commits(state)),
            latest_timestamp=timestamps[-1] if timestamps else None,
        )

    async def _version(self, commit_id: str) -> Version:
        key = self._cache.key(CacheKind.COMMIT, commit_id)
        cached = await self._cache.read(key, Version)
        if cached is not None:
            if cached.anchor_time is not None:
                self._cache.bump_async(key, self._cache.ttl.anchored)
            return cached

        state = await self._store.load_stream(
            commit_id,
            sync=SyncPolicy.PREFER_CACHE,
            timeout_seconds=self._sync_timeout_seconds,
        )
        version = Version(
            commit_id=commit_id,
            manifest_cid=state.manifest or "",
            # A commit load returns the log up to and including that commit
            anchor_time=state.log[-1].timestamp if state.log else None,
        )
        self._cache.write_async(key, version, self._cache.ttl.for_anchor_time(version.anchor_time))
        return version


def _commits(state: StreamState) -> list[LogEntry]:
    return [e for e in state.log if e.type != EventType.ANCHOR]


class FallbackChain:
    """Tries each source in order until one answers.

    Failures of every source but the last are logged and swallowed; the last
    source's failure propagates to the caller.
    """

    def __init__(self, sources: Sequence[HistorySource]) -> None:
        if not sources:
            raise ValueError("FallbackChain needs at least one source")
        self.sources = list(sources)

    async def histories(self, stream_ids: list[str]) -> list[History]:
        return await self._first(lambda s: s.histories(stream_ids), "histories", stream_ids)

    async def summaries(self, stream_ids: list[str]) -> list[StreamSummary]:
        return await self._first(lambda s: s.summaries(stream_ids), "summaries", stream_ids)

    async def _first(
        self,
        call: Callable[[HistorySource], Awaitable[T]],
        op: str,
        stream_ids: list[str],
    ) -> T:
        *fallible, last = self.sources
        for source in fallible:
            try:
                return await call(source)
            except Exception as e:
                logger.warning(
                    "History source %s failed for %s of %d stream(s), falling back: %s",
                    source.name,
                    op,
                    len(stream_ids),
                    e,
                )
        return await call(last)
