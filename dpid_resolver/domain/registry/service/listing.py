"""Paginated listing of every dPID in the registry."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

from dpid_resolver.domain.history.model.value import History, StreamSummary
from dpid_resolver.domain.history.service.history import HistoryService
from dpid_resolver.domain.registry.model.listing import (
    DpidLinks,
    ListedDpid,
    ListedVersion,
    PageLinks,
    Pagination,
    SortOrder,
    extract_metadata,
)
from dpid_resolver.domain.registry.model.value import LegacyEntry
from dpid_resolver.domain.registry.port.alias_registry import AliasRegistry
from dpid_resolver.domain.registry.service.dpid import DpidService
from dpid_resolver.domain.shared.error import RegistryContactFailed
from dpid_resolver.domain.shared.port.manifest_reader import ManifestReader
from dpid_resolver.domain.shared.service import Service

logger = logging.getLogger(__name__)


def page_dpids(total: int, page: int, size: int, sort: SortOrder) -> list[int]:
    """dPIDs on a 1-based page; empty when the page is past the end."""
    if sort == "asc":
        start = (page - 1) * size + 1
        end = min(total, start + size - 1)
        return list(range(start, end + 1))
    high = total - (page - 1) * size
    low = max(1, high - size + 1)
    return list(range(high, low - 1, -1))


@dataclass(frozen=True)
class ListingOptions:
    page: int = 1
    size: int = 20
    sort: SortOrder = "desc"
    history: bool = False
    metadata: bool = False
    fields: list[str] = field(default_factory=lambda: ["title", "authors"])


@dataclass
class _Entry:
    """What one dPID resolved to during the lookup phase."""

    dpid: int
    stream_id: str = ""
    legacy: LegacyEntry | None = None
    summary: StreamSummary | None = None
    history: History | None = None


class PageLinkBuilder:
    def __init__(self, base_url: str, options: ListingOptions, total: int) -> None:
        self.base_url = base_url.rstrip("/")
        self.options = options
        self.total = total

    @property
    def last_page(self) -> int:
        return max(1, -(-self.total // self.options.size))

    def url(self, page: int, *, history: bool | None = None, metadata: bool | None = None) -> str:
        o = self.options
        history = o.history if history is None else history
        metadata = o.metadata if metadata is None else metadata

        params: dict[str, Any] = {"page": page, "size": o.size}
        if o.sort == "desc":
            params["sort"] = "desc"
        if history:
            params["history"] = "true"
        if metadata:
            params["metadata"] = "true"
            params["fields"] = ",".join(o.fields)
        return f"{self.base_url}/api/v2/query/dpids?{urlencode(params, safe=',')}"

    def pagination(self, has_next: bool) -> Pagination:
        o = self.options
        has_prev = o.page > 1
        return Pagination(
            page=o.page,
            size=o.size,
            total=self.total,
            has_next=has_next,
            has_prev=has_prev,
            links=PageLinks(
                self_=self.url(o.page),
                first=self.url(1),
                prev=self.url(o.page - 1) if has_prev else None,
                next=self.url(o.page + 1) if has_next else None,
                last=self.url(self.last_page),
                with_history=None if o.history else self.url(o.page, history=True),
                without_history=self.url(o.page, history=False) if o.history else None,
                with_metadata=None if o.metadata else self.url(o.page, metadata=True),
                without_metadata=self.url(o.page, metadata=False) if o.metadata else None,
            ),
        )

    def dpid_links(self, dpid: int) -> DpidLinks:
        return DpidLinks(
            history=f"{self.base_url}/api/v2/query/history/{dpid}",
            latest=f"{self.base_url}/api/v2/resolve/dpid/{dpid}",
            raw=f"{self.base_url}/{dpid}?raw",
        )


class ListingService(Service):
    registry: AliasRegistry
    dpid_service: DpidService
    history_service: HistoryService
    manifest_reader: ManifestReader
    lookup_timeout: float = 3.0
    metadata_timeout: float = 5.0

    async def total(self) -> int:
        try:
            next_dpid = await self.registry.next_dpid()
        except Exception as e:
            raise RegistryContactFailed("Failed to read nextDpid from alias registry", cause=e) from e
        return max(0, next_dpid - 1)

    async def list_page(
        self, options: ListingOptions, base_url: str
    ) -> tuple[list[ListedDpid], Pagination]:
        total = await self.total()
        links = PageLinkBuilder(base_url, options, total)
        dpids = page_dpids(total, options.page, options.size, options.sort)

        entries = [
            e
            for e in await asyncio.gather(*(self._lookup(dpid) for dpid in dpids))
            if e is not None
        ]
        await self._fill_streams([e for e in entries if e.stream_id], options.history)

        rows = [row for e in entries if (row := self._row(e, links, options.history)) is not None]
        if options.metadata:
            await asyncio.gather(*(self._attach_metadata(row, options.fields) for row in rows))

        logger.info(
            "Listed page %d: %d of %d dPIDs resolved", options.page, len(rows), len(dpids)
        )

        if options.sort == "desc":
            has_next = bool(dpids) and dpids[-1] > 1
        else:
            has_next = bool(dpids) and dpids[-1] < total
        return rows, links.pagination(has_next)

    async def _lookup(self, dpid: int) -> _Entry | None:
        try:
            return await asyncio.wait_for(self._lookup_one(dpid), self.lookup_timeout)
        except TimeoutError:
            logger.warning("dPID %s lookup timed out after %ss, skipping", dpid, self.lookup_timeout)
        except Exception as e:
            logger.warning("dPID %s lookup failed, skipping: %s", dpid, e)
        return None

    async def _lookup_one(self, dpid: int) -> _Entry:
        stream_id = await self.dpid_service.lookup_alias(dpid)
        if stream_id:
            return _Entry(dpid=dpid, stream_id=stream_id)
        return _Entry(dpid=dpid, legacy=await self.dpid_service.legacy_entry(dpid))

    async def _fill_streams(self, entries: list[_Entry], full_history: bool) -> None:
        """Resolve all migrated dPIDs in one bulk call, then one by one if that fails."""
        if not entries:
            return
        stream_ids = [e.stream_id for e in entries]
        try:
            if full_history:
                histories = await asyncio.wait_for(
                    self.history_service.resolve_histories(stream_ids), self.lookup_timeout
                )
                for entry, history in zip(entries, histories):
                    entry.history = history
            else:
                summaries = await asyncio.wait_for(
                    self.history_service.summarize(stream_ids), self.lookup_timeout
                )
                for entry, summary in zip(entries, summaries):
                    entry.summary = summary
            return
        except Exception as e:
            logger.warning("Bulk stream lookup failed, resolving individually: %s", e)

        await asyncio.gather(*(self._fill_stream(e, full_history) for e in entries))

    async def _fill_stream(self, entry: _Entry, full_history: bool) -> None:
        try:
            if full_history:
                entry.history = await asyncio.wait_for(
                    self.history_service.resolve_history(entry.stream_id), self.lookup_timeout
                )
            else:
                [entry.summary] = await asyncio.wait_for(
                    self.history_service.summarize([entry.stream_id]), self.lookup_timeout
                )
        except Exception as e:
            logger.warning("dPID %s stream %s lookup failed, skipping: %s", entry.dpid, entry.stream_id, e)

    def _row(self, entry: _Entry, links: PageLinkBuilder, with_history: bool) -> ListedDpid | None:
        versions: list[tuple[str, int | None]] = []

        if entry.history is not None:
            h = entry.history
            versions = [(v.manifest_cid, v.anchor_time) for v in h.versions]
            owner, latest_cid, count, source = h.owner, h.latest_manifest_cid, len(versions), "ceramic"
            latest_timestamp = versions[-1][1] if versions else None
        elif entry.summary is not None:
            s = entry.summary
            owner, latest_cid, count, source = s.owner, s.manifest_cid, s.version_count, "ceramic"
            latest_timestamp = s.latest_timestamp
        elif entry.legacy is not None and entry.legacy.exists:
            legacy = entry.legacy
            versions = [(v.cid, v.timestamp) for v in legacy.versions]
            owner, latest_cid, count, source = legacy.owner, versions[-1][0], len(versions), "legacy"
            latest_timestamp = versions[-1][1]
        else:
            logger.warning("dPID %s has no data, skipping", entry.dpid)
            return None

        listed_versions = None
        if with_history and versions:
            listed_versions = [
                ListedVersion(
                    index=i,
                    cid=cid,
                    time=time,
                    resolve_url=f"{links.base_url}/api/v2/resolve/dpid/{entry.dpid}/v{i + 1}",
                )
                for i, (cid, time) in enumerate(versions)
            ]

        return ListedDpid(
            dpid=entry.dpid,
            owner=owner,
            latest_cid=latest_cid,
            version_count=count,
            source=source,
            latest_timestamp=latest_timestamp,
            versions=listed_versions,
            links=links.dpid_links(entry.dpid),
        )

    async def _attach_metadata(self, row: ListedDpid, fields: list[str]) -> None:
        if not row.latest_cid:
            return
        try:
            manifest = await self.manifest_reader.get_manifest(
                row.latest_cid, timeout=self.metadata_timeout
            )
        except Exception as e:
            logger.warning("Manifest metadata for dPID %s unavailable: %s", row.dpid, e)
            return
        row.metadata = extract_metadata(manifest, fields)
