"""BatchQueryEngine over Arrow Flight SQL.

The engine exposes two aggregated views over the stream event log::

    stream_latest(stream_id, owner, manifest, version_count, latest_timestamp)
    stream_versions(stream_id, log_index, commit_id, manifest, anchor_time)

``stream_versions`` holds one row per non-anchor commit. The ADBC driver is
blocking, so every statement runs in a worker thread.
"""

import asyncio
import logging
from typing import Any

import adbc_driver_flightsql.dbapi as flight_sql
import logfire
import pyarrow as pa
from adbc_driver_flightsql import DatabaseOptions

from dpid_resolver.domain.history.model.streamid import parse_stream_id
from dpid_resolver.domain.history.model.value import StreamSummary, Version, normalize_owner
from dpid_resolver.domain.history.port.batch_engine import BatchQueryEngine
from dpid_resolver.domain.shared.error import BatchEngineError

logger = logging.getLogger(__name__)


def _in_list(stream_ids: list[str]) -> str:
    # Parsed IDs are base36, so they cannot break out of the literal
    for stream_id in stream_ids:
        parse_stream_id(stream_id)
    return ", ".join(f"'{sid}'" for sid in stream_ids)


class FlightSqlBatchEngine(BatchQueryEngine):
    def __init__(
        self,
        uri: str,
        timeout: float = 5.0,
        latest_view: str = "stream_latest",
        versions_view: str = "stream_versions",
    ) -> None:
        self._uri = uri
        self._timeout = timeout
        self._latest_view = latest_view
        self._versions_view = versions_view
        self._conn: Any = None
        self._lock = asyncio.Lock()

    async def latest_states(self, stream_ids: list[str]) -> list[StreamSummary]:
        if not stream_ids:
            return []
        table = await self._query(
            f"SELECT stream_id, owner, manifest, version_count, latest_timestamp "
            f"FROM {self._latest_view} WHERE stream_id IN ({_in_list(stream_ids)})"
        )
        return [
            StreamSummary(
                stream_id=row["stream_id"],
                owner=normalize_owner(row["owner"] or ""),
                manifest_cid=row["manifest"] or "",
                version_count=row["version_count"],
                latest_timestamp=row["latest_timestamp"],
            )
            for row in table.to_pylist()
        ]

    async def version_logs(self, stream_ids: list[str]) -> dict[str, list[Version]]:
        if not stream_ids:
            return {}
        table = await self._query(
            f"SELECT stream_id, commit_id, manifest, anchor_time "
            f"FROM {self._versions_view} WHERE stream_id IN ({_in_list(stream_ids)}) "
            f"ORDER BY stream_id, log_index"
        )
        logs: dict[str, list[Version]] = {}
        for row in table.to_pylist():
            logs.setdefault(row["stream_id"], []).append(
                Version(
                    commit_id=row["commit_id"],
                    manifest_cid=row["manifest"] or "",
                    anchor_time=row["anchor_time"],
                )
            )
        return logs

    async def close(self) -> None:
        if self._conn is not None:
            await asyncio.to_thread(self._conn.close)
            self._conn = None

    async def _query(self, sql: str) -> pa.Table:
        async with self._lock:
            try:
                return await asyncio.to_thread(self._execute, sql)
            except BatchEngineError:
                raise
            except Exception as e:
                logfire.warn("Flight SQL query failed: {error}", error=str(e))
                # Drop the connection so the next call reconnects
                self._conn = None
                raise BatchEngineError(f"Flight SQL query failed: {e}", cause=e) from e

    def _execute(self, sql: str) -> pa.Table:
        if self._conn is None:
            logger.info("Connecting to Flight SQL engine at %s", self._uri)
            self._conn = flight_sql.connect(
                self._uri,
                db_kwargs={DatabaseOptions.TIMEOUT_QUERY.value: str(self._timeout)},
            )
        with self._conn.cursor() as cursor:
            cursor.execute(sql)
            return cursor.fetch_arrow_table()
