"""Tests for the Flight SQL batch engine with a stubbed ADBC connection."""

from unittest.mock import MagicMock

import pyarrow as pa
import pytest

from dpid_resolver.domain.shared.error import BatchEngineError, InvalidIdentifier
from dpid_resolver.infrastructure.flight import engine as engine_module
from dpid_resolver.infrastructure.flight.engine import FlightSqlBatchEngine

from tests.fakes import make_stream

A = str(make_stream(1))
B = str(make_stream(2))


def _connection(tables: list[pa.Table]) -> MagicMock:
    cursor = MagicMock()
    cursor.fetch_arrow_table.side_effect = tables
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    return conn


@pytest.fixture
def connect(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    mock = MagicMock()
    monkeypatch.setattr(engine_module.flight_sql, "connect", mock)
    return mock


class TestFlightSqlBatchEngine:
    async def test_latest_states(self, connect: MagicMock):
        table = pa.table(
            {
                "stream_id": [A],
                "owner": ["did:pkh:eip155:1:0xabc"],
                "manifest": ["bafy-m"],
                "version_count": [3],
                "latest_timestamp": [1700000000],
            }
        )
        conn = _connection([table])
        connect.return_value = conn

        [summary] = await FlightSqlBatchEngine("grpc://flight:32010").latest_states([A])

        assert summary.owner == "0xabc"
        assert summary.version_count == 3
        sql = conn.cursor.return_value.__enter__.return_value.execute.call_args.args[0]
        assert "FROM stream_latest" in sql
        assert f"'{A}'" in sql

    async def test_version_logs_grouped_in_order(self, connect: MagicMock):
        table = pa.table(
            {
                "stream_id": [A, A, B],
                "commit_id": ["c0", "c1", "d0"],
                "manifest": ["m0", "m1", None],
                "anchor_time": [10, None, 30],
            }
        )
        connect.return_value = _connection([table])

        logs = await FlightSqlBatchEngine("grpc://flight:32010").version_logs([A, B])

        assert [v.commit_id for v in logs[A]] == ["c0", "c1"]
        assert logs[A][1].anchor_time is None
        assert logs[B][0].manifest_cid == ""

    async def test_connection_is_reused(self, connect: MagicMock):
        empty = pa.table({"stream_id": pa.array([], pa.string())})
        connect.return_value = _connection([empty, empty])
        engine = FlightSqlBatchEngine("grpc://flight:32010")

        await engine.version_logs([A])
        await engine.version_logs([B])

        connect.assert_called_once()

    async def test_failure_resets_connection(self, connect: MagicMock):
        conn = MagicMock()
        conn.cursor.side_effect = RuntimeError("stream closed")
        connect.return_value = conn
        engine = FlightSqlBatchEngine("grpc://flight:32010")

        with pytest.raises(BatchEngineError):
            await engine.latest_states([A])
        with pytest.raises(BatchEngineError):
            await engine.latest_states([A])
        assert connect.call_count == 2

    async def test_ids_are_validated_before_querying(self, connect: MagicMock):
        with pytest.raises(InvalidIdentifier):
            await FlightSqlBatchEngine("grpc://flight:32010").latest_states(["x'); DROP TABLE t; --"])
        connect.assert_not_called()

    async def test_empty_input(self, connect: MagicMock):
        engine = FlightSqlBatchEngine("grpc://flight:32010")
        assert await engine.latest_states([]) == []
        assert await engine.version_logs([]) == {}
        connect.assert_not_called()
