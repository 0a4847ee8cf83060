"""StreamStore over the Ceramic node HTTP API."""

import logging
from typing import Any

import httpx
import logfire

from dpid_resolver.domain.history.model.value import LogEntry, StreamState, SyncPolicy
from dpid_resolver.domain.history.port.stream_store import StreamStore
from dpid_resolver.domain.shared.error import CeramicContactFailed, StreamNotFound

logger = logging.getLogger(__name__)


class HttpStreamStore(StreamStore):
    """Loads streams via ``GET {ceramic}/api/v0/streams/{id}``."""

    def __init__(self, client: httpx.AsyncClient, base_url: str) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")

    async def load_stream(
        self,
        stream_or_commit_id: str,
        sync: SyncPolicy | None = None,
        timeout_seconds: int | None = None,
    ) -> StreamState:
        params: dict[str, Any] = {}
        if sync is not None:
            params["sync"] = int(sync)
        if timeout_seconds is not None:
            params["syncTimeoutSeconds"] = timeout_seconds

        url = f"{self._base_url}/api/v0/streams/{stream_or_commit_id}"
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            logfire.warn("Ceramic request failed for {stream_id}", stream_id=stream_or_commit_id)
            raise CeramicContactFailed(f"Failed to contact Ceramic node: {e}", cause=e) from e

        if response.status_code == 404 or (
            response.is_error and "not found" in response.text.lower()
        ):
            raise StreamNotFound(f"Stream not found: {stream_or_commit_id}")
        if response.is_error:
            raise CeramicContactFailed(
                f"Ceramic node answered {response.status_code} for {stream_or_commit_id}",
                cause=response.text,
            )

        try:
            return parse_stream_state(response.json(), stream_or_commit_id)
        except (ValueError, KeyError, TypeError) as e:
            raise CeramicContactFailed(
                f"Malformed stream state for {stream_or_commit_id}", cause=e
            ) from e


def parse_stream_state(body: dict[str, Any], requested_id: str) -> StreamState:
    state = body["state"]
    metadata = state.get("metadata") or {}
    return StreamState(
        stream_id=body.get("streamId") or requested_id,
        log=[
            LogEntry(cid=entry["cid"], type=entry["type"], timestamp=entry.get("timestamp"))
            for entry in state.get("log") or []
        ],
        controllers=metadata.get("controllers") or [],
        content=state.get("content") or {},
    )
