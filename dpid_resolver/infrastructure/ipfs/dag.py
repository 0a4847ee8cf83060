"""DagFetcher with endpoint failover.

Endpoints are tried in order: the primary DAG API, the fallback DAG APIs,
then the public read-only gateways. Gateways cannot return DAG-JSON, so a
successful GET there yields a synthetic file node with no links.

Per endpoint, a definite miss (500 saying "not found", or a 4xx other than
429) moves on to the next endpoint at once. Anything else is retried after
each delay in ``backoff``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Literal

import httpx
import logfire

from dpid_resolver.domain.shared.error import DagFetchError
from dpid_resolver.domain.tree.port.dag_fetcher import DagFetcher

logger = logging.getLogger(__name__)

DEFAULT_BACKOFF = (0.5, 1.0)


@dataclass(frozen=True)
class Endpoint:
    url: str
    kind: Literal["dag_api", "gateway"]


class _SkipEndpoint(Exception):
    """The endpoint gave a definite answer that retrying won't change."""


def _is_definite_miss(response: httpx.Response) -> bool:
    if response.status_code == 500 and "not found" in response.text.lower():
        return True
    return 400 <= response.status_code < 500 and response.status_code != 429


class FailoverDagFetcher(DagFetcher):
    def __init__(
        self,
        client: httpx.AsyncClient,
        dag_api_url: str,
        fallback_dag_api_urls: Sequence[str] = (),
        gateways: Sequence[str] = (),
        timeout: float = 30.0,
        backoff: Sequence[float] = DEFAULT_BACKOFF,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._backoff = tuple(backoff)
        self._sleep = sleep
        self.endpoints = [
            Endpoint(url.rstrip("/"), "dag_api") for url in [dag_api_url, *fallback_dag_api_urls]
        ] + [Endpoint(url.rstrip("/"), "gateway") for url in gateways]

    async def get_node(self, cid_or_path: str) -> dict[str, Any]:
        last_error: Exception | None = None
        for endpoint in self.endpoints:
            try:
                return await self._with_retries(endpoint, cid_or_path)
            except _SkipEndpoint as e:
                logger.debug("Endpoint %s has no %s: %s", endpoint.url, cid_or_path, e)
                last_error = e
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Endpoint %s failed for %s: %s", endpoint.url, cid_or_path, e)
                last_error = e

        logfire.warn("DAG node {path} unavailable on all endpoints", path=cid_or_path)
        raise DagFetchError(
            f"Failed to fetch DAG node {cid_or_path} from {len(self.endpoints)} endpoint(s)",
            cause=last_error,
        )

    async def _with_retries(self, endpoint: Endpoint, cid_or_path: str) -> dict[str, Any]:
        for delay in (*self._backoff, None):
            try:
                if endpoint.kind == "dag_api":
                    return await self._dag_get(endpoint.url, cid_or_path)
                return await self._gateway_get(endpoint.url, cid_or_path)
            except httpx.HTTPStatusError as e:
                if _is_definite_miss(e.response):
                    raise _SkipEndpoint(f"HTTP {e.response.status_code}") from e
                if delay is None:
                    raise
            except httpx.TransportError:
                if delay is None:
                    raise
            await self._sleep(delay)
        raise AssertionError("unreachable")

    async def _dag_get(self, api_url: str, cid_or_path: str) -> dict[str, Any]:
        response = await self._client.post(
            f"{api_url}/dag/get", params={"arg": cid_or_path}, timeout=self._timeout
        )
        response.raise_for_status()
        return response.json()

    async def _gateway_get(self, gateway_url: str, cid_or_path: str) -> dict[str, Any]:
        # Only the headers are needed; the body may be a large file
        async with self._client.stream(
            "GET", f"{gateway_url}/{cid_or_path}", timeout=self._timeout
        ) as response:
            if response.is_error:
                await response.aread()
            response.raise_for_status()
            size = response.headers.get("content-length")
        return {"Data": None, "Links": [], "Size": int(size) if size else None}
