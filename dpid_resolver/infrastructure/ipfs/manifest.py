import logging
from typing import Any

import httpx

from dpid_resolver.domain.shared.error import DagFetchError
from dpid_resolver.domain.shared.port.manifest_reader import ManifestReader

logger = logging.getLogger(__name__)


class HttpManifestReader(ManifestReader):
    """Reads manifests as JSON from an IPFS gateway."""

    def __init__(self, client: httpx.AsyncClient, gateway_url: str) -> None:
        self._client = client
        self._gateway_url = gateway_url.rstrip("/")

    async def get_manifest(self, cid: str, timeout: float | None = None) -> dict[str, Any]:
        url = f"{self._gateway_url}/{cid}"
        try:
            if timeout is None:
                response = await self._client.get(url)
            else:
                response = await self._client.get(url, timeout=timeout)
            response.raise_for_status()
            manifest = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise DagFetchError(f"Failed to fetch manifest {cid}: {e}", cause=e) from e

        if not isinstance(manifest, dict):
            raise DagFetchError(f"Manifest {cid} is not a JSON object")
        return manifest
