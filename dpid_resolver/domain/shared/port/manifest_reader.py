from abc import abstractmethod
from typing import Any, Protocol

from dpid_resolver.domain.shared.port import Port


class ManifestReader(Port, Protocol):
    @abstractmethod
    async def get_manifest(self, cid: str, timeout: float | None = None) -> dict[str, Any]:
        """Fetch and parse the research object manifest stored at ``cid``.

        Raises:
            DagFetchError: if the manifest cannot be fetched or is not JSON.
        """
        ...
