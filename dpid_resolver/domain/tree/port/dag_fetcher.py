from abc import abstractmethod
from typing import Any, Protocol

from dpid_resolver.domain.shared.port import Port


class DagFetcher(Port, Protocol):
    @abstractmethod
    async def get_node(self, cid_or_path: str) -> dict[str, Any]:
        """Fetch a DAG node as DAG-JSON, e.g. ``bafy.../data/file.csv``.

        Raises:
            DagFetchError: if no endpoint could serve the node.
        """
        ...
