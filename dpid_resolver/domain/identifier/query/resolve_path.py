"""Generic ``/{dpid}/{version?}/{suffix...}`` resolution.

Without ``raw`` the request is handed to the Nodes web app. With ``raw`` the
dPID is resolved here: a bare dPID redirects to its manifest on the gateway,
and a ``root``/``data`` suffix addresses a file or directory in the data
bucket. Directories are returned as their DAG node, files are redirected to
the gateway so large transfers never pass through the resolver.
"""

import logging
import re
from typing import Any

from dpid_resolver.domain.identifier.model.value import ResolverUrls
from dpid_resolver.domain.identifier.service.identifier import parse_dpid_path
from dpid_resolver.domain.registry.service.dpid import DpidService
from dpid_resolver.domain.shared.error import (
    DagFetchError,
    InvalidPath,
    NotFoundError,
    UnsupportedFormat,
)
from dpid_resolver.domain.shared.model.manifest import data_bucket_cid
from dpid_resolver.domain.shared.port.manifest_reader import ManifestReader
from dpid_resolver.domain.shared.query import Query, QueryHandler, Result
from dpid_resolver.domain.tree.model.value import is_unixfs_dir
from dpid_resolver.domain.tree.port.dag_fetcher import DagFetcher

logger = logging.getLogger(__name__)

_BUCKET_HEAD = re.compile(r"^(root|data)/?")

UNSUPPORTED_FORMATS = frozenset({"jsonld", "myst"})


class ResolvePath(Query):
    path: str
    raw: bool = False
    jsonld: bool = False
    format: str | None = None


class PathResolution(Result):
    """Either a redirect target or a directory node to return as-is."""

    redirect: str | None = None
    node: dict[str, Any] | None = None


class ResolvePathHandler(QueryHandler[ResolvePath, PathResolution]):
    dpid_service: DpidService
    manifest_reader: ManifestReader
    dag_fetcher: DagFetcher
    urls: ResolverUrls

    async def run(self, query: ResolvePath) -> PathResolution:
        if "favicon.ico" in query.path:
            raise NotFoundError("favicon.ico")

        parsed = parse_dpid_path(query.path)

        if query.jsonld or query.format in UNSUPPORTED_FORMATS:
            raise UnsupportedFormat(
                f"{query.format or 'jsonld'} formatted requests are not supported by the resolver"
            )

        if not query.raw:
            target = f"{self.urls.nodes}/dpid/{parsed.dpid}"
            if parsed.version_index is not None:
                # Nodes expects one-based, v-prefixed versions
                target += f"/v{parsed.version_index + 1}"
            if parsed.suffix:
                target += f"/{parsed.suffix}"
            logger.info("Redirecting %s to Nodes: %s", query.path, target)
            return PathResolution(redirect=target)

        history = await self.dpid_service.resolve_dpid(parsed.dpid, parsed.version_index)
        manifest_cid = history.latest_manifest_cid

        if not parsed.suffix:
            return PathResolution(redirect=f"{self.urls.gateway}/{manifest_cid}")

        if not _BUCKET_HEAD.match(parsed.suffix):
            raise InvalidPath(
                f"Path suffix must address drive content under /root, got {parsed.suffix!r}",
                field="path",
            )

        manifest = await self.manifest_reader.get_manifest(manifest_cid)
        bucket = data_bucket_cid(manifest)
        rest = _BUCKET_HEAD.sub("", parsed.suffix)
        dag_path = f"{bucket}/{rest}" if rest else bucket

        try:
            node = await self.dag_fetcher.get_node(dag_path)
        except DagFetchError as e:
            raise NotFoundError(
                f"Failed to resolve DAG path {dag_path}; check path and versioning", cause=e
            ) from e

        if is_unixfs_dir(node):
            return PathResolution(node=node)
        return PathResolution(redirect=f"{self.urls.gateway}/{dag_path}")
