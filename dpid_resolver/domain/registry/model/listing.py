from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SortOrder = Literal["asc", "desc"]

DEFAULT_METADATA_FIELDS = ("title", "authors")
METADATA_FIELDS = ("title", "description", "license", "keywords", "authors")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ListedVersion(_CamelModel):
    index: int
    cid: str
    time: int | None = None
    resolve_url: str


class DpidLinks(_CamelModel):
    history: str
    latest: str
    raw: str


class ListedDpid(_CamelModel):
    dpid: int
    owner: str
    latest_cid: str
    version_count: int
    source: Literal["ceramic", "legacy"]
    latest_timestamp: int | None = None
    versions: list[ListedVersion] | None = None
    metadata: dict[str, Any] | None = None
    links: DpidLinks


class PageLinks(_CamelModel):
    self_: str = Field(alias="self")
    first: str
    prev: str | None
    next: str | None
    last: str
    with_history: str | None
    without_history: str | None
    with_metadata: str | None
    without_metadata: str | None


class Pagination(_CamelModel):
    page: int
    size: int
    total: int
    has_next: bool
    has_prev: bool
    links: PageLinks


def extract_metadata(manifest: dict[str, Any], fields: list[str]) -> dict[str, Any]:
    """Keep only the requested, present manifest fields."""
    metadata: dict[str, Any] = {}
    for name in ("title", "description", "license"):
        if name in fields and manifest.get(name):
            metadata[name] = manifest[name]
    if "keywords" in fields and isinstance(manifest.get("keywords"), list):
        metadata["keywords"] = manifest["keywords"]
    if "authors" in fields and isinstance(manifest.get("authors"), list):
        authors = []
        for author in manifest["authors"]:
            if not isinstance(author, dict):
                continue
            entry = {k: author[k] for k in ("name", "orcid") if author.get(k)}
            if entry:
                authors.append(entry)
        metadata["authors"] = authors
    return metadata
