from dpid_resolver.domain.shared.model.value import ValueObject

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class LegacyVersionEntry(ValueObject):
    cid: str
    timestamp: int


class LegacyEntry(ValueObject):
    """A dPID whose versions are stored directly in the registry contract."""

    owner: str
    versions: list[LegacyVersionEntry]

    @property
    def exists(self) -> bool:
        return self.owner.lower() != ZERO_ADDRESS and bool(self.versions)


def dedup_legacy_versions(versions: list[LegacyVersionEntry]) -> list[LegacyVersionEntry]:
    """Collapse runs of identical (cid, timestamp) entries into one.

    Development registries were seeded with duplicated legacy versions; this
    keeps version indexes there in line with the published objects.
    """
    deduped: list[LegacyVersionEntry] = []
    for entry in versions:
        if deduped and deduped[-1] == entry:
            continue
        deduped.append(entry)
    return deduped
