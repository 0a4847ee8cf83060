"""Error hierarchy for the resolver.

Error layers:
- ResolverError: Base class for all resolver errors
- DomainError: Unknown identifiers, bad versions, malformed paths (4xx responses)
- InfrastructureError: Registry, Ceramic, IPFS or batch engine failures (503 responses)

Transport failures are wrapped with their originating exception attached as
``cause`` so callers can tell a retryable outage from a terminal "does not
exist" answer. These errors are mapped to HTTP responses by the global
exception handler in app.py.
"""

from typing import Any


class ResolverError(Exception):
    """Base class for all resolver errors."""

    def __init__(
        self, message: str, code: str | None = None, cause: Any = None
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.cause = cause
        super().__init__(message)


# =============================================================================
# Domain Errors (terminal answers - typically 4xx)
# =============================================================================


class DomainError(ResolverError):
    """Base class for domain errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class DpidNotFound(NotFoundError):
    """Neither the alias mapping nor the legacy entry knows this dPID."""


class StreamNotFound(NotFoundError):
    """The identifier does not correspond to a live stream."""


class OutOfRange(NotFoundError):
    """Requested version index is beyond the known versions."""

    def __init__(self, version_index: int, version_count: int) -> None:
        super().__init__(
            f"Version index {version_index} out of range "
            f"(object has {version_count} versions)"
        )
        self.version_index = version_index
        self.version_count = version_count


class DataBucketMissing(NotFoundError):
    """Manifest has no `root` data component."""


class ValidationError(DomainError):
    """Input validation failed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidIdentifier(ValidationError):
    """String is neither a dPID, a stream ID nor a commit ID."""


class InvalidPath(ValidationError):
    """dPID path suffix does not address drive content."""


class UnsupportedFormat(DomainError):
    """Output format is recognised but not served by this resolver."""


# =============================================================================
# Infrastructure Errors (retryable system failures - typically 503)
# =============================================================================


class InfrastructureError(ResolverError):
    """Base class for infrastructure/system errors."""


class ExternalServiceError(InfrastructureError):
    """An upstream service is unavailable or failed."""


class RegistryContactFailed(ExternalServiceError):
    """The on-chain alias registry call errored."""


class CeramicContactFailed(ExternalServiceError):
    """The streaming store was unreachable, or a migrated stream is missing."""


class LegacyLookupError(ExternalServiceError):
    """The legacy on-chain lookup errored."""


class BatchEngineError(ExternalServiceError):
    """The batch query engine failed or returned incomplete rows."""


class DagFetchError(ExternalServiceError):
    """A DAG node could not be fetched from any IPFS endpoint."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
