"""Centralized error transformation for API routes.

Maps resolver errors (domain and infrastructure) to HTTPException responses.
"""

from typing import Any

from fastapi import HTTPException

from dpid_resolver.domain.shared.error import (
    DataBucketMissing,
    DomainError,
    InfrastructureError,
    NotFoundError,
    ResolverError,
    UnsupportedFormat,
    ValidationError,
)

# Most specific first; the first isinstance match wins
DOMAIN_ERROR_STATUS_MAP: list[tuple[type[DomainError], int]] = [
    (DataBucketMissing, 410),
    (NotFoundError, 404),
    (ValidationError, 400),
    (UnsupportedFormat, 501),
]


def _describe_cause(cause: Any) -> Any:
    if cause is None or isinstance(cause, (str, int, float, bool, dict, list)):
        return cause
    if isinstance(cause, ResolverError):
        return {"code": cause.code, "message": cause.message}
    return {"type": type(cause).__name__, "message": str(cause)}


def map_resolver_error(error: ResolverError) -> HTTPException:
    """Map a resolver error to an HTTPException.

    Args:
        error: The resolver error to map.

    Returns:
        HTTPException with appropriate status code and detail.
    """
    detail: dict[str, Any] = {
        "code": error.code,
        "message": error.message,
        "details": _describe_cause(error.cause),
    }

    if isinstance(error, InfrastructureError):
        # Infrastructure errors → 503 Service Unavailable
        return HTTPException(status_code=503, detail=detail)

    if isinstance(error, DomainError):
        status_code = next(
            (status for cls, status in DOMAIN_ERROR_STATUS_MAP if isinstance(error, cls)), 400
        )
        if isinstance(error, ValidationError) and error.field is not None:
            detail["field"] = error.field
        return HTTPException(status_code=status_code, detail=detail)

    # Fallback for unknown ResolverError subclasses
    return HTTPException(status_code=500, detail=detail)
