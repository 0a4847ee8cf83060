"""Custom Dishka scopes for the resolver."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """Resolver dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Application lifetime (HTTP clients, cache, adapters)
    - UOW: Unit of Work (one HTTP request or CLI invocation)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
