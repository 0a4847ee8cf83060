"""Query and QueryHandler base classes.

Every handler's ``run()`` is wrapped in a logfire span named after the
handler, so each resolution shows up as one trace with its upstream calls
nested underneath.
"""

from __future__ import annotations

from abc import ABCMeta, abstractmethod
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from functools import wraps
from typing import Any, Generic, TypeVar, dataclass_transform

import logfire
from pydantic import BaseModel


class Query(BaseModel): ...


class Result(BaseModel): ...


C = TypeVar("C", bound=Query)
R = TypeVar("R")

# Unbound async handler method: (self, query) -> Coroutine -> result
_HandlerMethod = Callable[..., Coroutine[Any, Any, Any]]


def _wrap_query_run_with_span(cls: type, original_run: _HandlerMethod) -> _HandlerMethod:
    """Wrap the run() method in a logfire span carrying the query fields."""

    @wraps(original_run)
    async def span_wrapped_run(self: Any, query: Any) -> Any:
        with logfire.span(cls.__name__, **query.model_dump(mode="json")):
            return await original_run(self, query)

    return span_wrapped_run


@dataclass_transform()
class _QueryHandlerMeta(ABCMeta):
    """Metaclass that combines ABC with auto-dataclass and span wrapping for subclasses."""

    def __new__(mcs, name: str, bases: tuple[type, ...], namespace: dict[str, Any]):
        cls = super().__new__(mcs, name, bases, namespace)
        if any(isinstance(b, mcs) for b in bases):
            cls = dataclass(cls)

            original_run = cls.__dict__.get("run")
            if original_run is not None:
                cls.run = _wrap_query_run_with_span(cls, original_run)

        return cls


class QueryHandler(Generic[C, R], metaclass=_QueryHandlerMeta):
    """Base class for query handlers. Subclasses are automatically dataclasses.

        class ResolveDpidHandler(QueryHandler[ResolveDpid, History]):
            dpid_service: DpidService

            async def run(self, query: ResolveDpid) -> History: ...
    """

    @abstractmethod
    async def run(self, query: C) -> R: ...
