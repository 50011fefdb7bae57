"""Resources and their verb tables."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, get_type_hints

from pydantic import BaseModel

if TYPE_CHECKING:
    from collections.abc import Callable

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")


class Resource:
    """Optional base class for resources.

    A resource serves one route.  Each HTTP verb it supports is a public
    method named after the verb in lowercase::

        class Todo(Resource):
            def get(self, todo_id: str) -> dict: ...
            def delete(self, todo_id: str) -> str: ...

    Resources are instantiated once at registration and shared across
    requests, so any state they hold persists between calls.
    """

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


class HandlerMeta:
    """Pre-computed handler metadata, built once at registration time."""

    __slots__ = (
        "handler",
        "is_coroutine",
        "models",
        "param_names",
        "takes_kwargs",
        "wants_request",
    )

    def __init__(self, handler: Callable[..., Any]) -> None:
        self.handler = handler
        self.is_coroutine = inspect.iscoroutinefunction(handler)
        sig = inspect.signature(handler)
        self.wants_request = "request" in sig.parameters
        self.takes_kwargs = any(p.kind is inspect.Parameter.VAR_KEYWORD for p in sig.parameters.values())
        self.param_names = frozenset(
            name
            for name, p in sig.parameters.items()
            if p.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)
        ) - {"request"}
        try:
            hints = get_type_hints(handler)
        except NameError:
            # annotations naming TYPE_CHECKING-only imports stay unresolved
            hints = {name: p.annotation for name, p in sig.parameters.items()}
        self.models: dict[str, type[BaseModel]] = {
            name: hints[name] for name in self.param_names if is_model(hints.get(name))
        }


def method_table(resource: Any) -> dict[str, HandlerMeta]:
    """Map each verb *resource* serves to its handler metadata."""
    table: dict[str, HandlerMeta] = {}
    for method in HTTP_METHODS:
        handler = getattr(resource, method.lower(), None)
        if callable(handler):
            table[method] = HandlerMeta(handler)
    return table


def is_model(tp: Any) -> bool:
    """Return True if *tp* is a BaseModel subclass."""
    return isinstance(tp, type) and issubclass(tp, BaseModel)
