"""Restly exception hierarchy.

Registration errors are raised synchronously while routes are being set
up; they are configuration mistakes and should stop the application from
starting.  Request-time problems never surface as exceptions from the
router; see :meth:`restly.routing.Router.get_resource`.
"""

from __future__ import annotations


class RestlyError(Exception):
    """Base for all restly-specific errors."""


class ConfigurationError(RestlyError):
    """Raised when the application is started in an unusable state."""


class RouteError(RestlyError, ValueError):
    """Base for errors raised while registering a route."""


class MalformedRule(RouteError):
    """The route template violates the ``<type:name>`` grammar."""

    def __init__(self, rule: str) -> None:
        self.rule = rule
        super().__init__(f"Malformed url rule: {rule!r}.")


class UnknownConverter(RouteError):
    """A ``<type:name>`` placeholder names a converter that does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Converter type: {name!r} is undefined.")


class DuplicateVariable(RouteError):
    """Two placeholders in one template share a variable name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Url variable name: {name!r} used twice.")


class DuplicatePath(RouteError):
    """The exact template text is already registered."""

    def __init__(self, rule: str) -> None:
        self.rule = rule
        super().__init__(f"Source path: {rule!r} used twice.")


class ResourceConstruction(RouteError):
    """The resource class raised while being instantiated."""

    def __init__(self, resource_name: str, message: str) -> None:
        self.resource_name = resource_name
        self.message = message
        super().__init__(f"Instance Resource: {resource_name!r} throws an error: {message!r}.")
