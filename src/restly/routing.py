"""URL routing with typed path placeholders.

Templates look like ``/books/<int:id>/<name>``.  Each one is compiled once
into an ordered tuple of segments; request paths are resolved by trying
every registered route in registration order, first match wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NamedTuple

from restly.converters import DEFAULT, Converter, lookup
from restly.errors import DuplicatePath, DuplicateVariable, MalformedRule, ResourceConstruction

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

logger = logging.getLogger("restly.routing")


@dataclass(frozen=True, slots=True)
class StaticSegment:
    """A literal segment, compared by exact case-sensitive equality."""

    literal: str


@dataclass(frozen=True, slots=True)
class DynamicSegment:
    """A ``<type:name>`` placeholder."""

    name: str
    converter: Converter


Segment = StaticSegment | DynamicSegment


@dataclass(frozen=True, slots=True)
class RouteRule:
    """A compiled template: the raw text plus its ordered segments."""

    rule: str
    segments: tuple[Segment, ...]

    @property
    def variables(self) -> tuple[str, ...]:
        """Placeholder names, left to right."""
        return tuple(seg.name for seg in self.segments if isinstance(seg, DynamicSegment))

    @property
    def catch_all(self) -> bool:
        """``True`` when the template ends in a ``path`` placeholder."""
        if not self.segments:
            return False
        last = self.segments[-1]
        return isinstance(last, DynamicSegment) and last.converter.multi_segment


class MatchResult(NamedTuple):
    """Outcome of :meth:`Router.get_resource`.

    Both fields are ``None`` when nothing matched.
    """

    variables: dict[str, str] | None
    resource: Any


NO_MATCH = MatchResult(None, None)


def compile_rule(rule: str) -> RouteRule:
    """Parse *rule* into a :class:`RouteRule`.

    Raises :class:`~restly.errors.MalformedRule` on unbalanced or nested
    angle brackets, :class:`~restly.errors.UnknownConverter` on an unknown
    type name and :class:`~restly.errors.DuplicateVariable` when a name is
    reused, whatever its converter.
    """
    segments: list[Segment] = []
    seen: set[str] = set()

    for token in rule.split("/"):
        if not token:
            continue
        if "<" not in token and ">" not in token:
            segments.append(StaticSegment(token))
            continue

        inner = token[1:-1]
        if len(token) < 2 or token[0] != "<" or token[-1] != ">" or "<" in inner or ">" in inner:
            raise MalformedRule(rule)

        if ":" in inner:
            type_name, name = inner.split(":", 1)
            if not type_name:
                raise MalformedRule(rule)
        else:
            type_name, name = DEFAULT, inner
        if not name:
            raise MalformedRule(rule)

        converter = lookup(type_name)
        if name in seen:
            raise DuplicateVariable(name)
        seen.add(name)
        segments.append(DynamicSegment(name, converter))

    # a catch-all placeholder has to close the template
    for seg in segments[:-1]:
        if isinstance(seg, DynamicSegment) and seg.converter.multi_segment:
            raise MalformedRule(rule)

    return RouteRule(rule, tuple(segments))


def split_path(path: str) -> list[str]:
    """Split a request path, dropping one leading and one trailing empty part."""
    parts = path.split("/")
    if parts and not parts[0]:
        parts.pop(0)
    if parts and not parts[-1]:
        parts.pop()
    return parts


class CompiledRoute:
    """A registered route: compiled rule, its resource and its position."""

    __slots__ = ("index", "resource", "rule")

    def __init__(self, rule: RouteRule, resource: Any, index: int) -> None:
        self.rule = rule
        self.resource = resource
        self.index = index

    def match(self, parts: list[str]) -> dict[str, str] | None:
        """Return captured variables if *parts* align with the rule, else ``None``."""
        segments = self.rule.segments
        if self.rule.catch_all:
            # the catch-all needs at least one part of its own
            if len(parts) < len(segments):
                return None
        elif len(parts) != len(segments):
            return None

        variables: dict[str, str] = {}
        for i, seg in enumerate(segments):
            if isinstance(seg, StaticSegment):
                if parts[i] != seg.literal:
                    return None
                continue
            value = "/".join(parts[i:]) if seg.converter.multi_segment else parts[i]
            if not seg.converter.matches(value):
                return None
            variables[seg.name] = value
        return variables

    def __repr__(self) -> str:
        return f"CompiledRoute({self.rule.rule!r}, {type(self.resource).__name__})"


class RouteTable:
    """Compiled routes keyed by their raw template, in insertion order.

    Every resource is instantiated exactly once, when its route is added,
    and is shared by every later match.  No locking is done: registration
    is expected to finish before requests are served.
    """

    __slots__ = ("_routes",)

    def __init__(self) -> None:
        self._routes: dict[str, CompiledRoute] = {}

    def add(self, rule: str, resource: Any) -> CompiledRoute:
        return self.insert(self.prepare(rule, resource))

    def prepare(self, rule: str, resource: Any) -> CompiledRoute:
        """Compile *rule* and instantiate *resource* without storing anything."""
        compiled = compile_rule(rule)
        if rule in self._routes:
            raise DuplicatePath(rule)
        return CompiledRoute(compiled, _instantiate(resource), len(self._routes))

    def insert(self, route: CompiledRoute) -> CompiledRoute:
        rule = route.rule.rule
        if rule in self._routes:
            raise DuplicatePath(rule)
        route.index = len(self._routes)
        self._routes[rule] = route
        logger.debug("Registered %r -> %r", rule, route.resource)
        return route

    def add_map(self, mapping: Mapping[str, Any]) -> list[CompiledRoute]:
        """Add every entry in iteration order, stopping at the first failure.

        Routes added before the failing entry stay registered.
        """
        return [self.add(rule, resource) for rule, resource in mapping.items()]

    def get(self, rule: str) -> CompiledRoute | None:
        return self._routes.get(rule)

    def __contains__(self, rule: object) -> bool:
        return rule in self._routes

    def __iter__(self) -> Iterator[CompiledRoute]:
        return iter(self._routes.values())

    def __len__(self) -> int:
        return len(self._routes)


class Router:
    """Route table plus first-registered-first-tried resolution.

    Usage::

        router = Router()
        router.add_route("/books/<int:id>", Books)
        variables, resource = router.get_resource("/books/42")
    """

    __slots__ = ("table",)

    def __init__(self) -> None:
        self.table = RouteTable()

    def add_route(self, rule: str, resource: Any) -> CompiledRoute:
        return self.table.add(rule, resource)

    def add_route_map(self, mapping: Mapping[str, Any]) -> list[CompiledRoute]:
        return self.table.add_map(mapping)

    @property
    def routes(self) -> list[CompiledRoute]:
        return list(self.table)

    def get_resource(self, path: str) -> MatchResult:
        """Resolve an already-decoded request *path*.

        Never raises: an unmatched path yields :data:`NO_MATCH`.
        """
        parts = split_path(path)
        for route in self.table:
            variables = route.match(parts)
            if variables is not None:
                return MatchResult(variables, route.resource)
        return NO_MATCH


def _instantiate(resource: Any) -> Any:
    """Construct *resource* if it is a class, otherwise use it as-is."""
    if not isinstance(resource, type):
        return resource
    try:
        return resource()
    except Exception as exc:
        raise ResourceConstruction(resource.__name__, str(exc)) from exc
