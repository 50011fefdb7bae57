"""Class-based REST resources behind a typed url router."""

__version__ = "0.1.0"

from restly.app import Restly
from restly.errors import (
    ConfigurationError,
    DuplicatePath,
    DuplicateVariable,
    MalformedRule,
    ResourceConstruction,
    RestlyError,
    RouteError,
    UnknownConverter,
)
from restly.parser import ParamError, Parser
from restly.request import Request
from restly.resource import Resource
from restly.response import JSONResponse, Response
from restly.routing import MatchResult, Router

__all__ = [
    "ConfigurationError",
    "DuplicatePath",
    "DuplicateVariable",
    "JSONResponse",
    "MalformedRule",
    "MatchResult",
    "ParamError",
    "Parser",
    "Request",
    "Resource",
    "ResourceConstruction",
    "Response",
    "RestlyError",
    "RouteError",
    "Restly",
    "Router",
    "UnknownConverter",
]
