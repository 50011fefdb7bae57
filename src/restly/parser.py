"""Declarative request-parameter parsing.

A :class:`Parser` lists the parameters a handler expects together with the
checks and conversions to apply::

    parser = Parser(trim=True)
    parser.add_param("title", required=True, type="string")
    parser.add_param("page", default=1, convert=int)

    parser.parse({"title": "  hi ", "page": "3"})  # {"title": "hi", "page": 3}
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from enum import IntEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from restly.errors import RestlyError

ParamType = Literal["string", "number", "boolean", "object", "array", "any"]

_TYPES: dict[str, Callable[[Any], bool]] = {
    "string": lambda v: isinstance(v, str),
    "number": lambda v: isinstance(v, int | float) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "object": lambda v: isinstance(v, dict),
    "array": lambda v: isinstance(v, list),
    "any": lambda v: True,
}

_MISSING = object()


class ParamErrorCode(IntEnum):
    REQUIRED = 1
    TYPE = 2
    CHOICES = 3
    CONVERT = 4


class ParamError(RestlyError):
    """A request parameter failed one of its declared checks."""

    def __init__(self, code: ParamErrorCode, key: str, message: str) -> None:
        self.code = code
        self.key = key
        self.message = message
        super().__init__(message)


class ParamOptions(BaseModel):
    """Checks and conversions applied to one parameter."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    default: Any = None
    required: bool = False
    nullable: bool = True
    type: ParamType = "any"
    choices: list[Any] | Callable[[Any], bool] | None = None
    lowercase: bool = False
    trim: bool = False
    convert: Callable[[Any], Any] | None = None
    dest: str | None = None


class Parser:
    """An ordered set of parameter declarations.

    Keyword arguments given to the constructor become the defaults for
    every parameter; options passed to :meth:`add_param` override them.
    """

    __slots__ = ("_defaults", "_params")

    def __init__(self, **defaults: Any) -> None:
        self._defaults = ParamOptions(**defaults).model_dump(exclude_unset=True)
        self._params: dict[str, ParamOptions] = {}

    @property
    def params(self) -> dict[str, ParamOptions]:
        return dict(self._params)

    def add_param(self, name: str, **options: Any) -> ParamOptions:
        if name in self._params:
            msg = f"The parameter name: {name!r} already exists."
            raise ValueError(msg)
        opts = ParamOptions(**{**self._defaults, **options})
        if opts.dest is not None and opts.dest in self._params:
            msg = f"The parameter name: {name!r}, dest: {opts.dest!r} already exists."
            raise ValueError(msg)
        self._params[name] = opts
        return opts

    def remove_param(self, *names: str) -> None:
        for name in names:
            self._params.pop(name, None)

    def parse(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Validate *data* against the declarations.

        Returns the parsed values keyed by ``dest`` (or the parameter name).
        Raises :class:`ParamError` for the first failing check.
        """
        result: dict[str, Any] = {}
        for key, opts in self._params.items():
            result[opts.dest or key] = _parse_one(key, opts, data.get(key, _MISSING))
        return result


def _parse_one(key: str, opts: ParamOptions, value: Any) -> Any:
    if value is _MISSING:
        if opts.required and "default" not in opts.model_fields_set:
            raise ParamError(ParamErrorCode.REQUIRED, key, f"The {key!r} parameter is required.")
        # mutable defaults must not leak between requests
        value = copy.copy(opts.default)

    if not opts.nullable and value in (None, ""):
        raise ParamError(ParamErrorCode.REQUIRED, key, f"The {key!r} parameter may not be empty.")

    if value is not None and not _TYPES[opts.type](value):
        raise ParamError(
            ParamErrorCode.TYPE,
            key,
            f"The {key!r} parameter must be of type {opts.type}, got {value!r}.",
        )

    if opts.choices is not None:
        if callable(opts.choices):
            try:
                allowed = opts.choices(value)
            except Exception as exc:
                raise ParamError(
                    ParamErrorCode.CHOICES,
                    key,
                    f"The choices check for {key!r}: {value!r} raised an error: {exc}.",
                ) from exc
            if not allowed:
                raise ParamError(ParamErrorCode.CHOICES, key, f"The choices check for {key!r}: {value!r} failed.")
        elif value not in opts.choices:
            raise ParamError(ParamErrorCode.CHOICES, key, f"The {key!r}: {value!r} is not in {opts.choices!r}.")

    if isinstance(value, str):
        if opts.lowercase:
            value = value.lower()
        if opts.trim:
            value = value.strip()

    if opts.convert is not None:
        try:
            value = opts.convert(value)
        except Exception as exc:
            raise ParamError(
                ParamErrorCode.CONVERT,
                key,
                f"Converting {key!r}: {value!r} raised an error: {exc}.",
            ) from exc

    return value
