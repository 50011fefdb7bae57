"""Built-in converters for ``<type:name>`` route placeholders."""

from __future__ import annotations

import re
from dataclasses import dataclass

from restly.errors import UnknownConverter


@dataclass(frozen=True, slots=True)
class Converter:
    """A named structural rule for the text captured by a placeholder.

    ``multi_segment`` converters swallow every remaining path segment,
    embedded ``/`` included, and are only legal at the end of a template.
    """

    name: str
    pattern: re.Pattern[str]
    multi_segment: bool = False

    def matches(self, value: str) -> bool:
        return self.pattern.fullmatch(value) is not None


DEFAULT = ""

CONVERTERS: dict[str, Converter] = {
    DEFAULT: Converter(DEFAULT, re.compile(r"[^/]+")),
    # no "." so a str placeholder never overlaps with float
    "str": Converter("str", re.compile(r"[A-Za-z0-9_]+")),
    "int": Converter("int", re.compile(r"[0-9]+")),
    "float": Converter("float", re.compile(r"[0-9]+\.[0-9]+")),
    "path": Converter("path", re.compile(r"[^/]+(?:/[^/]+)*"), multi_segment=True),
}


def lookup(name: str) -> Converter:
    """Return the converter registered as *name*.

    Raises :class:`~restly.errors.UnknownConverter` for anything outside the
    fixed catalog; aliases such as ``string`` are not accepted.
    """
    try:
        return CONVERTERS[name]
    except KeyError:
        raise UnknownConverter(name) from None
