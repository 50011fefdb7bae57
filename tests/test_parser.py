"""Tests for declarative parameter parsing."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from restly.parser import ParamError, ParamErrorCode, Parser


def test_plain_param_passes_through() -> None:
    parser = Parser()
    parser.add_param("title")
    assert parser.parse({"title": "demo", "other": 1}) == {"title": "demo"}


def test_missing_optional_param_is_none() -> None:
    parser = Parser()
    parser.add_param("title")
    assert parser.parse({}) == {"title": None}


# -- default / required ----------------------------------------------------


def test_default_used_when_absent() -> None:
    parser = Parser()
    parser.add_param("page", default=1)
    assert parser.parse({}) == {"page": 1}
    assert parser.parse({"page": 5}) == {"page": 5}


def test_required_missing_raises() -> None:
    parser = Parser()
    parser.add_param("title", required=True)
    with pytest.raises(ParamError) as exc_info:
        parser.parse({})
    assert exc_info.value.code is ParamErrorCode.REQUIRED
    assert exc_info.value.key == "title"


def test_required_with_default_does_not_raise() -> None:
    parser = Parser()
    parser.add_param("page", required=True, default=0)
    assert parser.parse({}) == {"page": 0}


def test_not_nullable_rejects_empty_string() -> None:
    parser = Parser()
    parser.add_param("title", nullable=False)
    with pytest.raises(ParamError) as exc_info:
        parser.parse({"title": ""})
    assert exc_info.value.code is ParamErrorCode.REQUIRED


# -- type --------------------------------------------------------------------


@pytest.mark.parametrize(
    ("type_name", "good", "bad"),
    [
        ("string", "x", 1),
        ("number", 1.5, "1.5"),
        ("number", 3, True),
        ("boolean", False, "false"),
        ("object", {"a": 1}, [1]),
        ("array", [1], {"a": 1}),
    ],
)
def test_type_check(type_name: str, good: object, bad: object) -> None:
    parser = Parser()
    parser.add_param("v", type=type_name)
    assert parser.parse({"v": good}) == {"v": good}
    with pytest.raises(ParamError) as exc_info:
        parser.parse({"v": bad})
    assert exc_info.value.code is ParamErrorCode.TYPE


def test_unknown_type_rejected_at_declaration() -> None:
    parser = Parser()
    with pytest.raises(ValidationError):
        parser.add_param("v", type="integer")


def test_unknown_option_rejected() -> None:
    with pytest.raises(ValidationError):
        Parser(dset="x")


# -- choices ---------------------------------------------------------------


def test_choices_list() -> None:
    parser = Parser()
    parser.add_param("sex", choices=["men", "women"])
    assert parser.parse({"sex": "men"}) == {"sex": "men"}
    with pytest.raises(ParamError) as exc_info:
        parser.parse({"sex": "nomen"})
    assert exc_info.value.code is ParamErrorCode.CHOICES


def test_choices_predicate() -> None:
    parser = Parser()
    parser.add_param("n", choices=lambda v: v > 0)
    assert parser.parse({"n": 2}) == {"n": 2}
    with pytest.raises(ParamError, match="choices check"):
        parser.parse({"n": -1})


# -- string transforms & conversion ---------------------------------------


def test_lowercase_and_trim() -> None:
    parser = Parser()
    parser.add_param("name", lowercase=True, trim=True)
    assert parser.parse({"name": "  LLeoHao "}) == {"name": "lleohao"}


def test_convert() -> None:
    parser = Parser()
    parser.add_param("ids", convert=lambda v: "-".join(str(i) for i in v))
    assert parser.parse({"ids": [1, 2, 3]}) == {"ids": "1-2-3"}


def test_convert_failure() -> None:
    parser = Parser()
    parser.add_param("page", convert=int)
    with pytest.raises(ParamError) as exc_info:
        parser.parse({"page": "two"})
    assert exc_info.value.code is ParamErrorCode.CONVERT
    assert isinstance(exc_info.value.__cause__, ValueError)


# -- dest, declarations, defaults --------------------------------------------


def test_dest_renames_output_key() -> None:
    parser = Parser()
    parser.add_param("q", dest="query")
    assert parser.parse({"q": "books"}) == {"query": "books"}


def test_duplicate_name_rejected() -> None:
    parser = Parser()
    parser.add_param("title")
    with pytest.raises(ValueError, match="already exists"):
        parser.add_param("title")


def test_dest_clashing_with_declared_name_rejected() -> None:
    parser = Parser()
    parser.add_param("title")
    with pytest.raises(ValueError, match="dest: 'title' already exists"):
        parser.add_param("name", dest="title")


def test_remove_param() -> None:
    parser = Parser()
    parser.add_param("a")
    parser.add_param("b")
    parser.remove_param("a", "missing")
    assert list(parser.params) == ["b"]


def test_global_options_are_overridable() -> None:
    parser = Parser(trim=True, required=True)
    parser.add_param("title")
    parser.add_param("note", required=False)
    assert parser.parse({"title": " x "}) == {"title": "x", "note": None}
    with pytest.raises(ParamError):
        parser.parse({})


def test_first_failure_wins() -> None:
    parser = Parser()
    parser.add_param("a", required=True)
    parser.add_param("b", type="number")
    with pytest.raises(ParamError) as exc_info:
        parser.parse({"b": "x"})
    assert exc_info.value.key == "a"


def test_choices_predicate_error_becomes_param_error() -> None:
    parser = Parser()
    parser.add_param("n", choices=lambda v: v > 0)
    with pytest.raises(ParamError) as exc_info:
        parser.parse({"n": "x"})
    assert exc_info.value.code is ParamErrorCode.CHOICES
    assert isinstance(exc_info.value.__cause__, TypeError)


def test_mutable_default_is_not_shared() -> None:
    parser = Parser()
    parser.add_param("tags", default=[])
    first = parser.parse({})["tags"]
    first.append("leaked")
    assert parser.parse({}) == {"tags": []}


def test_param_error_argument_order() -> None:
    exc = ParamError(ParamErrorCode.TYPE, "page", "bad page")
    assert (exc.code, exc.key, exc.message) == (ParamErrorCode.TYPE, "page", "bad page")
