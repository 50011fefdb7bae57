"""Tests for the restly command-line interface."""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING

from typer.testing import CliRunner

from restly.cli import app

if TYPE_CHECKING:
    from pathlib import Path

runner = CliRunner()

APP_SOURCE = textwrap.dedent(
    """
    from restly import Resource, Restly


    class Todo(Resource):
        def get(self, todo_id: str) -> str:
            return todo_id

        def delete(self, todo_id: str) -> str:
            return "success"


    class TodoList(Resource):
        def get(self) -> list:
            return []


    api = Restly()
    api.add_resource(TodoList, "/todos")
    api.add_resource(Todo, "/todos/<todo_id>")
    """
)


def _write_app(tmp_path: Path, name: str, source: str = APP_SOURCE) -> Path:
    file = tmp_path / f"{name}.py"
    file.write_text(source)
    return file


def test_routes_from_file(tmp_path: Path) -> None:
    file = _write_app(tmp_path, "cli_routes_app")
    result = runner.invoke(app, ["routes", str(file)])
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0].split() == ["/todos", "GET"]
    assert lines[1].split() == ["/todos/<todo_id>", "DELETE,", "GET"]


def test_routes_from_module_target(tmp_path: Path, monkeypatch) -> None:
    _write_app(tmp_path, "cli_target_app")
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, ["routes", "cli_target_app:api"])
    assert result.exit_code == 0, result.output
    assert "/todos/<todo_id>" in result.output


def test_routes_empty_app(tmp_path: Path) -> None:
    file = _write_app(tmp_path, "cli_empty_app", "from restly import Restly\napp = Restly()\n")
    result = runner.invoke(app, ["routes", str(file)])
    assert result.exit_code == 0
    assert "No resources registered." in result.output


def test_missing_file() -> None:
    result = runner.invoke(app, ["routes", "does_not_exist.py"])
    assert result.exit_code == 1


def test_file_without_app(tmp_path: Path) -> None:
    file = _write_app(tmp_path, "cli_no_app", "x = 1\n")
    result = runner.invoke(app, ["run", str(file)])
    assert result.exit_code == 1


def test_target_is_not_an_app(tmp_path: Path, monkeypatch) -> None:
    _write_app(tmp_path, "cli_wrong_target", "app = object()\n")
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, ["dev", "cli_wrong_target:app"])
    assert result.exit_code == 1


def test_dev_passes_target_to_server(tmp_path: Path, monkeypatch) -> None:
    calls: list[tuple[str, dict]] = []
    monkeypatch.setattr("restly._server.serve", lambda target, **kw: calls.append((target, kw)))
    file = _write_app(tmp_path, "cli_dev_app")
    result = runner.invoke(app, ["dev", str(file), "--port", "9000"])
    assert result.exit_code == 0, result.output
    assert calls == [("cli_dev_app:api", {"host": "127.0.0.1", "port": 9000, "dev": True, "reload": None})]
