"""Restly command-line interface powered by Typer."""

import importlib
import sys
from pathlib import Path
from typing import Annotated

import typer

from restly.app import Restly

app = typer.Typer(name="restly", add_completion=False, no_args_is_help=True)


# ------------------------------------------------------------------
# Target resolution
# ------------------------------------------------------------------


def _load_app(path: str) -> tuple[str, Restly]:
    """Import the app named by a CLI *path* argument.

    Accepted forms:
    - ``module:var``   → imports ``module`` and reads ``var``
    - ``file.py``      → imports ``file``, scans for a Restly instance

    Returns the ``"module:var"`` target string and the app itself.
    """
    if ":" in path:
        module_name, var_name = path.split(":", 1)
        mod = _import(module_name, Path.cwd())
        found = getattr(mod, var_name, None)
        if not isinstance(found, Restly):
            typer.echo(f"Error: {path!r} is not a Restly instance.", err=True)
            raise typer.Exit(1)
        return path, found

    file = Path(path)
    if not file.exists():
        typer.echo(f"Error: file {path!r} not found.", err=True)
        raise typer.Exit(1)

    mod = _import(file.stem, file.resolve().parent)
    var_name = _find_restly_var(mod)
    if var_name is None:
        typer.echo(
            f"Error: no Restly instance found in {path!r}. Provide an explicit target, e.g. main:app",
            err=True,
        )
        raise typer.Exit(1)

    return f"{file.stem}:{var_name}", getattr(mod, var_name)


def _import(module_name: str, directory: Path) -> object:
    # Ensure the directory is on sys.path so we can import from it.
    parent = str(directory)
    if parent not in sys.path:
        sys.path.insert(0, parent)

    try:
        return importlib.import_module(module_name)
    except Exception as exc:
        typer.echo(f"Error importing {module_name!r}: {exc}", err=True)
        raise typer.Exit(1) from exc


def _find_restly_var(mod: object) -> str | None:
    """Scan a module for a ``Restly`` instance.

    Checks ``app`` and ``api`` first, then falls back to any attribute.
    """
    for name in ("app", "api"):
        if isinstance(getattr(mod, name, None), Restly):
            return name

    for name in dir(mod):
        if name.startswith("_"):
            continue
        if isinstance(getattr(mod, name, None), Restly):
            return name

    return None


# ------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------


@app.command()
def dev(
    path: Annotated[str, typer.Argument(help="Python file or module:var target.")] = "main.py",
    host: Annotated[str, typer.Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Bind port.")] = 8000,
    reload: Annotated[bool | None, typer.Option("--reload/--no-reload", help="Auto-reload on code changes.")] = None,
) -> None:
    """Start a development server with auto-reload and debug logging."""
    from restly._server import serve

    target, _ = _load_app(path)
    serve(target, host=host, port=port, dev=True, reload=reload)


@app.command()
def run(
    path: Annotated[str, typer.Argument(help="Python file or module:var target.")] = "main.py",
    host: Annotated[str, typer.Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Bind port.")] = 8000,
    workers: Annotated[int, typer.Option(help="Number of worker processes.")] = 1,
) -> None:
    """Start a production server."""
    from restly._server import serve

    target, _ = _load_app(path)
    serve(target, host=host, port=port, workers=workers)


@app.command()
def routes(
    path: Annotated[str, typer.Argument(help="Python file or module:var target.")] = "main.py",
) -> None:
    """List registered url rules in the order they are tried."""
    _, restly_app = _load_app(path)
    registered = restly_app.router.routes
    if not registered:
        typer.echo("No resources registered.")
        return

    width = max(len(route.rule.rule) for route in registered)
    for route in registered:
        methods = ", ".join(sorted(restly_app.allowed_methods(route.resource))) or "-"
        typer.echo(f"{route.rule.rule.ljust(width)}  {methods}")
