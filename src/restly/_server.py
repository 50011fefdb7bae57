import sys
from typing import Any


def serve(
    target: str,
    *,
    host: str = "127.0.0.1",
    port: int = 8000,
    dev: bool = False,
    reload: bool | None = None,
    workers: int = 1,
    log_level: str = "info",
    log_access: bool = False,
    granian_kwargs: dict[str, Any] | None = None,
) -> None:
    """Start a Granian server for the given *target* import path.

    Parameters
    ----------
    target:
        ``"module:var"`` import path understood by Granian.
    dev:
        Turns on reload (unless *reload* says otherwise), debug logging
        and access logs.
    reload:
        Enable auto-reload.  ``None`` means follow *dev* flag.
    """
    from granian import Granian

    reload = dev if reload is None else reload
    if dev:
        log_level, log_access = "debug", True

    _print_banner(target, host=host, port=port, workers=workers, reload=reload, dev=dev)

    Granian(
        target=target,
        address=host,
        port=port,
        interface="asgi",
        workers=workers,
        reload=reload,
        log_level=log_level,
        log_access=log_access,
        **(granian_kwargs or {}),
    ).serve()


_BOLD = "\033[1m"
_DIM = "\033[2m"
_RESET = "\033[0m"


def _print_banner(
    target: str,
    *,
    host: str,
    port: int,
    workers: int,
    reload: bool,
    dev: bool,
) -> None:
    styled = sys.stdout.isatty()

    def style(code: str, text: str) -> str:
        return f"{code}{text}{_RESET}" if styled else text

    rows = {
        "app": target,
        "listen": f"http://{host}:{port}",
        "mode": "development" if dev else "production",
        "workers": str(workers),
        "reload": "on" if reload else "off",
    }
    print(style(_BOLD, "restly"))
    for key, value in rows.items():
        print(f"  {style(_DIM, key.ljust(8))}{value}")
    print(flush=True)
