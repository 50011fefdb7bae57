"""Restly ASGI application."""

import asyncio
import logging
import sys
import traceback
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from restly._types import ASGIApp, Middleware, Receive, Scope, Send
from restly.errors import ConfigurationError
from restly.parser import Parser, ParamError, ParamErrorCode
from restly.request import Request
from restly.resource import HandlerMeta, method_table
from restly.response import JSONResponse, Response
from restly.routing import CompiledRoute, Router
from restly.validation import validate_handler_signature

logger = logging.getLogger("restly.app")

NOT_FOUND_MESSAGE = "This url does not have a corresponding resource"
UNSUPPORTED_MESSAGE = "This request method is not supported"
_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class _Endpoint:
    """Dispatch data for one resource, built once at registration time."""

    __slots__ = ("methods", "parsers")

    def __init__(self, methods: dict[str, HandlerMeta]) -> None:
        self.methods = methods
        # (resource, verb) -> parser associations
        self.parsers: dict[str, Parser] = {}


class Restly:
    """ASGI 3.0 application serving class-based resources.

    Parameters
    ----------
    strict:
        When ``True``, every verb handler's annotations are validated at
        registration time; see :func:`restly.validation.validate_handler_signature`.
    debug:
        When ``True``, 500 responses include the full traceback.
    """

    def __init__(self, *, strict: bool = False, debug: bool = False) -> None:
        self.router = Router()
        self.strict = strict
        self.debug = debug
        self._middleware: list[Middleware] = []
        self._endpoints: dict[int, _Endpoint] = {}
        self._app: ASGIApp | None = None

    # ------------------------------------------------------------------
    # Resource registration
    # ------------------------------------------------------------------

    def add_resource(
        self,
        resource: Any,
        rule: str,
        *,
        parsers: Mapping[str, Parser] | None = None,
    ) -> CompiledRoute:
        """Serve *resource* (a class or an instance) at *rule*.

        *parsers* maps verbs (``"post"``, ``"GET"``...) to the
        :class:`~restly.parser.Parser` applied to that verb's request data.
        Nothing is registered if any step fails.
        """
        route = self.router.table.prepare(rule, resource)
        endpoint = self._endpoints.get(id(route.resource)) or _Endpoint(method_table(route.resource))

        bound: dict[str, Parser] = {}
        for verb, parser in (parsers or {}).items():
            method = verb.upper()
            if method not in endpoint.methods:
                msg = f"Cannot attach a parser to {method} {rule!r}: {method.lower()} method is undefined."
                raise ConfigurationError(msg)
            bound[method] = parser

        if self.strict:
            merged = {**endpoint.parsers, **bound}
            for method, meta in endpoint.methods.items():
                validate_handler_signature(meta.handler, route.rule, method, merged.get(method))

        self.router.table.insert(route)
        endpoint.parsers.update(bound)
        self._endpoints[id(route.resource)] = endpoint
        return route

    def add_resource_map(self, mapping: Mapping[str, Any]) -> list[CompiledRoute]:
        """Register ``{rule: resource}`` entries in order.

        Stops at the first failing entry; entries before it stay registered.
        """
        return [self.add_resource(resource, rule) for rule, resource in mapping.items()]

    def allowed_methods(self, resource: Any) -> list[str]:
        endpoint = self._endpoints.get(id(resource))
        return list(endpoint.methods) if endpoint else []

    # ------------------------------------------------------------------
    # Middleware
    # ------------------------------------------------------------------

    def add_middleware(self, middleware: Middleware) -> None:
        """Register a middleware that wraps the ASGI app.

        Called as ``middleware(app)`` and must return an ASGI callable.
        """
        self._middleware.append(middleware)
        self._app = None  # invalidate cached chain

    def _build_app(self) -> ASGIApp:
        app: ASGIApp = self._handle
        for mw in reversed(self._middleware):
            app = mw(app)
        return app

    # ------------------------------------------------------------------
    # ASGI interface
    # ------------------------------------------------------------------

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await _handle_lifespan(receive, send)
            return

        if self._app is None:
            self._app = self._build_app()
        await self._app(scope, receive, send)

    async def _handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        variables, resource = self.router.get_resource(scope["path"])
        if resource is None:
            await _envelope(404, message=NOT_FOUND_MESSAGE).send(send)
            return

        endpoint = self._endpoints[id(resource)]
        method = scope["method"].upper()
        meta = endpoint.methods.get(method)
        if meta is None:
            await _envelope(400, error={"message": f"{method.lower()} method is undefined."}).send(send)
            return

        request = Request(scope, receive, variables)
        parser = endpoint.parsers.get(method)

        try:
            kwargs = await _collect_arguments(request, meta, parser, variables or {})
        except _UnsupportedBody:
            await _envelope(403, error={"message": UNSUPPORTED_MESSAGE}).send(send)
            return
        except ParamError as exc:
            await _envelope(400, error={"type": int(exc.code), "message": exc.message}).send(send)
            return
        except ValidationError as exc:
            await _envelope(400, error={"type": int(ParamErrorCode.TYPE), "message": str(exc)}).send(send)
            return

        try:
            result = await self._invoke(meta, kwargs)
            response = result if isinstance(result, Response) else _envelope(200, message="success", data=result)
        except Exception:
            logger.exception("500 %s %s", method, scope["path"])
            body: dict[str, Any] = {"code": 500, "message": "Internal Server Error"}
            if self.debug:
                body["traceback"] = traceback.format_exc()
            await JSONResponse(body, status_code=500).send(send)
            return

        await response.send(send)

    async def _invoke(self, meta: HandlerMeta, kwargs: dict[str, Any]) -> Any:
        if meta.is_coroutine:
            return await meta.handler(**kwargs)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: meta.handler(**kwargs))

    # ------------------------------------------------------------------
    # Granian convenience
    # ------------------------------------------------------------------

    def run(
        self,
        host: str = "127.0.0.1",
        port: int = 8000,
        *,
        dev: bool = False,
        reload: bool | None = None,
        workers: int = 1,
        log_level: str = "info",
        **granian_kwargs: Any,
    ) -> None:
        """Start the app with Granian.

        Parameters
        ----------
        dev:
            When ``True``, enables reload, debug logging, and access logs.
        reload:
            Auto-reload on code changes.  ``None`` follows *dev*.
        workers:
            Number of worker processes.
        log_level:
            Granian log level.
        """
        from restly._server import serve

        if not self.router.routes:
            msg = "No resource has been registered; call add_resource() before run()."
            raise ConfigurationError(msg)

        target = _resolve_target(self)
        serve(
            target,
            host=host,
            port=port,
            dev=dev,
            reload=reload,
            workers=workers,
            log_level=log_level,
            granian_kwargs=granian_kwargs or None,
        )


# ------------------------------------------------------------------
# Module-level helpers
# ------------------------------------------------------------------


class _UnsupportedBody(Exception):
    """A body-carrying request whose payload is not a JSON object."""


async def _collect_arguments(
    request: Request,
    meta: HandlerMeta,
    parser: Parser | None,
    variables: dict[str, str],
) -> dict[str, Any]:
    """Build the keyword arguments for a handler call."""
    supplied: dict[str, Any] = dict(variables)

    if parser is not None or meta.models:
        data = await _request_data(request)
        if parser is not None:
            supplied.update(parser.parse(data))
        for name, model in meta.models.items():
            supplied[name] = model.model_validate(data)

    if meta.takes_kwargs:
        kwargs = supplied
    else:
        kwargs = {name: supplied[name] for name in meta.param_names if name in supplied}
    if meta.wants_request:
        kwargs["request"] = request
    return kwargs


async def _request_data(request: Request) -> dict[str, Any]:
    """Query-string values overlaid by the JSON object body, if any."""
    data: dict[str, Any] = dict(request.query)
    if request.method.upper() not in _BODY_METHODS or not await request.body():
        return data
    if request.content_type != "application/json":
        raise _UnsupportedBody
    try:
        payload = await request.json()
    except ValueError as exc:
        raise _UnsupportedBody from exc
    if not isinstance(payload, dict):
        raise _UnsupportedBody
    data.update(payload)
    return data


def _envelope(code: int, **fields: Any) -> JSONResponse:
    return JSONResponse({"code": code, **fields}, status_code=code)


def _resolve_target(app: Restly) -> str:
    """Derive a ``"module:var"`` string for the given app instance.

    Searches ``__main__`` for a module-level variable whose value *is* the
    app.  Falls back to the caller's ``__file__`` stem when running as a
    script (``python main.py``) so Granian workers can import it.
    """
    main = sys.modules.get("__main__")
    if main is None:
        raise RuntimeError(
            "Cannot auto-detect Granian target: __main__ module not found. "
            "Run it through the CLI instead, e.g. restly run myapp:app."
        )

    var_name: str | None = None
    for name, val in vars(main).items():
        if val is app:
            var_name = name
            break

    if var_name is None:
        raise RuntimeError(
            "Cannot auto-detect Granian target: no module-level variable in "
            "__main__ references this Restly instance. "
            "Run it through the CLI instead, e.g. restly run myapp:app."
        )

    spec = getattr(main, "__spec__", None)
    module_name: str | None = spec.name if spec else None
    if not module_name:
        # Running as a script: use the filename stem so granian can import it.
        main_file = getattr(main, "__file__", None)
        module_name = Path(main_file).stem if main_file else None

    return f"{module_name}:{var_name}"


async def _handle_lifespan(receive: Receive, send: Send) -> None:
    """Acknowledge lifespan startup and shutdown; there is nothing to set up."""
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return
