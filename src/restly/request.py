"""The request object handed to resources that ask for it."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qs

if TYPE_CHECKING:
    from restly._types import Receive, Scope


class Request:
    """One HTTP request, as seen by a resource.

    ``path_params`` holds the url variables captured by the router.  The
    body is read lazily from the ASGI channel and kept after the first read.
    """

    __slots__ = ("_body", "_headers", "_receive", "_scope", "method", "path", "path_params")

    def __init__(
        self,
        scope: Scope,
        receive: Receive,
        path_params: dict[str, str] | None = None,
    ) -> None:
        self._scope = scope
        self._receive = receive
        self._body: bytes | None = None
        self._headers: dict[str, str] | None = None
        self.method: str = scope["method"].upper()
        self.path: str = scope["path"]
        self.path_params: dict[str, str] = dict(path_params or {})

    @property
    def query_params(self) -> dict[str, list[str]]:
        """Every value of every query-string key."""
        raw = self._scope.get("query_string", b"").decode("latin-1")
        return parse_qs(raw, keep_blank_values=True)

    @property
    def query(self) -> dict[str, str]:
        """Query parameters, first value per key."""
        return {key: values[0] for key, values in self.query_params.items()}

    @property
    def headers(self) -> dict[str, str]:
        """Lowercased header names; a repeated header keeps its last value."""
        if self._headers is None:
            self._headers = {
                name.decode("latin-1").lower(): value.decode("latin-1")
                for name, value in self._scope.get("headers", [])
            }
        return self._headers

    @property
    def content_type(self) -> str:
        """Media type of the body, without parameters."""
        media_type, _, _ = self.headers.get("content-type", "").partition(";")
        return media_type.strip().lower()

    async def body(self) -> bytes:
        if self._body is None:
            received = bytearray()
            more_body = True
            while more_body:
                message = await self._receive()
                received += message.get("body", b"")
                more_body = message.get("more_body", False)
            self._body = bytes(received)
        return self._body

    async def json(self) -> Any:
        """Decode the body as JSON; raises ``ValueError`` when it is not."""
        return json.loads(await self.body())
