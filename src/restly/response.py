"""ASGI responses."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

if TYPE_CHECKING:
    from restly._types import Send


class Response:
    """A raw HTTP response."""

    __slots__ = ("body", "headers", "media_type", "status_code")

    def __init__(
        self,
        body: bytes = b"",
        status_code: int = 200,
        headers: dict[str, str] | None = None,
        media_type: str = "text/plain; charset=utf-8",
    ) -> None:
        self.body = body
        self.status_code = status_code
        self.headers = headers or {}
        self.media_type = media_type

    async def send(self, send: Send) -> None:
        raw_headers = [
            (b"content-type", self.media_type.encode("latin-1")),
            (b"content-length", str(len(self.body)).encode("latin-1")),
        ]
        raw_headers.extend((k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in self.headers.items())
        await send({"type": "http.response.start", "status": self.status_code, "headers": raw_headers})
        await send({"type": "http.response.body", "body": self.body})


class JSONResponse(Response):
    """A response whose body is *content* serialised as JSON.

    Pydantic models are dumped in JSON mode, at any depth.
    """

    __slots__ = ()

    def __init__(
        self,
        content: Any,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        body = json.dumps(content, default=_encode, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        super().__init__(body, status_code, headers, media_type="application/json")


def _encode(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    msg = f"Object of type {type(obj).__name__} is not JSON serializable"
    raise TypeError(msg)
