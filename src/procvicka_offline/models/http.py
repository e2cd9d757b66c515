from __future__ import annotations

from typing import Literal
from urllib.parse import urldefrag

from pydantic import BaseModel, ConfigDict, field_validator

RequestMode = Literal["navigate", "same-origin", "no-cors", "cors"]


class Request(BaseModel):
    """An intercepted request as seen by the worker."""

    model_config = ConfigDict(frozen=True)

    url: str  # Absolute URL
    method: str = "GET"
    mode: RequestMode = "cors"
    headers: dict[str, str] = {}

    @field_validator("method")
    @classmethod
    def normalise_method(cls, v: str) -> str:
        return v.upper()

    @property
    def cache_key(self) -> str:
        """Store key: the absolute URL without its fragment."""
        return urldefrag(self.url).url

    @property
    def is_navigation(self) -> bool:
        return self.mode == "navigate"


class Response(BaseModel):
    """HTTP response with an owned body buffer.

    The body is plain ``bytes`` rather than a one-shot stream, so the same
    response can be stored and returned. ``clone()`` still hands out an
    independent copy so headers mutated by one holder never leak into another.
    """

    status: int = 200
    status_text: str = "OK"
    headers: dict[str, str] = {}
    body: bytes = b""
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status <= 299

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def clone(self) -> Response:
        return self.model_copy(deep=True)

    @classmethod
    def offline(cls, *, content_type: str | None = None) -> Response:
        """Synthesized 503 returned when neither cache nor network can answer."""
        headers = {"content-type": content_type} if content_type else {}
        return cls(
            status=503,
            status_text="Service Unavailable",
            headers=headers,
            body=b"Offline",
        )
