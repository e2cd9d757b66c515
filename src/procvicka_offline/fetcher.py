"""Network access for the worker.

Only transport failures are errors: any ``httpx.HTTPError`` (connection
refused, DNS failure, timeout, broken stream) becomes a recoverable
``ProcvickaError(NETWORK_ERROR)``. An HTTP 404 or 500 comes back as an
ordinary ``Response``; the strategies decide what to do with it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import httpx
import structlog

from procvicka_offline.config import FetcherSettings
from procvicka_offline.errors import ErrorCode, ProcvickaError
from procvicka_offline.models.http import Response

if TYPE_CHECKING:
    from procvicka_offline.models.http import Request

log = structlog.get_logger()

# httpx has already decoded the body and framed it, so these no longer
# describe the bytes we keep.
_DROPPED_HEADERS = frozenset({"content-encoding", "content-length", "transfer-encoding"})

# Request headers that belong to the hop between application and worker.
_SKIPPED_REQUEST_HEADERS = frozenset({"host", "content-length", "connection"})


class Fetcher(Protocol):
    async def fetch(self, request: Request) -> Response: ...


def build_http_client(
    settings: FetcherSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared httpx client used for all network fetches."""
    settings = settings or FetcherSettings()
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": settings.user_agent},
        transport=transport,
    )


def to_response(response: httpx.Response) -> Response:
    """Convert a fully read httpx response into an owned ``Response``."""
    headers = {
        name.lower(): value
        for name, value in response.headers.items()
        if name.lower() not in _DROPPED_HEADERS
    }
    return Response(
        status=response.status_code,
        status_text=response.reason_phrase,
        headers=headers,
        body=response.content,
        url=str(response.url),
    )


class HttpxFetcher:
    """``Fetcher`` backed by an ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def fetch(self, request: Request) -> Response:
        headers = {
            name: value
            for name, value in request.headers.items()
            if name.lower() not in _SKIPPED_REQUEST_HEADERS
        }
        try:
            response = await self._client.request(request.method, request.url, headers=headers)
        except httpx.HTTPError as exc:
            log.debug("network_fetch_failed", url=request.url, error=str(exc))
            raise ProcvickaError(
                ErrorCode.NETWORK_ERROR,
                f"Network request to {request.url} failed: {exc}",
                recoverable=True,
            ) from exc

        log.debug("network_fetch", url=request.url, status=response.status_code)
        return to_response(response)
