"""httpx integration: route an application's client through the worker.

    worker = OfflineWorker(settings, storage, HttpxFetcher(build_http_client()))
    await worker.on_install()
    await worker.on_activate()
    async with httpx.AsyncClient(transport=OfflineTransport(worker)) as client:
        response = await client.get("http://localhost:8080/style.css")

Requests the worker does not intercept go to ``inner`` untouched. A request
carrying ``Sec-Fetch-Mode: navigate`` is treated as a page navigation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, get_args

import httpx

from procvicka_offline.models.http import Request, RequestMode

if TYPE_CHECKING:
    from procvicka_offline.models.http import Response
    from procvicka_offline.worker import OfflineWorker

_REQUEST_MODES = frozenset(get_args(RequestMode))


def to_worker_request(request: httpx.Request) -> Request:
    mode = request.headers.get("sec-fetch-mode", "cors").lower()
    return Request(
        url=str(request.url),
        method=request.method,
        mode=mode if mode in _REQUEST_MODES else "cors",
        headers=dict(request.headers),
    )


def to_httpx_response(response: Response, request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        status_code=response.status,
        headers=response.headers,
        content=response.body,
        request=request,
        extensions={"reason_phrase": response.status_text.encode("ascii", errors="replace")},
    )


class OfflineTransport(httpx.AsyncBaseTransport):
    def __init__(
        self,
        worker: OfflineWorker,
        inner: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._worker = worker
        self._inner = inner or httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            response = await self._worker.on_fetch(to_worker_request(request))
            if response is not None:
                return to_httpx_response(response, request)
        return await self._inner.handle_async_request(request)

    async def aclose(self) -> None:
        await self._worker.wait_until_idle()
        await self._inner.aclose()
