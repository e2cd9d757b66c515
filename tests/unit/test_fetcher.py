"""Unit tests for procvicka_offline.fetcher."""

from __future__ import annotations

import httpx
import pytest
import respx

from procvicka_offline.config import FetcherSettings
from procvicka_offline.errors import ErrorCode, ProcvickaError
from procvicka_offline.fetcher import HttpxFetcher, build_http_client, to_response
from procvicka_offline.models.http import Request

# ---------------------------------------------------------------------------
# build_http_client
# ---------------------------------------------------------------------------


class TestBuildHttpClient:
    def test_client_configuration(self) -> None:
        client = build_http_client(FetcherSettings(timeout_seconds=12.5, user_agent="t/1"))
        assert isinstance(client, httpx.AsyncClient)
        assert client.follow_redirects is True
        assert client.timeout.read == 12.5
        assert client.headers["user-agent"] == "t/1"

    def test_defaults(self) -> None:
        client = build_http_client()
        assert client.timeout.connect == FetcherSettings().timeout_seconds


# ---------------------------------------------------------------------------
# to_response
# ---------------------------------------------------------------------------


class TestToResponse:
    def test_copies_status_headers_and_body(self) -> None:
        raw = httpx.Response(
            201,
            headers={"Content-Type": "application/json", "ETag": '"abc"'},
            content=b'{"ok":true}',
            request=httpx.Request("GET", "https://procvicka.test/api/x"),
        )
        response = to_response(raw)
        assert response.status == 201
        assert response.status_text == "Created"
        assert response.headers["content-type"] == "application/json"
        assert response.headers["etag"] == '"abc"'
        assert response.body == b'{"ok":true}'
        assert response.url == "https://procvicka.test/api/x"

    def test_drops_framing_headers(self) -> None:
        raw = httpx.Response(
            200,
            headers={"Content-Encoding": "identity", "Transfer-Encoding": "chunked"},
            content=b"abc",
            request=httpx.Request("GET", "https://procvicka.test/"),
        )
        response = to_response(raw)
        assert "content-encoding" not in response.headers
        assert "content-length" not in response.headers
        assert "transfer-encoding" not in response.headers


# ---------------------------------------------------------------------------
# HttpxFetcher
# ---------------------------------------------------------------------------


class TestHttpxFetcher:
    async def test_successful_fetch(self) -> None:
        with respx.mock:
            respx.get("https://procvicka.test/style.css").mock(
                return_value=httpx.Response(200, text="body{}")
            )
            async with httpx.AsyncClient() as client:
                fetcher = HttpxFetcher(client)
                response = await fetcher.fetch(Request(url="https://procvicka.test/style.css"))
                assert response.status == 200
                assert response.ok
                assert response.text == "body{}"

    async def test_404_is_a_response_not_an_error(self) -> None:
        with respx.mock:
            respx.get("https://procvicka.test/missing").mock(return_value=httpx.Response(404))
            async with httpx.AsyncClient() as client:
                fetcher = HttpxFetcher(client)
                response = await fetcher.fetch(Request(url="https://procvicka.test/missing"))
                assert response.status == 404
                assert not response.ok

    async def test_500_is_a_response_not_an_error(self) -> None:
        with respx.mock:
            respx.get("https://procvicka.test/api/boom").mock(return_value=httpx.Response(500))
            async with httpx.AsyncClient() as client:
                fetcher = HttpxFetcher(client)
                response = await fetcher.fetch(Request(url="https://procvicka.test/api/boom"))
                assert response.status == 500

    async def test_network_error_raises_error(self) -> None:
        with respx.mock:
            respx.get("https://procvicka.test/timeout").mock(
                side_effect=httpx.ConnectError("Connection refused")
            )
            async with httpx.AsyncClient() as client:
                fetcher = HttpxFetcher(client)
                with pytest.raises(ProcvickaError) as exc_info:
                    await fetcher.fetch(Request(url="https://procvicka.test/timeout"))
                assert exc_info.value.code == ErrorCode.NETWORK_ERROR
                assert exc_info.value.recoverable is True

    async def test_timeout_raises_error(self) -> None:
        with respx.mock:
            respx.get("https://procvicka.test/slow").mock(
                side_effect=httpx.ReadTimeout("timed out")
            )
            async with httpx.AsyncClient() as client:
                fetcher = HttpxFetcher(client)
                with pytest.raises(ProcvickaError) as exc_info:
                    await fetcher.fetch(Request(url="https://procvicka.test/slow"))
                assert exc_info.value.code == ErrorCode.NETWORK_ERROR

    async def test_redirect_followed(self) -> None:
        with respx.mock:
            respx.get("https://procvicka.test/old").mock(
                return_value=httpx.Response(301, headers={"location": "/new"})
            )
            respx.get("https://procvicka.test/new").mock(
                return_value=httpx.Response(200, text="Redirected content")
            )
            async with build_http_client() as client:
                fetcher = HttpxFetcher(client)
                response = await fetcher.fetch(Request(url="https://procvicka.test/old"))
                assert response.text == "Redirected content"
                assert response.url == "https://procvicka.test/new"

    async def test_request_headers_forwarded_without_host(self) -> None:
        with respx.mock:
            route = respx.get("https://procvicka.test/api/me").mock(
                return_value=httpx.Response(200)
            )
            async with httpx.AsyncClient() as client:
                fetcher = HttpxFetcher(client)
                await fetcher.fetch(
                    Request(
                        url="https://procvicka.test/api/me",
                        headers={"authorization": "Bearer t", "host": "elsewhere.test"},
                    )
                )
            sent = route.calls.last.request
            assert sent.headers["authorization"] == "Bearer t"
            assert sent.headers["host"] == "procvicka.test"
