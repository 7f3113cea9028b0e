"""Tests for the httpx-backed image transport.

Uses ``httpx.MockTransport`` so no request leaves the process.
"""

from __future__ import annotations

import httpx
import pytest

from kml_mapsite.core.config import IngestConfig
from kml_mapsite.core.exceptions import FetchError
from kml_mapsite.transport.httpx_transport import HttpxTransport

URL = "https://example.org/photos/a.png"


def _transport(handler, **kwargs) -> HttpxTransport:  # noqa: ANN001
    return HttpxTransport(transport=httpx.MockTransport(handler), **kwargs)


class TestSuccessfulFetch:
    def test_returns_body_and_content_type(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"PNGDATA", headers={"Content-Type": "image/png"})

        with _transport(handler) as transport:
            fetched = transport.get(URL)

        assert fetched.url == URL
        assert fetched.content == b"PNGDATA"
        assert fetched.content_type == "image/png"
        assert fetched.status_code == 200
        assert fetched.looks_like_image is True

    def test_missing_content_type(self) -> None:
        with _transport(lambda request: httpx.Response(200, content=b"x")) as transport:
            fetched = transport.get(URL)

        assert fetched.content_type == ""
        assert fetched.looks_like_image is False

    def test_sends_user_agent_and_accept(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"x")

        with _transport(handler, user_agent="map-bot/1.0") as transport:
            transport.get(URL)

        assert seen[0].headers["User-Agent"] == "map-bot/1.0"
        assert seen[0].headers["Accept"] == "image/*,*/*"
        assert seen[0].method == "GET"

    def test_follows_redirects(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old.png":
                return httpx.Response(301, headers={"Location": "https://cdn.example.org/new.png"})
            return httpx.Response(200, content=b"moved", headers={"Content-Type": "image/png"})

        with _transport(handler) as transport:
            fetched = transport.get("https://example.org/old.png")

        assert fetched.content == b"moved"
        assert fetched.url == "https://example.org/old.png"


class TestFailures:
    """Every failure mode surfaces as ``FetchError``."""

    @pytest.mark.parametrize("status", [404, 403, 500, 503])
    def test_non_success_status(self, status: int) -> None:
        with _transport(lambda request: httpx.Response(status)) as transport:
            with pytest.raises(FetchError) as exc_info:
                transport.get(URL)

        assert exc_info.value.status_code == status
        assert exc_info.value.url == URL
        assert str(status) in str(exc_info.value)

    def test_too_many_redirects(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"Location": str(request.url)})

        with _transport(handler, max_redirects=2) as transport:
            with pytest.raises(FetchError, match="Too many redirects"):
                transport.get(URL)

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with _transport(handler) as transport:
            with pytest.raises(FetchError, match="Timed out") as exc_info:
                transport.get(URL)

        assert exc_info.value.status_code is None

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Name or service not known", request=request)

        with _transport(handler) as transport:
            with pytest.raises(FetchError, match="Request failed"):
                transport.get(URL)


class TestFromConfig:
    def test_uses_configured_user_agent(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["User-Agent"])
            return httpx.Response(200, content=b"x")

        config = IngestConfig(user_agent="custom-agent", request_timeout_s=5.0)
        mock = httpx.MockTransport(handler)
        with HttpxTransport.from_config(config, transport=mock) as transport:
            transport.get(URL)

        assert seen == ["custom-agent"]

    def test_close_closes_client(self) -> None:
        transport = _transport(lambda request: httpx.Response(200))
        transport.close()

        assert transport._client.is_closed is True

    def test_name(self) -> None:
        with _transport(lambda request: httpx.Response(200)) as transport:
            assert transport.name == "HttpxTransport"
