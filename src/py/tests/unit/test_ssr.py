"""Tests for the SSR client.

The SSR server is replaced by an ``httpx.MockTransport``.
"""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import anyio
import httpx
import pytest

from litestar_inertia import InertiaSSRConfig, SSRClient, SSRRendered, SSRUnavailable

pytestmark = pytest.mark.anyio

SSR_URL = "http://ssr.test/render"
PAGE = b'{"component":"Dashboard","props":{},"url":"/dashboard","version":"v3"}'

Handler = Callable[[httpx.Request], "httpx.Response | Awaitable[httpx.Response]"]


def _client(handler: Handler, timeout: float = 2.0) -> SSRClient:
    config = InertiaSSRConfig(url=SSR_URL, timeout=timeout)
    return SSRClient(config, httpx.AsyncClient(transport=httpx.MockTransport(handler)))


async def test_rendered_markup() -> None:
    seen: "list[httpx.Request]" = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"head": ["<title>SSR</title>"], "body": '<div id="app">SSR</div>'})

    result = await _client(handler).render(PAGE)

    assert result == SSRRendered(body='<div id="app">SSR</div>', head=["<title>SSR</title>"])
    assert result.head_html == "<title>SSR</title>"
    assert str(seen[0].url) == SSR_URL
    assert seen[0].method == "POST"
    assert seen[0].headers["content-type"] == "application/json"
    assert json.loads(seen[0].content) == json.loads(PAGE)


async def test_missing_head_is_empty() -> None:
    result = await _client(lambda request: httpx.Response(200, json={"body": "<div></div>"})).render(PAGE)

    assert isinstance(result, SSRRendered)
    assert result.head == []
    assert result.head_html == ""


async def test_disabled_without_config() -> None:
    result = await SSRClient().render(PAGE)

    assert result == SSRUnavailable("disabled")


async def test_disabled_config_skips_the_server() -> None:
    seen: "list[httpx.Request]" = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"body": ""})

    client = SSRClient(
        InertiaSSRConfig(enabled=False, url=SSR_URL), httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )

    assert not client.enabled
    assert await client.render(PAGE) == SSRUnavailable("disabled")
    assert seen == []


async def test_error_status_falls_back(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="litestar_inertia"):
        result = await _client(lambda request: httpx.Response(500, text="boom")).render(PAGE)

    assert result == SSRUnavailable("returned HTTP 500")
    assert "falling back to client-side rendering" in caplog.text


async def test_invalid_json_falls_back() -> None:
    result = await _client(lambda request: httpx.Response(200, content=b"<html>")).render(PAGE)

    assert result == SSRUnavailable("returned invalid JSON")


@pytest.mark.parametrize(
    ("payload", "reason"),
    [
        (["<div></div>"], "unexpected payload type 'list'"),
        ({"head": []}, "invalid 'body' (expected string)"),
        ({"body": "<div></div>", "head": [1, 2]}, "invalid 'head' (expected list[str])"),
        ({"body": "<div></div>", "head": "<title>SSR</title>"}, "invalid 'head' (expected list[str])"),
    ],
)
async def test_unexpected_payload_falls_back(payload: Any, reason: str) -> None:
    result = await _client(lambda request: httpx.Response(200, json=payload)).render(PAGE)

    assert result == SSRUnavailable(f"returned {reason}")


async def test_unreachable_server_falls_back() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = await _client(handler).render(PAGE)

    assert result == SSRUnavailable("is not reachable (ConnectError)")


async def test_slow_server_falls_back() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await anyio.sleep(1)
        return httpx.Response(200, json={"body": "<div></div>"})

    result = await _client(handler, timeout=0.05).render(PAGE)

    assert isinstance(result, SSRUnavailable)
    assert result.reason == "timed out after 0.05s"


async def test_malformed_url_falls_back(caplog: pytest.LogCaptureFixture) -> None:
    client = SSRClient(InertiaSSRConfig(url="http://[::1", timeout=0.5))

    with caplog.at_level(logging.WARNING, logger="litestar_inertia"):
        result = await client.render(PAGE)

    assert result == SSRUnavailable("is not reachable (InvalidURL)")
    assert "falling back to client-side rendering" in caplog.text
