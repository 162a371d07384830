from typing import Any
from urllib.parse import quote

import pytest
from litestar import get
from litestar.testing import RequestFactory, create_test_client  # pyright: ignore[reportUnknownVariableType]

from litestar_inertia import InertiaDetails, InertiaHeaders, InertiaPlugin, InertiaRequest, PartialReload
from litestar_inertia.request import get_request_context, parse_partial_reload

pytestmark = pytest.mark.anyio


async def test_is_inertia(inertia_plugin: InertiaPlugin) -> None:
    @get("/")
    async def handler(request: InertiaRequest[Any, Any, Any]) -> bool:
        return request.is_inertia

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        assert client.get("/").text == "false"
        assert client.get("/", headers={InertiaHeaders.ENABLED.value: "false"}).text == "false"
        assert client.get("/", headers={InertiaHeaders.ENABLED.value: "true", "X-Inertia-Version": "v3"}).text == "true"


async def test_inertia_version(inertia_plugin: InertiaPlugin) -> None:
    @get("/")
    async def handler(request: InertiaRequest[Any, Any, Any]) -> str:
        return request.inertia_version or ""

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get("/", headers={InertiaHeaders.ENABLED.value: "true", InertiaHeaders.VERSION.value: "v3"})
        assert response.text == "v3"


async def test_inertia_enabled_follows_route_opts(inertia_plugin: InertiaPlugin) -> None:
    @get("/", component="Home")
    async def enabled(request: InertiaRequest[Any, Any, Any]) -> bool:
        return request.inertia_enabled

    @get("/plain")
    async def plain(request: InertiaRequest[Any, Any, Any]) -> bool:
        return request.inertia_enabled

    with create_test_client(route_handlers=[enabled, plain], plugins=[inertia_plugin]) as client:
        assert client.get("/").text == "true"
        assert client.get("/plain").text == "false"


async def test_partial_keys_are_trimmed(inertia_plugin: InertiaPlugin) -> None:
    @get("/")
    async def handler(request: InertiaRequest[Any, Any, Any]) -> "dict[str, list[str]]":
        return {
            "only": sorted(request.inertia.partial_keys),
            "except": sorted(request.inertia.partial_except_keys),
        }

    with create_test_client(route_handlers=[handler], plugins=[inertia_plugin]) as client:
        response = client.get(
            "/",
            headers={
                InertiaHeaders.ENABLED.value: "true",
                InertiaHeaders.VERSION.value: "v3",
                InertiaHeaders.PARTIAL_DATA.value: " user , ,teams,",
                InertiaHeaders.PARTIAL_EXCEPT.value: "flash",
            },
        )
        assert response.json() == {"only": ["teams", "user"], "except": ["flash"]}


def test_uri_encoded_headers_are_decoded() -> None:
    request = RequestFactory().get(
        "/",
        headers={
            "x-inertia": "true",
            "x-inertia-partial-component": quote("Users/Index"),
            "x-inertia-partial-component-uri-autoencoded": "true",
        },
    )

    assert InertiaDetails(request).partial_component == "Users/Index"


def _partial_request(**headers: str) -> Any:
    lowered = {key.lower(): value for key, value in headers.items()}
    return RequestFactory().get("/", headers={"x-inertia": "true", **lowered})


def test_partial_reload_for_the_rendered_component() -> None:
    request = _partial_request(
        **{
            InertiaHeaders.PARTIAL_COMPONENT.value: "Dashboard",
            InertiaHeaders.PARTIAL_DATA.value: "user",
            InertiaHeaders.PARTIAL_EXCEPT.value: "flash",
        }
    )

    assert parse_partial_reload(request, "Dashboard") == PartialReload(
        component="Dashboard", only=frozenset({"user"}), except_=frozenset({"flash"})
    )


def test_partial_reload_for_another_component() -> None:
    request = _partial_request(
        **{InertiaHeaders.PARTIAL_COMPONENT.value: "Settings", InertiaHeaders.PARTIAL_DATA.value: "user"}
    )

    assert parse_partial_reload(request, "Dashboard") is None


def test_partial_reload_needs_a_key_header() -> None:
    request = _partial_request(**{InertiaHeaders.PARTIAL_COMPONENT.value: "Dashboard"})

    assert parse_partial_reload(request, "Dashboard") is None


def test_partial_reload_needs_an_inertia_request() -> None:
    request = RequestFactory().get(
        "/", headers={"x-inertia-partial-component": "Dashboard", "x-inertia-partial-data": "user"}
    )

    assert parse_partial_reload(request, "Dashboard") is None


def test_request_context_is_created_once() -> None:
    request = RequestFactory().get("/")

    context = get_request_context(request)
    context.props["user"] = {"id": 1}

    assert get_request_context(request) is context
