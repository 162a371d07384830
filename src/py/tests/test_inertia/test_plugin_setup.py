import hashlib
from pathlib import Path
from typing import Any

import httpx
import pytest
from litestar import Litestar, Request, Response, get, post
from litestar.exceptions import ImproperlyConfiguredException
from litestar.middleware.session.server_side import ServerSideSessionConfig
from litestar.stores.memory import MemoryStore
from litestar.testing import create_test_client  # pyright: ignore[reportUnknownVariableType]

from litestar_inertia import (
    Inertia,
    InertiaConfig,
    InertiaHeaders,
    InertiaPlugin,
    InertiaRequest,
    RootTemplateError,
    SessionFlashProvider,
    set_validation_errors,
)

pytestmark = pytest.mark.anyio

INERTIA_HEADERS = {InertiaHeaders.ENABLED.value: "true"}


@get("/", component="Home")
async def home(request: Request[Any, Any, Any], inertia: Inertia) -> Response[Any]:
    return await inertia.render(request)


def test_missing_root_template_fails_at_startup(tmp_path: Path) -> None:
    with pytest.raises(RootTemplateError):
        InertiaPlugin(InertiaConfig(root_template=tmp_path / "missing.html"))


def test_malformed_root_template_fails_at_startup(tmp_path: Path) -> None:
    template = tmp_path / "index.html"
    template.write_text("<body>{{ inertia </body>")

    with pytest.raises(RootTemplateError):
        InertiaPlugin(InertiaConfig(root_template=template))


def test_session_flash_provider_requires_session_middleware(root_template_path: Path) -> None:
    plugin = InertiaPlugin(InertiaConfig(root_template=root_template_path, flash_provider=SessionFlashProvider()))

    with pytest.raises(ImproperlyConfiguredException, match="session middleware"):
        Litestar(route_handlers=[home], plugins=[plugin])


def test_plugin_configures_the_app(inertia_plugin: InertiaPlugin) -> None:
    app = Litestar(route_handlers=[home], plugins=[inertia_plugin])

    assert app.request_class is InertiaRequest
    assert "inertia" in app.dependencies


async def test_inertia_dependency_is_the_plugin_adapter(inertia_plugin: InertiaPlugin) -> None:
    @get("/same")
    async def same(inertia: Inertia) -> bool:
        return inertia is inertia_plugin.inertia

    with create_test_client(route_handlers=[same], plugins=[inertia_plugin]) as client:
        assert client.get("/same").text == "true"


async def test_config_values_reach_the_page(root_template_path: Path, tmp_path: Path) -> None:
    manifest = tmp_path / "manifest.json"
    manifest.write_text('{"main.js": "main-abc123.js"}')
    config = InertiaConfig(
        root_template=root_template_path,
        version="ignored",
        version_file=manifest,
        container_id="root",
        extra_static_page_props={"app_name": "Acme"},
        extra_template_data={"title": "Acme Admin"},
    )
    version = hashlib.md5(manifest.read_bytes()).hexdigest()

    with create_test_client(route_handlers=[home], plugins=[InertiaPlugin(config)]) as client:
        page = client.get("/", headers={**INERTIA_HEADERS, InertiaHeaders.VERSION.value: version}).json()
        assert page["version"] == version
        assert page["props"] == {"app_name": "Acme", "errors": {}}

        document = client.get("/").text
        assert '<div id="root" data-page="' in document
        assert "<title>Acme Admin</title>" in document


async def test_config_from_environment(root_template_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INERTIA_VERSION", "from-env")
    monkeypatch.setenv("INERTIA_ENCRYPT_HISTORY", "true")

    with create_test_client(route_handlers=[home], plugins=[InertiaPlugin(InertiaConfig(root_template_path))]) as client:
        page = client.get("/", headers={**INERTIA_HEADERS, InertiaHeaders.VERSION.value: "from-env"}).json()

        assert page["version"] == "from-env"
        assert page["encryptHistory"] is True


async def test_session_flash_round_trip(root_template_path: Path) -> None:
    @post("/users")
    async def store_user(request: Request[Any, Any, Any], inertia: Inertia) -> Response[Any]:
        set_validation_errors(request, {"email": ["The email has already been taken."]})
        return inertia.redirect(request, "/")

    plugin = InertiaPlugin(InertiaConfig(root_template=root_template_path, flash_provider=SessionFlashProvider()))

    with create_test_client(
        route_handlers=[home, store_user],
        plugins=[plugin],
        middleware=[ServerSideSessionConfig().middleware],
        stores={"sessions": MemoryStore()},
    ) as client:
        response = client.post("/users", headers=INERTIA_HEADERS, follow_redirects=False)
        assert response.status_code == 303

        page = client.get("/", headers=INERTIA_HEADERS).json()
        assert page["props"]["errors"] == {"email": ["The email has already been taken."]}

        page = client.get("/", headers=INERTIA_HEADERS).json()
        assert page["props"]["errors"] == {}


async def test_ssr_client_lifecycle(root_template_path: Path) -> None:
    plugin = InertiaPlugin(InertiaConfig(root_template=root_template_path, ssr=True))

    assert plugin.ssr_client is None

    with create_test_client(route_handlers=[home], plugins=[plugin]):
        assert isinstance(plugin.ssr_client, httpx.AsyncClient)
        assert not plugin.ssr_client.is_closed
        assert plugin.inertia.ssr.client is plugin.ssr_client

    assert plugin.ssr_client is None
    assert plugin.inertia.ssr.client is None


async def test_no_ssr_client_without_ssr(inertia_plugin: InertiaPlugin) -> None:
    with create_test_client(route_handlers=[home], plugins=[inertia_plugin]):
        assert inertia_plugin.ssr_client is None


async def test_prebuilt_ssr_client_is_kept(root_template_path: Path) -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"body": ""})))
    inertia = Inertia.from_file(root_template_path, ssr=InertiaConfig(ssr=True).ssr_config, ssr_client=client)
    plugin = InertiaPlugin(InertiaConfig(), inertia=inertia)

    with create_test_client(route_handlers=[home], plugins=[plugin]):
        assert plugin.ssr_client is None
        assert inertia.ssr.client is client

    assert inertia.ssr.client is client
