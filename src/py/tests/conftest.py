import html
import json
import re
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any, cast

import pytest

from litestar_inertia import Inertia, InertiaConfig, InertiaPlugin, InMemoryFlashProvider

here = Path(__file__).parent

_DATA_PAGE_RE = re.compile(r'data-page="([^"]*)"')

# Environment variables that may affect test behavior - clear before each test
_INERTIA_ENV_VARS = [
    "INERTIA_VERSION",
    "INERTIA_SSR_URL",
    "INERTIA_ENCRYPT_HISTORY",
]


@pytest.fixture(autouse=True)
def clean_inertia_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Clear Inertia-related environment variables before each test for isolation."""
    for var in _INERTIA_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def root_template_path() -> Generator[Path, None, None]:
    yield here / "templates" / "index.html.j2"


@pytest.fixture
def flash_provider() -> Generator[InMemoryFlashProvider, None, None]:
    yield InMemoryFlashProvider()


@pytest.fixture
def inertia_config(
    root_template_path: Path, flash_provider: InMemoryFlashProvider
) -> Generator[InertiaConfig, None, None]:
    yield InertiaConfig(root_template=root_template_path, version="v3", flash_provider=flash_provider)


@pytest.fixture
def inertia_plugin(inertia_config: InertiaConfig) -> Generator[InertiaPlugin, None, None]:
    yield InertiaPlugin(config=inertia_config)


@pytest.fixture
def inertia(inertia_plugin: InertiaPlugin) -> Generator[Inertia, None, None]:
    yield inertia_plugin.inertia


def _page_from_html(document: str) -> "dict[str, Any]":
    match = _DATA_PAGE_RE.search(document)
    assert match is not None, "no data-page attribute in document"
    return cast("dict[str, Any]", json.loads(html.unescape(match.group(1))))


@pytest.fixture
def page_from_html() -> "Callable[[str], dict[str, Any]]":
    """Extract the page object from the ``data-page`` attribute of a full page response."""
    return _page_from_html
