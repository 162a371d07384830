"""Litestar-Inertia: a server-side Inertia.js adapter for Litestar.

Basic usage:
    from litestar import Litestar, Request, Response, get
    from litestar_inertia import Inertia, InertiaConfig, InertiaPlugin, lazy

    @get("/dashboard")
    async def dashboard(request: Request, inertia: Inertia) -> Response:
        return await inertia.render(request, "Dashboard", {"stats": lazy(load_stats)})

    app = Litestar(
        route_handlers=[dashboard],
        plugins=[InertiaPlugin(InertiaConfig(root_template="templates/index.html", version="1"))],
    )
"""

from litestar_inertia.__metadata__ import __version__
from litestar_inertia.config import InertiaConfig, InertiaSSRConfig
from litestar_inertia.exception_handler import exception_to_http_response
from litestar_inertia.exceptions import (
    FlashProviderError,
    LitestarInertiaError,
    PageSerializationError,
    RootTemplateError,
)
from litestar_inertia.flash import FlashBridge, FlashProvider, InMemoryFlashProvider, SessionFlashProvider
from litestar_inertia.inertia import Inertia
from litestar_inertia.middleware import InertiaMiddleware
from litestar_inertia.plugin import InertiaPlugin
from litestar_inertia.props import InertiaProp, always, defer, lazy
from litestar_inertia.request import (
    InertiaDetails,
    InertiaHeaders,
    InertiaRequest,
    clear_history,
    set_encrypt_history,
    set_props,
    set_template_data,
    set_validation_errors,
)
from litestar_inertia.response import InertiaBack, InertiaExternalRedirect, InertiaRedirect
from litestar_inertia.ssr import SSRClient, SSRRendered, SSRUnavailable
from litestar_inertia.types import PageProps, PartialReload
from litestar_inertia.version import VersionNegotiator, version_from_file

__all__ = (
    "FlashBridge",
    "FlashProvider",
    "FlashProviderError",
    "InMemoryFlashProvider",
    "Inertia",
    "InertiaBack",
    "InertiaConfig",
    "InertiaDetails",
    "InertiaExternalRedirect",
    "InertiaHeaders",
    "InertiaMiddleware",
    "InertiaPlugin",
    "InertiaProp",
    "InertiaRedirect",
    "InertiaRequest",
    "InertiaSSRConfig",
    "LitestarInertiaError",
    "PageProps",
    "PageSerializationError",
    "PartialReload",
    "RootTemplateError",
    "SSRClient",
    "SSRRendered",
    "SSRUnavailable",
    "SessionFlashProvider",
    "VersionNegotiator",
    "__version__",
    "always",
    "clear_history",
    "defer",
    "exception_to_http_response",
    "lazy",
    "set_encrypt_history",
    "set_props",
    "set_template_data",
    "set_validation_errors",
    "version_from_file",
)
