from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import httpx
from litestar.plugins import InitPluginProtocol

from litestar_inertia.inertia import Inertia

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from litestar import Litestar
    from litestar.config.app import AppConfig

    from litestar_inertia.config import InertiaConfig


class InertiaPlugin(InitPluginProtocol):
    """Inertia plugin.

    This plugin configures Litestar for Inertia.js support, including:
    - Building the :class:`~litestar_inertia.inertia.Inertia` adapter (the root template is
      parsed here, so a broken template fails at startup)
    - Session middleware requirement validation for the session flash provider
    - Exception handler that flashes validation errors and redirects back
    - Asset version and redirect middleware
    - ``InertiaRequest`` as the default request class
    - An ``inertia`` dependency for route handlers

    SSR Client Pooling:
        When SSR is enabled, the plugin maintains a shared ``httpx.AsyncClient``
        for all SSR requests (connection pooling with keep-alive).
        The client is initialized during app lifespan and closed on shutdown.
        An adapter that already carries its own SSR client keeps it.

    Example::

        from litestar_inertia import Inertia, InertiaConfig, InertiaPlugin

        @get("/")
        async def home(request: Request, inertia: Inertia) -> Response:
            return await inertia.render(request, "Home", {"greeting": "hello"})

        app = Litestar(
            route_handlers=[home],
            plugins=[InertiaPlugin(InertiaConfig(root_template="templates/index.html"))],
            middleware=[ServerSideSessionConfig().middleware],
        )
    """

    __slots__ = ("_inertia", "_ssr_client", "config")

    def __init__(self, config: "InertiaConfig", inertia: "Inertia | None" = None) -> "None":
        """Initialize the plugin with Inertia configuration.

        Args:
            config: The Inertia configuration.
            inertia: A prebuilt adapter. Built from ``config`` when omitted.
        """
        self.config = config
        self._inertia = inertia if inertia is not None else Inertia.from_config(config)
        self._ssr_client: "httpx.AsyncClient | None" = None

    @property
    def inertia(self) -> "Inertia":
        return self._inertia

    @property
    def ssr_client(self) -> "httpx.AsyncClient | None":
        """Return the shared httpx.AsyncClient for SSR requests.

        Returns:
            The shared AsyncClient instance, or None outside the app lifespan or without SSR.
        """
        return self._ssr_client

    @asynccontextmanager
    async def lifespan(self, app: "Litestar") -> "AsyncGenerator[None, None]":
        """Manage the pooled SSR client.

        Args:
            app: The :class:`Litestar <litestar.app.Litestar>` instance.

        Yields:
            An asynchronous context manager.
        """
        if not self._inertia.ssr.enabled or self._inertia.ssr.client is not None:
            yield
            return

        limits = httpx.Limits(max_keepalive_connections=10, max_connections=20, keepalive_expiry=30.0)
        self._ssr_client = httpx.AsyncClient(limits=limits, timeout=httpx.Timeout(10.0))
        self._inertia.ssr.client = self._ssr_client
        try:
            yield
        finally:
            self._inertia.ssr.client = None
            await self._ssr_client.aclose()
            self._ssr_client = None

    def _provide_inertia(self) -> "Inertia":
        return self._inertia

    def on_app_init(self, app_config: "AppConfig") -> "AppConfig":
        """Configure application for use with Inertia.

        Args:
            app_config: The :class:`AppConfig <litestar.config.app.AppConfig>` instance.

        Raises:
            ImproperlyConfiguredException: If the session flash provider is used without a session middleware.

        Returns:
            The :class:`AppConfig <litestar.config.app.AppConfig>` instance.
        """

        from litestar.di import Provide
        from litestar.exceptions import HTTPException, ImproperlyConfiguredException
        from litestar.middleware import DefineMiddleware
        from litestar.middleware.session import SessionMiddleware
        from litestar.security.session_auth.middleware import MiddlewareWrapper
        from litestar.utils.predicates import is_class_and_subclass

        from litestar_inertia.exception_handler import exception_to_http_response
        from litestar_inertia.flash import SessionFlashProvider
        from litestar_inertia.middleware import InertiaMiddleware
        from litestar_inertia.request import InertiaRequest

        if isinstance(self._inertia.flash.provider, SessionFlashProvider):
            for mw in app_config.middleware:
                if isinstance(mw, DefineMiddleware) and is_class_and_subclass(
                    mw.middleware, (MiddlewareWrapper, SessionMiddleware)
                ):
                    break
            else:
                msg = "The session flash provider requires a session middleware."
                raise ImproperlyConfiguredException(msg)

        exception_handlers: "dict[type[Exception] | int, Any]" = {
            Exception: exception_to_http_response,
            HTTPException: exception_to_http_response,
        }
        app_config.exception_handlers.update(exception_handlers)  # pyright: ignore[reportUnknownMemberType]
        app_config.request_class = InertiaRequest
        app_config.middleware.append(InertiaMiddleware)
        app_config.dependencies["inertia"] = Provide(self._provide_inertia, sync_to_thread=False)
        app_config.signature_types.extend([InertiaRequest, Inertia])
        app_config.lifespan.append(self.lifespan)  # pyright: ignore[reportUnknownMemberType]
        return app_config
