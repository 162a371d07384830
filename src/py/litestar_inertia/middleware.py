from typing import TYPE_CHECKING, Any

from litestar.enums import ScopeType
from litestar.middleware import AbstractMiddleware
from litestar.status_codes import HTTP_302_FOUND, HTTP_303_SEE_OTHER

from litestar_inertia.plugin import InertiaPlugin
from litestar_inertia.request import InertiaRequest
from litestar_inertia.response import InertiaExternalRedirect

if TYPE_CHECKING:
    from litestar.types import ASGIApp, Message, Receive, Scope, Send

_SEE_OTHER_METHODS = frozenset({"PUT", "PATCH", "DELETE"})


def redirect_on_asset_version_mismatch(request: "InertiaRequest[Any, Any, Any]") -> "InertiaExternalRedirect | None":
    """Return redirect response when client and server asset versions differ.

    Returns:
        An InertiaExternalRedirect when versions differ, otherwise None.
    """
    inertia_plugin = request.app.plugins.get(InertiaPlugin)
    return inertia_plugin.inertia.negotiator.negotiate(request)


def _see_other_send(send: "Send") -> "Send":
    async def wrapped_send(message: "Message") -> None:
        if message["type"] == "http.response.start" and message["status"] == HTTP_302_FOUND:
            message = {**message, "status": HTTP_303_SEE_OTHER}  # type: ignore[typeddict-item]
        await send(message)

    return wrapped_send


class InertiaMiddleware(AbstractMiddleware):
    """Middleware for handling Inertia.js protocol requirements.

    This middleware:
    1. Detects version mismatches between client and server assets on GET requests
    2. Returns 409 Conflict with X-Inertia-Location header when versions differ
    3. Turns ``302`` redirects into ``303`` for PUT, PATCH and DELETE Inertia requests,
       so the client follows up with a GET
    """

    def __init__(self, app: "ASGIApp") -> None:
        super().__init__(app, scopes={ScopeType.HTTP})
        self.app = app

    async def __call__(self, scope: "Scope", receive: "Receive", send: "Send") -> None:
        request: InertiaRequest[Any, Any, Any] = InertiaRequest(scope=scope)
        redirect = redirect_on_asset_version_mismatch(request)
        if redirect is not None:
            response = redirect.to_asgi_response(app=None, request=request)  # pyright: ignore[reportUnknownMemberType]
            await response(scope, receive, send)
            return
        if request.is_inertia and request.method in _SEE_OTHER_METHODS:
            send = _see_other_send(send)
        await self.app(scope, receive, send)
