from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import unquote

from litestar import Request
from litestar.connection.base import AuthT, StateT, UserT, empty_receive, empty_send

from litestar_inertia._utils import InertiaHeaders
from litestar_inertia.types import PartialReload

if TYPE_CHECKING:
    from litestar.connection import ASGIConnection
    from litestar.types import Receive, Scope, Send

    from litestar_inertia.plugin import InertiaPlugin
    from litestar_inertia.types import ValidationErrors

__all__ = (
    "InertiaDetails",
    "InertiaHeaders",
    "InertiaRequest",
    "RequestContext",
    "clear_history",
    "get_request_context",
    "parse_partial_reload",
    "set_encrypt_history",
    "set_props",
    "set_template_data",
    "set_validation_errors",
)

_DEFAULT_COMPONENT_OPT_KEYS: "tuple[str, ...]" = ("component", "page")
_CONTEXT_KEY = "_inertia_context"


class InertiaDetails:
    """InertiaDetails holds all the values sent by Inertia client in headers and provide convenient properties."""

    def __init__(self, request: "Request[UserT, AuthT, StateT]") -> None:
        """Initialize :class:`InertiaDetails`"""
        self.request = request

    def _get_header_value(self, name: "InertiaHeaders") -> "str | None":
        """Parse request header

        Check for uri encoded header and unquotes it in readable format.

        Args:
            name: The header name.

        Returns:
            The header value.
        """

        if value := self.request.headers.get(name.value.lower()):
            is_uri_encoded = self.request.headers.get(f"{name.value.lower()}-uri-autoencoded") == "true"
            return unquote(value) if is_uri_encoded else value
        return None

    def _get_route_component(self) -> "str | None":
        """Return the route component from handler opts if present.

        Returns:
            The route component name, or None if not configured on the handler.
        """
        rh = self.request.scope.get("route_handler")  # pyright: ignore[reportUnknownMemberType]
        if rh:
            component_opt_keys: "tuple[str, ...]" = _DEFAULT_COMPONENT_OPT_KEYS
            try:
                inertia_plugin: "InertiaPlugin" = self.request.app.plugins.get("InertiaPlugin")
                component_opt_keys = inertia_plugin.config.component_opt_keys
            except KeyError:
                pass

            for key in component_opt_keys:
                if (value := rh.opt.get(key)) is not None:
                    return cast("str", value)
        return None

    def __bool__(self) -> bool:
        """Return True when the request is sent by an Inertia client.

        Returns:
            True if the request originated from an Inertia client, otherwise False.
        """
        return self._get_header_value(InertiaHeaders.ENABLED) == "true"

    @cached_property
    def route_component(self) -> "str | None":
        return self._get_route_component()

    @cached_property
    def partial_component(self) -> "str | None":
        return self._get_header_value(InertiaHeaders.PARTIAL_COMPONENT)

    @cached_property
    def partial_data(self) -> "str | None":
        return self._get_header_value(InertiaHeaders.PARTIAL_DATA)

    @cached_property
    def partial_except(self) -> "str | None":
        return self._get_header_value(InertiaHeaders.PARTIAL_EXCEPT)

    @cached_property
    def version(self) -> "str | None":
        """Return the Inertia asset version sent by the client.

        Returns:
            The version string, or None if not present.
        """
        return self._get_header_value(InertiaHeaders.VERSION)

    @cached_property
    def partial_keys(self) -> "frozenset[str]":
        return _split_keys(self.partial_data)

    @cached_property
    def partial_except_keys(self) -> "frozenset[str]":
        return _split_keys(self.partial_except)

    def partial_reload(self, component: "str | None") -> "PartialReload | None":
        """Return the partial reload requested for ``component``.

        Partial filtering only applies when the client names the component being
        rendered. A client that navigated to another page in the meantime gets the
        full prop set.

        Args:
            component: The component rendered by the current request.

        Returns:
            The partial reload, or None when the full prop set must be rendered.
        """
        if not self or component is None or self.partial_component != component:
            return None
        if self.partial_data is None and self.partial_except is None:
            return None
        return PartialReload(component=component, only=self.partial_keys, except_=self.partial_except_keys)


def _split_keys(value: "str | None") -> "frozenset[str]":
    if not value:
        return frozenset()
    return frozenset(key for key in (part.strip() for part in value.split(",")) if key)


def parse_partial_reload(request: "Request[Any, Any, Any]", component: "str | None") -> "PartialReload | None":
    """Parse the partial reload headers of ``request`` for ``component``.

    Args:
        request: The request.
        component: The component rendered by the current request.

    Returns:
        The partial reload, or None for a full render.
    """
    details = request.inertia if isinstance(request, InertiaRequest) else InertiaDetails(request)
    return details.partial_reload(component)


class InertiaRequest(Request[UserT, AuthT, StateT]):
    """Inertia Request class to work with Inertia client."""

    __slots__ = ("inertia",)

    def __init__(self, scope: "Scope", receive: "Receive" = empty_receive, send: "Send" = empty_send) -> None:
        """Initialize :class:`InertiaRequest`"""
        super().__init__(scope=scope, receive=receive, send=send)
        self.inertia = InertiaDetails(self)

    @property
    def is_inertia(self) -> bool:
        """True if the request contained inertia headers.

        Returns:
            True if the request contains Inertia headers, otherwise False.
        """
        return bool(self.inertia)

    @property
    def inertia_enabled(self) -> bool:
        """True if the route handler contains an inertia enabled configuration.

        Returns:
            True if the route is configured with an Inertia component, otherwise False.
        """
        return bool(self.inertia.route_component is not None)

    @property
    def inertia_version(self) -> "str | None":
        """Get the Inertia asset version sent by the client.

        Returns:
            The version string sent by the client, or None if not present.
        """
        return self.inertia.version


@dataclass
class RequestContext:
    """Per-request values collected before the page is rendered.

    Middleware and guards populate this through the module helpers; the values are
    merged over the shared state when the page is assembled.
    """

    props: "dict[str, Any]" = field(default_factory=dict)
    template_data: "dict[str, Any]" = field(default_factory=dict)
    validation_errors: "ValidationErrors" = field(default_factory=dict)
    encrypt_history: "bool | None" = None
    clear_history: bool = False


def get_request_context(connection: "ASGIConnection[Any, Any, Any, Any]") -> RequestContext:
    """Return the request context, creating it on first access.

    Returns:
        The request context stored in the connection state.
    """
    context = connection.state.get(_CONTEXT_KEY)
    if context is None:
        context = RequestContext()
        connection.state[_CONTEXT_KEY] = context
    return cast("RequestContext", context)


def set_props(connection: "ASGIConnection[Any, Any, Any, Any]", props: "dict[str, Any]") -> None:
    """Add props for the current request. They override shared props with the same key.

    Args:
        connection: The ASGI connection.
        props: The props to add.
    """
    get_request_context(connection).props.update(props)


def set_template_data(connection: "ASGIConnection[Any, Any, Any, Any]", data: "dict[str, Any]") -> None:
    """Add root template data for the current request.

    Args:
        connection: The ASGI connection.
        data: The template data to add.
    """
    get_request_context(connection).template_data.update(data)


def set_validation_errors(connection: "ASGIConnection[Any, Any, Any, Any]", errors: "ValidationErrors") -> None:
    """Set validation errors for the current request.

    They are merged into the ``errors`` prop, and flashed to the next request when the
    response is a redirect issued through :class:`~litestar_inertia.inertia.Inertia`.

    Args:
        connection: The ASGI connection.
        errors: Field name to message(s).
    """
    get_request_context(connection).validation_errors.update(errors)


def set_encrypt_history(connection: "ASGIConnection[Any, Any, Any, Any]", encrypt: bool = True) -> None:
    """Override history encryption for the current request.

    Args:
        connection: The ASGI connection.
        encrypt: Whether the client must encrypt this history entry.
    """
    get_request_context(connection).encrypt_history = encrypt


def clear_history(connection: "ASGIConnection[Any, Any, Any, Any]") -> None:
    """Ask the client to clear its encrypted history.

    Typically used on logout. The flag applies to the current page response, or to the
    next page when the current response is a redirect.

    Args:
        connection: The ASGI connection.
    """
    get_request_context(connection).clear_history = True
