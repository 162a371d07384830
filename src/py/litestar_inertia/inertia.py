"""The Inertia adapter: page assembly and response negotiation."""

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

from jinja2 import Template
from litestar import MediaType, Request, Response
from litestar.exceptions import ImproperlyConfiguredException, SerializationException
from litestar.response import Redirect
from litestar.serialization import encode_json
from litestar.status_codes import HTTP_200_OK, HTTP_302_FOUND
from markupsafe import Markup

from litestar_inertia._utils import get_headers
from litestar_inertia.exceptions import PageSerializationError
from litestar_inertia.flash import FlashBridge
from litestar_inertia.history import HistoryManager
from litestar_inertia.props import always, extract_deferred_props, resolve_props
from litestar_inertia.request import InertiaDetails, InertiaRequest, get_request_context, parse_partial_reload
from litestar_inertia.response import InertiaBack, InertiaExternalRedirect, InertiaRedirect
from litestar_inertia.ssr import SSRClient, SSRRendered
from litestar_inertia.store import SharedState
from litestar_inertia.template import RootTemplate, container_markup
from litestar_inertia.types import InertiaHeaderType, PageProps
from litestar_inertia.version import VersionNegotiator, version_from_file

if TYPE_CHECKING:
    import httpx

    from litestar_inertia.config import InertiaConfig, InertiaSSRConfig
    from litestar_inertia.flash import FlashProvider

__all__ = ("Inertia", "JSONEncoder")

JSONEncoder = Callable[[Any], bytes]
"""Turns the page object into JSON bytes."""

_default_logger = logging.getLogger("litestar_inertia")


def _get_relative_url(request: "Request[Any, Any, Any]") -> str:
    """Return the relative URL including query string for Inertia page props.

    The Inertia.js protocol requires the ``url`` property to include query parameters
    so that page state (e.g., filters, pagination) is preserved on refresh.

    Args:
        request: The request object.

    Returns:
        The path with query string if present, e.g., ``/reports?page=1&status=active``.
    """
    path = request.url.path
    query = request.url.query
    return f"{path}?{query}" if query else path


def _details(request: "Request[Any, Any, Any]") -> InertiaDetails:
    return request.inertia if isinstance(request, InertiaRequest) else InertiaDetails(request)


class Inertia:
    """Server-side Inertia.js adapter.

    Renders a component either as a JSON page object (for requests made by the Inertia
    client) or as a full HTML document built from the root template.

    Example::

        inertia = Inertia.from_file("templates/index.html", version="1")
        inertia.share_prop("app_name", "Acme")


        @get("/dashboard")
        async def dashboard(request: Request) -> Response:
            return await inertia.render(request, "Dashboard", {"user": {"id": 1}})
    """

    def __init__(
        self,
        root_template: "RootTemplate | Template | str | None",
        *,
        version: "str | None" = None,
        container_id: str = "app",
        encrypt_history: bool = False,
        ssr: "InertiaSSRConfig | None" = None,
        ssr_client: "httpx.AsyncClient | None" = None,
        flash_provider: "FlashProvider | None" = None,
        json_encoder: "JSONEncoder | None" = None,
        shared_props: "Mapping[str, Any] | None" = None,
        shared_template_data: "Mapping[str, Any] | None" = None,
        logger: "logging.Logger | None" = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            root_template: The root template, its source, or a compiled Jinja template.
            version: The asset version. Empty or None disables version negotiation.
            container_id: Id of the element the client application mounts on.
            encrypt_history: Default ``encryptHistory`` flag.
            ssr: Server-side rendering settings. None disables SSR.
            ssr_client: Shared HTTP client for SSR calls.
            flash_provider: Storage for flashed errors and history clearing.
            json_encoder: Page object encoder. Defaults to Litestar's ``encode_json``.
            shared_props: Initial shared props.
            shared_template_data: Initial shared template data.
            logger: Logger for adapter messages.

        Raises:
            RootTemplateError: If the root template is missing, blank or malformed.
        """
        if isinstance(root_template, RootTemplate):
            self.template = root_template
        elif isinstance(root_template, str):
            self.template = RootTemplate.from_string(root_template)
        else:
            self.template = RootTemplate(root_template)

        self.container_id = container_id
        self.json_encoder: JSONEncoder = json_encoder or encode_json
        self.logger = logger or _default_logger
        self.shared = SharedState(shared_props, shared_template_data)
        self.negotiator = VersionNegotiator(version)
        self.flash = FlashBridge(flash_provider)
        self.history = HistoryManager(self.flash, encrypt_history)
        self.ssr = SSRClient(ssr, ssr_client)

    @classmethod
    def from_file(cls, path: "str | Path", **kwargs: Any) -> "Inertia":
        """Create the adapter from a root template file.

        Args:
            path: The root template file.
            **kwargs: Passed to :class:`Inertia`.

        Returns:
            The adapter.
        """
        return cls(RootTemplate.from_file(path), **kwargs)

    @classmethod
    def from_bytes(cls, source: bytes, **kwargs: Any) -> "Inertia":
        """Create the adapter from UTF-8 encoded root template source."""
        return cls(RootTemplate.from_bytes(source), **kwargs)

    @classmethod
    def from_reader(cls, reader: "IO[bytes] | IO[str]", **kwargs: Any) -> "Inertia":
        """Create the adapter from a file-like object holding the root template.

        The reader is read to the end but not closed.

        Args:
            reader: A binary (UTF-8) or text stream.
            **kwargs: Passed to :class:`Inertia`.

        Returns:
            The adapter.
        """
        source = reader.read()
        if isinstance(source, bytes):
            return cls.from_bytes(source, **kwargs)
        return cls(RootTemplate.from_string(source), **kwargs)

    @classmethod
    def from_config(cls, config: "InertiaConfig") -> "Inertia":
        """Create the adapter from an :class:`~litestar_inertia.config.InertiaConfig`.

        Args:
            config: The configuration.

        Returns:
            The adapter.
        """
        version = version_from_file(config.version_file) if config.version_file is not None else config.version
        return cls.from_file(
            config.root_template,
            version=version,
            container_id=config.container_id,
            encrypt_history=config.encrypt_history,
            ssr=config.ssr_config,
            flash_provider=config.flash_provider,
            shared_props=config.extra_static_page_props,
            shared_template_data=config.extra_template_data,
        )

    @property
    def version(self) -> str:
        return self.negotiator.version

    def share_prop(self, key: str, value: Any) -> None:
        """Share a prop with every page rendered afterwards."""
        self.shared.share_prop(key, value)

    def shared_prop(self, key: str) -> "tuple[Any, bool]":
        return self.shared.shared_prop(key)

    def shared_props(self) -> "Mapping[str, Any]":
        return self.shared.props

    def share_template_data(self, key: str, value: Any) -> None:
        """Share a value with every root template render."""
        self.shared.share_template_data(key, value)

    def shared_template_data(self) -> "Mapping[str, Any]":
        return self.shared.template_data

    def share_template_func(self, name: str, func: "Callable[..., Any]") -> None:
        self.shared.share_template_func(name, func)

    def encode_page(self, page: PageProps) -> bytes:
        """Serialize the page object.

        Raises:
            PageSerializationError: If a prop cannot be encoded.

        Returns:
            The JSON encoded page object.
        """
        try:
            return self.json_encoder(page.to_dict())
        except (SerializationException, TypeError, ValueError) as exc:
            raise PageSerializationError(page.component, str(exc)) from exc

    async def build_page(
        self,
        request: "Request[Any, Any, Any]",
        component: str,
        props: "Mapping[str, Any] | None" = None,
        *,
        encrypt_history: "bool | None" = None,
    ) -> PageProps:
        """Assemble the page object for ``component``.

        Props are merged in this order, later keys winning: shared props, props set on the
        request context, ``props``. Validation errors are always sent as ``errors``.

        Args:
            request: The request.
            component: The component to render.
            props: Props for this render.
            encrypt_history: Per-render override of history encryption.

        Returns:
            The page object with every prop resolved.
        """
        context = get_request_context(request)
        merged: "dict[str, Any]" = {**self.shared.props, **context.props, **(props or {})}
        merged["errors"] = always(context.validation_errors)

        partial = parse_partial_reload(request, component)
        resolved = await resolve_props(merged, partial)
        deferred = extract_deferred_props(merged) if partial is None else {}

        # Flashed state is consumed only once every prop has resolved.
        errors = self.flash.pull_errors(request)
        errors.update(context.validation_errors)
        if "errors" in resolved:
            resolved["errors"] = errors
        history = self.history.resolve(request, context, encrypt_history)

        return PageProps(
            component=component,
            props=resolved,
            url=_get_relative_url(request),
            version=self.version,
            encrypt_history=history.encrypt_history,
            clear_history=history.clear_history,
            deferred_props=deferred or None,
        )

    async def render(
        self,
        request: "Request[Any, Any, Any]",
        component: "str | None" = None,
        props: "Mapping[str, Any] | None" = None,
        *,
        template_data: "Mapping[str, Any] | None" = None,
        encrypt_history: "bool | None" = None,
        status_code: int = HTTP_200_OK,
    ) -> "Response[Any]":
        """Render ``component`` as a page object or as a full HTML document.

        Args:
            request: The request.
            component: The component to render. Defaults to the route handler's
                ``component`` (or ``page``) opt.
            props: Props for this render.
            template_data: Root template data for this render.
            encrypt_history: Per-render override of history encryption.
            status_code: Status code of the page response.

        Raises:
            ImproperlyConfiguredException: If no component is given or configured on the route.

        Returns:
            The version conflict response, the JSON page response, or the HTML response.
        """
        conflict = self.negotiator.negotiate(request)
        if conflict is not None:
            return conflict

        details = _details(request)
        component = component or details.route_component
        if not component:
            msg = f"No Inertia component to render for {request.url.path!r}."
            raise ImproperlyConfiguredException(msg)

        page = await self.build_page(request, component, props, encrypt_history=encrypt_history)
        try:
            body = self.encode_page(page)
        except PageSerializationError:
            self._reflash(request, page)
            raise
        headers = {"Vary": "X-Inertia"}

        if details:
            self.logger.debug("Rendering %s as a page object", component)
            headers.update(get_headers(InertiaHeaderType(enabled=True)))
            return Response(content=body, media_type=MediaType.JSON, status_code=status_code, headers=headers)

        html = await self._render_document(request, page, body, template_data)
        return Response(content=html, media_type=MediaType.HTML, status_code=status_code, headers=headers)

    async def _render_document(
        self,
        request: "Request[Any, Any, Any]",
        page: PageProps,
        page_json: bytes,
        template_data: "Mapping[str, Any] | None",
    ) -> str:
        ssr_result = await self.ssr.render(page_json)
        if isinstance(ssr_result, SSRRendered):
            inertia = Markup(ssr_result.body)
            inertia_head = Markup(ssr_result.head_html)
        else:
            inertia = container_markup(self.container_id, page_json.decode("utf-8"))
            inertia_head = Markup("")

        context: "dict[str, Any]" = {
            **self.shared.template_funcs,
            **self.shared.template_data,
            **get_request_context(request).template_data,
            **(template_data or {}),
            "inertia": inertia,
            "inertia_head": inertia_head,
            "page": page.to_dict(),
        }
        return self.template.render(context)

    def _reflash(self, request: "Request[Any, Any, Any]", page: PageProps) -> None:
        """Flash the errors and history clearing of a page that was never sent."""
        self.flash.push_errors(request, page.props.get("errors") or {})
        if page.clear_history:
            self.flash.push_clear_history(request)

    def _flash_for_redirect(self, request: "Request[Any, Any, Any]") -> None:
        context = get_request_context(request)
        self.flash.push_errors(request, context.validation_errors)
        if context.clear_history:
            self.flash.push_clear_history(request)

    def redirect(self, request: "Request[Any, Any, Any]", url: str) -> InertiaRedirect:
        """Redirect to a same-origin ``url``, carrying validation errors and history clearing along.

        Returns:
            The redirect response.
        """
        self._flash_for_redirect(request)
        return InertiaRedirect(request, redirect_to=url)

    def back(self, request: "Request[Any, Any, Any]") -> InertiaBack:
        """Redirect to the referring page, carrying validation errors and history clearing along.

        Returns:
            The redirect response.
        """
        self._flash_for_redirect(request)
        return InertiaBack(request)

    def location(self, request: "Request[Any, Any, Any]", url: str) -> "Response[Any]":
        """Send the client to ``url`` with a full page visit, possibly to another site.

        Returns:
            ``409`` with ``X-Inertia-Location`` for Inertia requests, a plain redirect otherwise.
        """
        self._flash_for_redirect(request)
        if _details(request):
            return InertiaExternalRedirect(request, redirect_to=url)
        return Redirect(path=url, status_code=HTTP_302_FOUND)
