"""Inertia.js configuration classes."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from litestar_inertia.flash import FlashProvider

__all__ = ("DEFAULT_SSR_URL", "TRUE_VALUES", "InertiaConfig", "InertiaSSRConfig")

TRUE_VALUES = {"True", "true", "1", "yes", "Y", "T"}
DEFAULT_SSR_URL = "http://127.0.0.1:13714/render"


def empty_dict_factory() -> dict[str, Any]:
    """Return an empty ``dict[str, Any]``.

    Returns:
        An empty dictionary.
    """
    return {}


@dataclass
class InertiaSSRConfig:
    """Server-side rendering settings for Inertia.js.

    Inertia SSR runs a separate Node server that renders the initial HTML for an
    Inertia page object. The page payload is posted to the SSR server (by default
    at ``http://127.0.0.1:13714/render``) and the returned head tags and body
    markup replace the client hydration container in the root template.

    Notes:
        - SSR is an optimization. When the SSR server is unreachable, slow or returns
          an unexpected payload, the response silently falls back to client-side rendering.
        - Exactly one attempt is made per response; there are no retries.
    """

    enabled: bool = True
    url: str = field(default_factory=lambda: os.getenv("INERTIA_SSR_URL", DEFAULT_SSR_URL))
    timeout: float = 2.0


@dataclass
class InertiaConfig:
    """Configuration for InertiaJS support.

    Attributes:
        root_template: Path of the root HTML template file.
        version: Asset version string used for version negotiation.
        version_file: File whose MD5 digest becomes the asset version (e.g. a build manifest).
        container_id: Id of the element the client app mounts on.
        encrypt_history: Default value of ``encryptHistory`` on every page.
        ssr: Server-side rendering settings.
        component_opt_keys: Identifiers for getting the inertia component from route opts.
        extra_static_page_props: Props shared with every page at startup.
        extra_template_data: Template data shared with every root template render.
        flash_provider: Backend for flashed validation errors and history clearing.
    """

    root_template: "str | Path" = "index.html"
    """Path of the root template file.

    The template is parsed when the adapter is constructed, so a malformed template
    fails application startup rather than the first request.
    """
    version: "str | None" = field(default_factory=lambda: os.getenv("INERTIA_VERSION"))
    """The asset version. ``None`` or an empty string disables version negotiation."""
    version_file: "str | Path | None" = None
    """Derive the asset version from the contents of this file. Overrides ``version``."""
    container_id: str = "app"
    """Id of the container element that receives the ``data-page`` attribute."""
    encrypt_history: bool = field(
        default_factory=lambda: os.getenv("INERTIA_ENCRYPT_HISTORY", "False") in TRUE_VALUES
    )
    """Enable browser history encryption globally.

    When True, every page object carries ``encryptHistory: true``. Individual requests
    and render calls can override this setting.

    See: https://inertiajs.com/history-encryption
    """
    ssr: "InertiaSSRConfig | bool | None" = None
    """Enable server-side rendering (SSR) for full page responses.

    Supports:
        - True: enable with defaults -> ``InertiaSSRConfig()``
        - False/None: disabled -> ``None``
        - InertiaSSRConfig: use as-is
    """
    component_opt_keys: "tuple[str, ...]" = ("component", "page")
    """Identifiers to use on routes to get the inertia component to render.

    Example:
        # All equivalent:
        @get("/", component="Home")
        @get("/", page="Home")
    """
    extra_static_page_props: "dict[str, Any]" = field(default_factory=empty_dict_factory)
    """Props shared with every page, registered when the adapter is built."""
    extra_template_data: "dict[str, Any]" = field(default_factory=empty_dict_factory)
    """Values shared with the root template on every full page render."""
    flash_provider: "FlashProvider | None" = None
    """The flash provider. ``None`` disables flashed errors and history clearing."""

    def __post_init__(self) -> None:
        """Normalize optional sub-configs."""
        if self.ssr is True:
            self.ssr = InertiaSSRConfig()
        elif self.ssr is False:
            self.ssr = None

    @property
    def ssr_config(self) -> "InertiaSSRConfig | None":
        """Return the SSR config when enabled, otherwise None.

        Returns:
            The resolved SSR config when enabled, otherwise None.
        """
        if isinstance(self.ssr, InertiaSSRConfig) and self.ssr.enabled:
            return self.ssr
        return None
