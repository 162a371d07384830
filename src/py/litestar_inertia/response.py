from typing import Any
from urllib.parse import quote, urlparse

from litestar import Request, Response
from litestar.response import Redirect
from litestar.status_codes import HTTP_303_SEE_OTHER, HTTP_307_TEMPORARY_REDIRECT, HTTP_409_CONFLICT

from litestar_inertia._utils import InertiaHeaders

__all__ = ("InertiaBack", "InertiaExternalRedirect", "InertiaRedirect", "redirect_status_code")

_LOCATION_SAFE_CHARS = "/#%[]=:;$&()+,!?*@'~"


def redirect_status_code(method: str) -> int:
    """Return the redirect status that preserves Inertia semantics for ``method``.

    ``PUT``, ``PATCH`` and ``DELETE`` must be answered with ``303`` so the browser follows
    up with a ``GET``.

    Args:
        method: The request method.

    Returns:
        The redirect status code.
    """
    return HTTP_307_TEMPORARY_REDIRECT if method == "GET" else HTTP_303_SEE_OTHER


def _get_redirect_url(request: "Request[Any, Any, Any]", url: "str | None") -> str:
    """Return a safe redirect URL, falling back to base_url when invalid.

    Args:
        request: The request object.
        url: Candidate redirect URL.

    Returns:
        A safe redirect URL (same-origin absolute, or relative), otherwise the request base URL.
    """
    base_url = str(request.base_url)

    if not url:
        return base_url

    parsed = urlparse(url)
    base = urlparse(base_url)

    if not parsed.scheme and not parsed.netloc:
        return url

    if parsed.scheme not in {"http", "https"}:
        return base_url

    if parsed.netloc != base.netloc:
        return base_url

    return url


class InertiaExternalRedirect(Response[Any]):
    """External redirect via Inertia protocol (409 + X-Inertia-Location).

    This response type triggers a client-side hard redirect in Inertia.js. It is
    also the answer to an asset version conflict. The URL is not validated as
    same-origin because external redirects are explicitly intended for cross-origin
    navigation (e.g., OAuth callbacks, external payment pages).
    """

    def __init__(self, request: "Request[Any, Any, Any]", redirect_to: "str", **kwargs: "Any") -> None:
        """Initialize external redirect with 409 status and X-Inertia-Location header.

        Args:
            request: The request object.
            redirect_to: The URL to redirect to (can be external).
            **kwargs: Additional keyword arguments passed to the Response constructor.
        """
        super().__init__(
            content=b"",
            status_code=HTTP_409_CONFLICT,
            headers={InertiaHeaders.LOCATION.value: quote(redirect_to, safe=_LOCATION_SAFE_CHARS)},
            **kwargs,
        )


class InertiaRedirect(Redirect):
    """Redirect to a specified URL with same-origin validation.

    If the URL is not same-origin, it falls back to the application's base URL.
    """

    def __init__(self, request: "Request[Any, Any, Any]", redirect_to: "str", **kwargs: "Any") -> None:
        """Initialize redirect with safe URL validation.

        Args:
            request: The request object.
            redirect_to: The URL to redirect to. Must be same-origin or relative.
            **kwargs: Additional keyword arguments passed to the Redirect constructor.
        """
        super().__init__(  # pyright: ignore[reportUnknownMemberType]
            path=_get_redirect_url(request, redirect_to),
            status_code=redirect_status_code(request.method),
            **kwargs,
        )


class InertiaBack(Redirect):
    """Redirect back to the previous page using the Referer header.

    A missing or cross-origin Referer falls back to the application's base URL.
    """

    def __init__(self, request: "Request[Any, Any, Any]", **kwargs: "Any") -> None:
        """Initialize back redirect with safe URL validation.

        Args:
            request: The request object.
            **kwargs: Additional keyword arguments passed to the Redirect constructor.
        """
        super().__init__(  # pyright: ignore[reportUnknownMemberType]
            path=_get_redirect_url(request, request.headers.get("Referer")),
            status_code=redirect_status_code(request.method),
            **kwargs,
        )
