"""Client for the Inertia SSR server.

The official Inertia SSR server listens on ``/render`` and expects the raw page object as
JSON. It answers with JSON holding a ``body`` string and an optional ``head`` list of
strings. SSR is an optimization only: every failure degrades to client-side rendering.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union, cast

import anyio
import httpx

if TYPE_CHECKING:
    from litestar_inertia.config import InertiaSSRConfig

__all__ = ("SSRClient", "SSRRendered", "SSRResult", "SSRUnavailable")

logger = logging.getLogger("litestar_inertia")


def _str_list_factory() -> list[str]:
    return []


@dataclass(frozen=True)
class SSRRendered:
    """Markup returned by the SSR server."""

    body: str
    head: list[str] = field(default_factory=_str_list_factory)

    @property
    def head_html(self) -> str:
        return "\n".join(self.head)


@dataclass(frozen=True)
class SSRUnavailable:
    """SSR produced nothing usable. The page renders client side."""

    reason: str


SSRResult = Union[SSRRendered, SSRUnavailable]


class _InvalidPayloadError(ValueError):
    pass


def _parse_ssr_payload(payload: Any) -> SSRRendered:
    if not isinstance(payload, dict):
        msg = f"unexpected payload type {type(payload).__name__!r}"
        raise _InvalidPayloadError(msg)

    payload_dict = cast("dict[str, Any]", payload)

    body = payload_dict.get("body")
    if not isinstance(body, str):
        msg = "invalid 'body' (expected string)"
        raise _InvalidPayloadError(msg)

    head_raw: Any = payload_dict.get("head") or []
    if not isinstance(head_raw, list) or any(not isinstance(item, str) for item in cast("list[Any]", head_raw)):
        msg = "invalid 'head' (expected list[str])"
        raise _InvalidPayloadError(msg)

    return SSRRendered(body=body, head=cast("list[str]", head_raw))


class SSRClient:
    """Render page objects through an external SSR server.

    When the plugin lifespan is active, requests go through a shared, pooled
    ``httpx.AsyncClient``; otherwise a client is created per call.
    """

    __slots__ = ("client", "config")

    def __init__(self, config: "InertiaSSRConfig | None" = None, client: "httpx.AsyncClient | None" = None) -> None:
        self.config = config
        self.client = client

    @property
    def enabled(self) -> bool:
        return self.config is not None and self.config.enabled

    async def render(self, page: bytes) -> SSRResult:
        """Send the serialized page object to the SSR server.

        A single attempt is made, bounded by the configured timeout.

        Args:
            page: The JSON encoded page object.

        Returns:
            The rendered markup, or :class:`SSRUnavailable` describing why there is none.
        """
        if self.config is None or not self.config.enabled:
            return SSRUnavailable("disabled")

        url = self.config.url
        timeout = self.config.timeout
        try:
            with anyio.fail_after(timeout):
                response = await self._post(url, page, timeout)
            response.raise_for_status()
            result = _parse_ssr_payload(response.json())
        except TimeoutError:
            return self._unavailable(url, f"timed out after {timeout}s")
        except httpx.HTTPStatusError as exc:
            return self._unavailable(url, f"returned HTTP {exc.response.status_code}")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return self._unavailable(url, f"is not reachable ({exc.__class__.__name__})")
        except _InvalidPayloadError as exc:
            return self._unavailable(url, f"returned {exc}")
        except ValueError:
            return self._unavailable(url, "returned invalid JSON")
        return result

    async def _post(self, url: str, page: bytes, timeout: float) -> "httpx.Response":
        headers = {"Content-Type": "application/json"}
        if self.client is not None:
            return await self.client.post(url, content=page, headers=headers, timeout=timeout)
        async with httpx.AsyncClient() as client:
            return await client.post(url, content=page, headers=headers, timeout=timeout)

    @staticmethod
    def _unavailable(url: str, reason: str) -> SSRUnavailable:
        logger.warning("Inertia SSR server at %r %s; falling back to client-side rendering.", url, reason)
        return SSRUnavailable(reason)
