"""Asset version negotiation.

When the assets served to a client are older than the assets the server was deployed
with, the client must do a full page visit instead of an XHR navigation. The server
detects this by comparing the ``X-Inertia-Version`` header with its own version.
"""

import hashlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from litestar_inertia.request import InertiaDetails, InertiaRequest
from litestar_inertia.response import InertiaExternalRedirect

if TYPE_CHECKING:
    from litestar import Request

__all__ = ("VersionNegotiator", "version_from_file")

logger = logging.getLogger("litestar_inertia")

_CHUNK_SIZE = 64 * 1024


def version_from_file(path: "str | Path") -> str:
    """Derive an asset version from the contents of a file.

    Point this at a file that changes on every frontend build, such as the bundler
    manifest.

    Args:
        path: The file to hash.

    Returns:
        The hex MD5 digest of the file contents.
    """
    digest = hashlib.md5(usedforsecurity=False)
    with Path(path).open("rb") as fh:
        while chunk := fh.read(_CHUNK_SIZE):
            digest.update(chunk)
    return digest.hexdigest()


class VersionNegotiator:
    """Compare the client asset version with the configured one.

    Without a configured version every request proceeds. With one, a ``GET`` request
    from an Inertia client that carries a different version is a conflict. Other methods
    never conflict: form submissions must not be turned into page reloads.
    """

    __slots__ = ("_version",)

    def __init__(self, version: "str | None" = None) -> None:
        self._version = version or ""

    @property
    def version(self) -> str:
        return self._version

    @property
    def is_versioned(self) -> bool:
        return bool(self._version)

    def is_conflict(self, request: "Request[Any, Any, Any]") -> bool:
        """Return True when the client must reload the page to pick up new assets.

        Args:
            request: The request.

        Returns:
            True on a version conflict.
        """
        if not self.is_versioned or request.method != "GET":
            return False
        details = request.inertia if isinstance(request, InertiaRequest) else InertiaDetails(request)
        if not details:
            return False
        return details.version != self._version

    def negotiate(self, request: "Request[Any, Any, Any]") -> "InertiaExternalRedirect | None":
        """Return the conflict response for ``request``, if any.

        Args:
            request: The request.

        Returns:
            A 409 response pointing the client at the current URL, or None to proceed.
        """
        if not self.is_conflict(request):
            return None
        url = str(request.url)
        logger.debug("Asset version mismatch for %s, forcing a full page visit", url)
        return InertiaExternalRedirect(request, redirect_to=url)
