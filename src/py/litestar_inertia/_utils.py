from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from litestar_inertia.types import InertiaHeaderType


class InertiaHeaders(str, Enum):
    """Enum for Inertia Headers.

    See: https://inertiajs.com/the-protocol
    """

    ENABLED = "X-Inertia"
    VERSION = "X-Inertia-Version"
    LOCATION = "X-Inertia-Location"

    PARTIAL_DATA = "X-Inertia-Partial-Data"
    PARTIAL_COMPONENT = "X-Inertia-Partial-Component"
    PARTIAL_EXCEPT = "X-Inertia-Partial-Except"


_RESPONSE_HEADERS: "dict[str, InertiaHeaders]" = {
    "enabled": InertiaHeaders.ENABLED,
    "version": InertiaHeaders.VERSION,
    "location": InertiaHeaders.LOCATION,
}


def get_headers(inertia_headers: "InertiaHeaderType") -> "dict[str, str]":
    """Build Inertia response headers.

    ``enabled`` is rendered as ``"true"``/``"false"``; ``None`` values are skipped.

    Args:
        inertia_headers: The header values.

    Raises:
        ValueError: If no header value is given.

    Returns:
        Header name to value.
    """
    if not inertia_headers:
        msg = "Value for inertia_headers cannot be None."
        raise ValueError(msg)

    headers: "dict[str, str]" = {}
    for key, value in inertia_headers.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        headers[_RESPONSE_HEADERS[key].value] = value
    return headers
