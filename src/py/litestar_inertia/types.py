"""Inertia protocol types and serialization helpers.

This module defines the Python-side data structures for the Inertia.js protocol and provides
helpers to serialize dataclass instances into the camelCase shape expected by the client.
"""

import re
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, TypedDict, cast

__all__ = (
    "InertiaHeaderType",
    "PageProps",
    "PartialReload",
    "ValidationErrors",
    "to_camel_case",
    "to_inertia_dict",
)

ValidationErrors = dict[str, "str | list[str]"]
"""Field name to one or more human readable messages."""

_SNAKE_CASE_PATTERN = re.compile(r"_([a-z])")


def to_camel_case(snake_str: str) -> str:
    """Convert snake_case string to camelCase.

    Args:
        snake_str: A snake_case string.

    Returns:
        The camelCase equivalent.

    Examples:
        >>> to_camel_case("encrypt_history")
        'encryptHistory'
        >>> to_camel_case("deferred_props")
        'deferredProps'
    """
    return _SNAKE_CASE_PATTERN.sub(lambda m: m.group(1).upper(), snake_str)


def to_inertia_dict(obj: Any, required_fields: "set[str] | None" = None) -> dict[str, Any]:
    """Convert a dataclass to a dict with camelCase keys for Inertia.js protocol.

    Only top-level field names are converted; prop keys and values are left untouched.

    Args:
        obj: A dataclass instance.
        required_fields: Set of field names that should always be included (even if None).

    Returns:
        A dictionary with camelCase keys, excluding None values for optional fields.
    """
    if not is_dataclass(obj) or isinstance(obj, type):
        return cast("dict[str, Any]", obj)

    required_fields = required_fields or set()
    result: dict[str, Any] = {}
    for dc_field in fields(obj):
        value = getattr(obj, dc_field.name)
        if value is None and dc_field.name not in required_fields:
            continue
        result[to_camel_case(dc_field.name)] = value
    return result


def _empty_frozenset() -> "frozenset[str]":
    return frozenset()


@dataclass(frozen=True)
class PartialReload:
    """A partial reload request parsed from the ``X-Inertia-Partial-*`` headers.

    Attributes:
        component: The component the client believes it is reloading.
        only: Keys to include. Empty means every key.
        except_: Keys to exclude. Applied after ``only``.
    """

    component: str
    only: "frozenset[str]" = field(default_factory=_empty_frozenset)
    except_: "frozenset[str]" = field(default_factory=_empty_frozenset)


@dataclass
class PageProps:
    """Inertia Page Props Type.

    This represents the page object sent to the Inertia client.
    See: https://inertiajs.com/the-protocol

    Note: Field names use snake_case in Python but are serialized to camelCase
    for the Inertia.js protocol using `to_inertia_dict()`.

    Attributes:
        component: JavaScript component name to render.
        props: Resolved page data passed to the component.
        url: Current page URL, including the query string.
        version: Asset version identifier for cache busting.
        encrypt_history: Whether to encrypt browser history state.
        clear_history: Whether to clear encrypted history state.
        deferred_props: Deferred groups withheld from this response, by group name.
    """

    component: str
    props: dict[str, Any]
    url: str
    version: str
    encrypt_history: bool = False
    clear_history: bool = False
    deferred_props: "dict[str, list[str]] | None" = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to Inertia.js protocol format with camelCase keys.

        Returns:
            The Inertia protocol dictionary.
        """
        return to_inertia_dict(self, required_fields={"component", "props", "url", "version"})


class InertiaHeaderType(TypedDict, total=False):
    """Type for inertia_headers parameter in get_headers()."""

    enabled: "bool | None"
    version: "str | None"
    location: "str | None"
