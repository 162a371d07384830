"""Process-wide shared props and template data."""

import threading
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

__all__ = ("SharedState",)


class SharedState:
    """Copy-on-write store for shared props, template data and template functions.

    Every write swaps in a new read-only snapshot while holding a lock, so requests
    that already captured a snapshot keep a consistent view. Shared state is meant to
    be populated during application startup; late writes are safe but only visible to
    requests that start afterwards.
    """

    __slots__ = ("_lock", "_props", "_template_data", "_template_funcs")

    def __init__(
        self,
        props: "Mapping[str, Any] | None" = None,
        template_data: "Mapping[str, Any] | None" = None,
    ) -> None:
        self._lock = threading.Lock()
        self._props: "Mapping[str, Any]" = MappingProxyType(dict(props or {}))
        self._template_data: "Mapping[str, Any]" = MappingProxyType(dict(template_data or {}))
        self._template_funcs: "Mapping[str, Callable[..., Any]]" = MappingProxyType({})

    def share_prop(self, key: str, value: Any) -> None:
        """Insert or replace a shared prop.

        Args:
            key: The prop key.
            value: Any value, including :class:`~litestar_inertia.props.InertiaProp` wrappers.
        """
        with self._lock:
            self._props = MappingProxyType({**self._props, key: value})

    def shared_prop(self, key: str) -> "tuple[Any, bool]":
        """Look up a shared prop.

        Args:
            key: The prop key.

        Returns:
            A ``(value, found)`` tuple. ``value`` is ``None`` when not found.
        """
        props = self._props
        if key in props:
            return props[key], True
        return None, False

    @property
    def props(self) -> "Mapping[str, Any]":
        """The current read-only snapshot of shared props."""
        return self._props

    def share_template_data(self, key: str, value: Any) -> None:
        with self._lock:
            self._template_data = MappingProxyType({**self._template_data, key: value})

    @property
    def template_data(self) -> "Mapping[str, Any]":
        return self._template_data

    def share_template_func(self, name: str, func: "Callable[..., Any]") -> None:
        """Expose a callable to the root template under ``name``.

        Args:
            name: The name used in the template.
            func: The callable.

        Raises:
            TypeError: If ``func`` is not callable.
        """
        if not callable(func):
            msg = f"Template function {name!r} must be callable."
            raise TypeError(msg)
        with self._lock:
            self._template_funcs = MappingProxyType({**self._template_funcs, name: func})

    @property
    def template_funcs(self) -> "Mapping[str, Callable[..., Any]]":
        return self._template_funcs
