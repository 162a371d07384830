"""Prop wrappers and the prop resolver.

A prop value is either a plain value or an :class:`InertiaProp` carrying an evaluation
policy. The resolver decides which props are part of a response and evaluates the
wrapped computations of the selected ones.
"""

import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any, Generic, Literal, TypeGuard, TypeVar, cast

if TYPE_CHECKING:
    from litestar_inertia.types import PartialReload

__all__ = (
    "DEFAULT_DEFERRED_GROUP",
    "InertiaProp",
    "PropPolicy",
    "always",
    "defer",
    "extract_deferred_props",
    "is_inertia_prop",
    "lazy",
    "resolve_props",
    "select_props",
)

T = TypeVar("T")

PropPolicy = Literal["lazy", "always", "defer"]

DEFAULT_DEFERRED_GROUP = "default"


class InertiaProp(Generic[T]):
    """A prop whose inclusion and evaluation is governed by a policy.

    The wrapped value may be a plain value, a zero-argument callable, or a zero-argument
    coroutine function. Nothing is cached on the wrapper, so a shared prop is evaluated
    again for every response that includes it.
    """

    __slots__ = ("_group", "_policy", "_value")

    def __init__(
        self,
        value: "T | Callable[[], T] | Callable[[], Awaitable[T]]",
        policy: "PropPolicy",
        group: "str | None" = None,
    ) -> None:
        if policy == "defer" and not group:
            msg = "Deferred props require a group name."
            raise ValueError(msg)
        self._value = value
        self._policy: PropPolicy = policy
        self._group = group if policy == "defer" else None

    @property
    def policy(self) -> "PropPolicy":
        return self._policy

    @property
    def group(self) -> "str | None":
        """The deferred group this prop belongs to, if any."""
        return self._group

    async def resolve(self) -> "T":
        """Evaluate the wrapped value.

        Returns:
            The plain value, or the (awaited) result of the wrapped callable.
        """
        if not callable(self._value):
            return cast("T", self._value)
        result = self._value()
        if inspect.isawaitable(result):
            return cast("T", await result)
        return cast("T", result)

    def __repr__(self) -> str:
        group = f", group={self._group!r}" if self._group else ""
        return f"InertiaProp(policy={self._policy!r}{group})"


def lazy(value_or_callable: "T | Callable[[], T] | Callable[[], Awaitable[T]]") -> "InertiaProp[T]":
    """Wrap a value that is only sent when a partial reload asks for it by name.

    Args:
        value_or_callable: The value or callable to evaluate on demand.

    Returns:
        The wrapped prop.
    """
    return InertiaProp(value_or_callable, "lazy")


def always(value_or_callable: "T | Callable[[], T] | Callable[[], Awaitable[T]]") -> "InertiaProp[T]":
    """Wrap a value that is sent with every response, partial reloads included.

    Only an explicit ``X-Inertia-Partial-Except`` entry removes it.

    Args:
        value_or_callable: The value or callable to evaluate.

    Returns:
        The wrapped prop.
    """
    return InertiaProp(value_or_callable, "always")


def defer(
    callback: "Callable[[], T] | Callable[[], Awaitable[T]]",
    group: str = DEFAULT_DEFERRED_GROUP,
) -> "InertiaProp[T]":
    """Create a deferred prop.

    Deferred props are left out of the initial page load. The page object lists them
    under ``deferredProps`` and the client fetches each group afterwards with a partial
    reload that names every key of the group.

    Args:
        callback: A callable (sync or async) that returns the value.
        group: The group name for batched loading. Defaults to "default".

    Returns:
        The wrapped prop.

    Example::

        defer(lambda: Permission.all())

        # Fetched together
        defer(lambda: Team.all(), group="attributes")
        defer(lambda: Project.all(), group="attributes")
    """
    return InertiaProp(callback, "defer", group)


def is_inertia_prop(value: "Any") -> "TypeGuard[InertiaProp[Any]]":
    """Check if value is a policy-tagged prop.

    Args:
        value: Any value to check

    Returns:
        bool: True if value is an InertiaProp
    """
    return isinstance(value, InertiaProp)


def extract_deferred_props(props: "Mapping[str, Any]") -> "dict[str, list[str]]":
    """Group the keys of deferred props by their group name.

    Args:
        props: The props to scan.

    Returns:
        A dict mapping group names to prop keys. Empty if there are no deferred props.

    Example::

        props = {
            "users": [...],
            "teams": defer(get_teams, group="attributes"),
            "projects": defer(get_projects, group="attributes"),
            "permissions": defer(get_permissions),
        }
        extract_deferred_props(props)
        # {"attributes": ["teams", "projects"], "default": ["permissions"]}
    """
    groups: "dict[str, list[str]]" = {}
    for key, value in props.items():
        if is_inertia_prop(value) and value.policy == "defer":
            groups.setdefault(cast("str", value.group), []).append(key)
    return groups


def _should_include(key: str, value: "Any", partial: "PartialReload | None") -> bool:
    if partial is not None and key in partial.except_:
        return False
    if not is_inertia_prop(value):
        return partial is None or not partial.only or key in partial.only
    if value.policy == "always":
        return True
    if partial is None or not partial.only:
        return False
    return key in partial.only


def select_props(props: "Mapping[str, Any]", partial: "PartialReload | None" = None) -> "dict[str, Any]":
    """Select the props that belong in a response, without evaluating them.

    ``lazy`` and deferred props are only selected when ``partial.only`` names their key.

    Args:
        props: The merged props, in merge order.
        partial: The partial reload to honor, or ``None`` for a full page load.

    Returns:
        The selected props, still possibly wrapped, in the original order.
    """
    return {key: value for key, value in props.items() if _should_include(key, value, partial)}


async def resolve_props(props: "Mapping[str, Any]", partial: "PartialReload | None" = None) -> "dict[str, Any]":
    """Select and evaluate the props of a response.

    Each selected computation is evaluated exactly once, in merge order.

    Args:
        props: The merged props, in merge order.
        partial: The partial reload to honor, or ``None`` for a full page load.

    Returns:
        Fully resolved props. No value in the result is an :class:`InertiaProp`.
    """
    resolved: "dict[str, Any]" = {}
    for key, value in select_props(props, partial).items():
        resolved[key] = await value.resolve() if is_inertia_prop(value) else value
    return resolved
