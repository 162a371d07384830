"""Flashed validation errors and history clearing across a redirect.

A form submission that fails validation is answered with a redirect; the errors have
to survive until the page rendered after that redirect. The :class:`FlashProvider`
holds them in between, and the :class:`FlashBridge` pulls them into the page object.
"""

from typing import TYPE_CHECKING, Any, Protocol, cast, runtime_checkable

from litestar_inertia.exceptions import FlashProviderError

if TYPE_CHECKING:
    from litestar.connection import ASGIConnection

    from litestar_inertia.types import ValidationErrors

__all__ = ("FlashBridge", "FlashProvider", "InMemoryFlashProvider", "SessionFlashProvider")

_ERRORS_KEY = "_inertia_errors"
_CLEAR_HISTORY_KEY = "_inertia_clear_history"


@runtime_checkable
class FlashProvider(Protocol):
    """Storage for state that must outlive the current request.

    Implementations decide how flashed values expire. ``should_clear_history`` must consume
    the flag it returns so that a flashed intent is delivered once.
    """

    def flash_errors(self, connection: "ASGIConnection[Any, Any, Any, Any]", errors: "ValidationErrors") -> None: ...

    def get_errors(self, connection: "ASGIConnection[Any, Any, Any, Any]") -> "ValidationErrors": ...

    def should_clear_history(self, connection: "ASGIConnection[Any, Any, Any, Any]") -> bool: ...

    def flash_clear_history(self, connection: "ASGIConnection[Any, Any, Any, Any]") -> None: ...


class SessionFlashProvider:
    """Flash provider backed by the Litestar session.

    Values are removed from the session when read. Requires a session middleware.
    """

    def flash_errors(self, connection: "ASGIConnection[Any, Any, Any, Any]", errors: "ValidationErrors") -> None:
        connection.session.setdefault(_ERRORS_KEY, {}).update(errors)

    def get_errors(self, connection: "ASGIConnection[Any, Any, Any, Any]") -> "ValidationErrors":
        return cast("ValidationErrors", connection.session.pop(_ERRORS_KEY, {}))

    def should_clear_history(self, connection: "ASGIConnection[Any, Any, Any, Any]") -> bool:
        return bool(connection.session.pop(_CLEAR_HISTORY_KEY, False))

    def flash_clear_history(self, connection: "ASGIConnection[Any, Any, Any, Any]") -> None:
        connection.session[_CLEAR_HISTORY_KEY] = True


class InMemoryFlashProvider:
    """Process-local flash provider, for tests and single-user tools.

    State is not keyed by client: every connection sees the same flashed values.
    """

    def __init__(self) -> None:
        self.errors: "ValidationErrors" = {}
        self.clear_history = False

    def flash_errors(self, connection: "ASGIConnection[Any, Any, Any, Any]", errors: "ValidationErrors") -> None:
        self.errors.update(errors)

    def get_errors(self, connection: "ASGIConnection[Any, Any, Any, Any]") -> "ValidationErrors":
        errors, self.errors = self.errors, {}
        return errors

    def should_clear_history(self, connection: "ASGIConnection[Any, Any, Any, Any]") -> bool:
        clear, self.clear_history = self.clear_history, False
        return clear

    def flash_clear_history(self, connection: "ASGIConnection[Any, Any, Any, Any]") -> None:
        self.clear_history = True


class FlashBridge:
    """Moves flashed state between the provider and the page assembler.

    Provider failures are never swallowed: they are re-raised as
    :class:`~litestar_inertia.exceptions.FlashProviderError` and abort the response.
    Without a provider, there are no errors and history is never cleared.
    """

    __slots__ = ("provider",)

    def __init__(self, provider: "FlashProvider | None" = None) -> None:
        self.provider = provider

    def pull_errors(self, connection: "ASGIConnection[Any, Any, Any, Any]") -> "ValidationErrors":
        """Return the errors flashed by the previous request.

        Returns:
            Field name to message(s). Empty when nothing was flashed.

        Raises:
            FlashProviderError: If the provider fails.
        """
        if self.provider is None:
            return {}
        try:
            return dict(self.provider.get_errors(connection) or {})
        except Exception as exc:
            raise FlashProviderError("get_errors") from exc

    def pull_clear_history(self, connection: "ASGIConnection[Any, Any, Any, Any]") -> bool:
        """Return and consume the flashed "clear history" intent.

        Returns:
            True once per flashed intent, False afterwards.

        Raises:
            FlashProviderError: If the provider fails.
        """
        if self.provider is None:
            return False
        try:
            return bool(self.provider.should_clear_history(connection))
        except Exception as exc:
            raise FlashProviderError("should_clear_history") from exc

    def push_errors(self, connection: "ASGIConnection[Any, Any, Any, Any]", errors: "ValidationErrors") -> None:
        """Flash validation errors for the next request.

        Raises:
            FlashProviderError: If the provider fails.
        """
        if self.provider is None or not errors:
            return
        try:
            self.provider.flash_errors(connection, errors)
        except Exception as exc:
            raise FlashProviderError("flash_errors") from exc

    def push_clear_history(self, connection: "ASGIConnection[Any, Any, Any, Any]") -> None:
        """Flash the "clear history" intent for the next request.

        Raises:
            FlashProviderError: If the provider fails.
        """
        if self.provider is None:
            return
        try:
            self.provider.flash_clear_history(connection)
        except Exception as exc:
            raise FlashProviderError("flash_clear_history") from exc
