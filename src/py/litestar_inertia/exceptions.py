"""Litestar-Inertia exception classes."""

__all__ = [
    "FlashProviderError",
    "LitestarInertiaError",
    "PageSerializationError",
    "RootTemplateError",
]


class LitestarInertiaError(Exception):
    """Base exception for Litestar-Inertia related errors."""


class RootTemplateError(LitestarInertiaError):
    """Raised when the root template is missing, blank or cannot be parsed."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid root template: {message}")


class FlashProviderError(LitestarInertiaError):
    """Raised when the flash provider fails to read or write flashed state."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Flash provider failed during {operation!r}.")
        self.operation = operation


class PageSerializationError(LitestarInertiaError):
    """Raised when the page object cannot be encoded."""

    def __init__(self, component: str, detail: str) -> None:
        super().__init__(f"Unable to serialize page for component {component!r}: {detail}")
        self.component = component
