"""History encryption and clearing flags of the page object."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from litestar.connection import ASGIConnection

    from litestar_inertia.flash import FlashBridge
    from litestar_inertia.request import RequestContext

__all__ = ("HistoryFlags", "HistoryManager")


@dataclass(frozen=True)
class HistoryFlags:
    encrypt_history: bool
    clear_history: bool


class HistoryManager:
    """Resolve ``encryptHistory`` and ``clearHistory`` for one response.

    ``encryptHistory`` comes from, in order of precedence: the render call, the request
    context, the configured default. ``clearHistory`` is set when the request asked for it
    or a previous request flashed the intent; the flashed intent is consumed either way.

    See: https://inertiajs.com/history-encryption
    """

    __slots__ = ("bridge", "encrypt_history")

    def __init__(self, bridge: "FlashBridge", encrypt_history: bool = False) -> None:
        self.bridge = bridge
        self.encrypt_history = encrypt_history

    def resolve(
        self,
        connection: "ASGIConnection[Any, Any, Any, Any]",
        context: "RequestContext",
        encrypt_history: "bool | None" = None,
    ) -> HistoryFlags:
        if encrypt_history is None:
            encrypt_history = context.encrypt_history
        if encrypt_history is None:
            encrypt_history = self.encrypt_history
        flashed_clear = self.bridge.pull_clear_history(connection)
        return HistoryFlags(encrypt_history=encrypt_history, clear_history=context.clear_history or flashed_clear)
