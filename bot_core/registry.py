"""Lookup table from command kind to the handler that executes it."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from bot_core.commands import CommandKind
from bot_core.types import Reply

if TYPE_CHECKING:
    from bot_core.context import CommandContext


HandlerResult = Union[Reply, Sequence[Reply], None]
Handler = Callable[["CommandContext"], Awaitable[HandlerResult]]


class CommandRegistry:
    """One handler per :class:`CommandKind`; duplicates are rejected."""

    def __init__(self) -> None:
        self._handlers: Dict[CommandKind, Handler] = {}
        self._owners: Dict[CommandKind, str] = {}

    def add(self, kind: CommandKind, handler: Handler, *, owner: str = "") -> None:
        if kind in self._handlers:
            raise ValueError(
                f"Handler for {kind.value} already registered by '{self._owners[kind]}'"
            )
        self._handlers[kind] = handler
        self._owners[kind] = owner
        logging.debug("Registered handler for %s (owner=%s)", kind.value, owner or "<none>")

    def get(self, kind: CommandKind) -> Optional[Handler]:
        return self._handlers.get(kind)

    def missing(self) -> List[CommandKind]:
        return [kind for kind in CommandKind if kind not in self._handlers]

    def ensure_complete(self) -> None:
        """Raise if any command kind has no handler."""
        missing = self.missing()
        if missing:
            raise RuntimeError(
                "No handler registered for: " + ", ".join(kind.value for kind in missing)
            )

    def __contains__(self, kind: CommandKind) -> bool:
        return kind in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
