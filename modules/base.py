import logging
from abc import ABC, abstractmethod
from typing import Dict, Tuple

from bot_core.commands import CommandKind
from bot_core.registry import CommandRegistry, Handler


class Module(ABC):
    """
    Base class for feature modules.

    A module owns the handlers for a group of command kinds. Collaborators
    listed in ``required_services`` are injected as attributes by the
    dependency container before ``register`` is called.
    """

    required_services: Tuple[str, ...] = ()

    def __init__(self, name: str, priority: int = 100):
        self.name: str = name
        self.priority: int = priority
        logging.debug("Initialised module base '%s' with priority %s", name, priority)

    @abstractmethod
    def handlers(self) -> Dict[CommandKind, Handler]:
        """Return the handler for every command kind this module owns."""

    def register(self, registry: CommandRegistry) -> None:
        """Add this module's handlers to the command lookup table."""
        for kind, handler in self.handlers().items():
            registry.add(kind, handler, owner=self.name)
        logging.debug("Module '%s' registered %s handler(s)", self.name, len(self.handlers()))

    async def on_shutdown(self):
        """Called on application shutdown if needed."""
        logging.debug("Module '%s' on_shutdown() not overridden; skipping", self.name)
        return None
