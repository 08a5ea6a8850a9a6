"""Feature module loader for the Aether bot."""

from __future__ import annotations

import importlib
import inspect
import logging
from typing import Iterable, List, Optional

from bot_core.dependency_injector import DependencyContainer
from bot_core.registry import CommandRegistry
from modules.base import Module


FEATURE_MODULES = ("verification", "moderation", "events", "submissions")


class ModuleLoader:
    """
    Imports ``modules.<name>.router`` for every feature module and registers
    its handlers. A router module exposes either
    - a factory function ``get_module(container)``, or
    - a ``Module`` subclass named ``module_class``.
    """

    def __init__(self, registry: CommandRegistry, container: DependencyContainer):
        self.registry = registry
        self.container = container
        self.loaded_modules: List[Module] = []

    def load_all_modules(self, names: Iterable[str] = FEATURE_MODULES) -> List[Module]:
        """Load modules in priority order (lower number first)."""
        candidates = []
        for module_name in names:
            import_path = f"modules.{module_name}.router"
            module_spec = importlib.import_module(import_path)
            logging.debug("Imported module '%s'", import_path)

            instance = self._resolve_module_instance(module_spec)
            if instance is None:
                raise RuntimeError(f"Module '{module_name}' exposes no get_module() or module_class")
            candidates.append((instance.priority, module_name, instance))

        candidates.sort(key=lambda item: item[0])
        logging.debug("Module load order: %s", [name for _, name, _ in candidates])

        for priority, module_name, instance in candidates:
            self.container.inject_dependencies(instance)
            instance.register(self.registry)
            self.loaded_modules.append(instance)
            logging.info("Module '%s' loaded successfully (priority=%s)", module_name, priority)
        return self.loaded_modules

    def _resolve_module_instance(self, module_spec) -> Optional[Module]:
        get_module_fn = getattr(module_spec, "get_module", None)
        if callable(get_module_fn):
            return get_module_fn(self.container)

        module_class = getattr(module_spec, "module_class", None)
        if inspect.isclass(module_class) and issubclass(module_class, Module):
            return module_class()

        return None

    async def shutdown(self) -> None:
        """Call the shutdown hook of every loaded module."""
        for instance in self.loaded_modules:
            try:
                await instance.on_shutdown()
            except Exception:
                logging.exception("Error during shutdown of module '%s'", instance.name)
