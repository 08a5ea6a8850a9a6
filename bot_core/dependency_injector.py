import logging
from typing import Any, Dict


class DependencyContainer:
    """Named collaborators shared by the feature modules."""

    def __init__(self):
        self.services: Dict[str, Any] = {}
        logging.debug("DependencyContainer initialised")

    def register(self, service_name: str, service_instance: Any) -> None:
        """Register a service in the container"""
        logging.debug("Registering service '%s' (%s)", service_name, type(service_instance).__name__)
        self.services[service_name] = service_instance

    def inject_dependencies(self, target_object: Any) -> None:
        """Set every name in ``target_object.required_services`` as an attribute.

        Raises ``LookupError`` when a required service was never registered.
        """
        required = getattr(target_object, "required_services", ())
        logging.debug("Injecting dependencies into %s; required=%s", type(target_object).__name__, required)
        missing = [name for name in required if name not in self.services]
        if missing:
            raise LookupError(
                f"{type(target_object).__name__} requires unregistered service(s): {', '.join(missing)}"
            )
        for name in required:
            setattr(target_object, name, self.services[name])
            logging.debug("Injected '%s' into %s", name, type(target_object).__name__)
