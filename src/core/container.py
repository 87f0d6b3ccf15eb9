"""
Service container for the stats engine.

Factories are registered by name and run on first ``get``; singletons are
cached afterwards. Tests swap in fakes with ``register_instance``.

Usage:
    from src.core.container import get_container

    container = get_container()
    container.register("stats_store", lambda c: SqlAlchemyStatsRepository(factory))
    stats_store = container.get("stats_store")
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

logger = logging.getLogger(__name__)

# A class is called without arguments, anything else receives the container
Factory = Union[type, Callable[["ServiceContainer"], Any]]


@dataclass
class _Registration:
    factory: Optional[Factory]
    singleton: bool = True

    def build(self, container: "ServiceContainer") -> Any:
        if isinstance(self.factory, type):
            return self.factory()
        return self.factory(container)


class ServiceContainer:
    """Named registry of lazily built services."""

    def __init__(self):
        self._registrations: Dict[str, _Registration] = {}
        self._instances: Dict[str, Any] = {}

    def register(self, name: str, factory: Factory, singleton: bool = True) -> None:
        """
        Register ``factory`` under ``name``, dropping any cached instance.

        Args:
            name: Service key, see ``Services`` for the engine's keys
            factory: Class or ``callable(container)`` building the service
            singleton: Cache the first instance (default) or build on every get
        """
        self._registrations[name] = _Registration(factory, singleton)
        self._instances.pop(name, None)
        logger.debug(f"Registered service: {name} (singleton={singleton})")

    def register_instance(self, name: str, instance: Any) -> None:
        self._instances[name] = instance
        self._registrations.setdefault(name, _Registration(None))
        self._registrations[name].singleton = True
        logger.debug(f"Registered instance: {name}")

    def get(self, name: str) -> Any:
        """
        Resolve a service, building it on first access.

        Raises:
            KeyError: If nothing is registered under ``name``
        """
        if name in self._instances:
            return self._instances[name]

        registration = self._registrations.get(name)
        if registration is None or registration.factory is None:
            raise KeyError(f"Service '{name}' is not registered")

        instance = registration.build(self)
        if registration.singleton:
            self._instances[name] = instance
            logger.debug(f"Created singleton instance: {name}")
        return instance

    def has(self, name: str) -> bool:
        return name in self._registrations or name in self._instances

    def clear(self) -> None:
        self._registrations.clear()
        self._instances.clear()
        logger.debug("Container cleared")


_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """Replace the global container with an empty one."""
    global _container
    if _container is not None:
        _container.clear()
    _container = ServiceContainer()
    logger.debug("Global container reset")
