"""
Minimal service container.

Services are registered by type with a lifecycle and resolved from a
ServiceProvider:

    services = ServiceCollection()
    services.add_singleton(Configuration, instance=configuration)
    services.add_transient(OrdersApp)        # constructor-injected
    provider = services.build_provider()
    app = provider.get_required_service(OrdersApp)

Classes registered without a factory are constructed by resolving their
``__init__`` parameters from their type hints. Parameters with defaults
are skipped when their type is not registered.
"""

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar, get_type_hints

from secure_config.errors import ServiceNotRegisteredError

logger = logging.getLogger(__name__)

T = TypeVar("T")
Factory = Callable[["ServiceProvider"], Any]


class Lifecycle(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


@dataclass
class ServiceDescriptor:
    """How one service type is created."""

    service_type: Any
    lifecycle: Lifecycle
    instance: Any = None
    factory: Factory | None = None
    implementation: type | None = None


class ServiceCollection:
    """Service registrations, later registrations replace earlier ones."""

    def __init__(self):
        self._descriptors: dict[Any, ServiceDescriptor] = {}

    def _register(
        self,
        service_type: Any,
        lifecycle: Lifecycle,
        instance: Any = None,
        factory: Factory | None = None,
        implementation: type | None = None,
    ) -> "ServiceCollection":
        if instance is None and factory is None and implementation is None:
            implementation = service_type
        self._descriptors[service_type] = ServiceDescriptor(
            service_type=service_type,
            lifecycle=lifecycle,
            instance=instance,
            factory=factory,
            implementation=implementation,
        )
        return self

    def add_singleton(
        self,
        service_type: Any,
        instance: Any = None,
        factory: Factory | None = None,
        implementation: type | None = None,
    ) -> "ServiceCollection":
        """Register a service created once (or given as ``instance``) and shared."""
        return self._register(service_type, Lifecycle.SINGLETON, instance, factory, implementation)

    def add_transient(
        self,
        service_type: Any,
        factory: Factory | None = None,
        implementation: type | None = None,
    ) -> "ServiceCollection":
        """Register a service created anew on every resolution."""
        return self._register(
            service_type, Lifecycle.TRANSIENT, factory=factory, implementation=implementation
        )

    def __contains__(self, service_type: object) -> bool:
        return service_type in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def descriptors(self) -> list[ServiceDescriptor]:
        return list(self._descriptors.values())

    def build_provider(self) -> "ServiceProvider":
        return ServiceProvider(dict(self._descriptors))


class ServiceProvider:
    """Resolves registered services."""

    def __init__(self, descriptors: dict[Any, ServiceDescriptor]):
        self._descriptors = descriptors
        self._singletons: dict[Any, Any] = {}

    def get_service(self, service_type: type[T]) -> T | None:
        """Resolve a service, or None when it is not registered."""
        descriptor = self._descriptors.get(service_type)
        if descriptor is None:
            return None

        if descriptor.lifecycle == Lifecycle.SINGLETON:
            if descriptor.instance is not None:
                return descriptor.instance
            if service_type not in self._singletons:
                self._singletons[service_type] = self._create(descriptor)
            return self._singletons[service_type]

        return self._create(descriptor)

    def get_required_service(self, service_type: type[T]) -> T:
        """
        Resolve a service that must be registered.

        Raises:
            ServiceNotRegisteredError: If the type is not registered or
                resolves to None
        """
        service = self.get_service(service_type)
        if service is None:
            raise ServiceNotRegisteredError(service_type)
        return service

    def _create(self, descriptor: ServiceDescriptor) -> Any:
        if descriptor.factory is not None:
            return descriptor.factory(self)
        return self._construct(descriptor.implementation)

    def _construct(self, implementation: type) -> Any:
        try:
            hints = get_type_hints(implementation.__init__)
        except (NameError, TypeError):
            hints = {}

        kwargs: dict[str, Any] = {}
        for name, parameter in inspect.signature(implementation).parameters.items():
            if parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
                continue
            dependency = hints.get(name)
            if dependency is not None and dependency in self._descriptors:
                kwargs[name] = self.get_required_service(dependency)
            elif parameter.default is parameter.empty:
                raise ServiceNotRegisteredError(dependency or name)

        logger.debug(
            "Constructing service",
            extra={"service_type": implementation.__name__},
        )
        return implementation(**kwargs)


__all__ = ["Lifecycle", "ServiceDescriptor", "ServiceCollection", "ServiceProvider"]
