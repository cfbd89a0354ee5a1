"""Application host: configuration, secrets, logging and services wired together."""

from secure_config.host.builder import (
    ApplicationContext,
    ApplicationHost,
    ConfigurationResults,
    HostBuilder,
    create_app,
)
from secure_config.host.container import (
    Lifecycle,
    ServiceCollection,
    ServiceDescriptor,
    ServiceProvider,
)

__all__ = [
    # Container
    "Lifecycle",
    "ServiceDescriptor",
    "ServiceCollection",
    "ServiceProvider",
    # Host
    "ApplicationContext",
    "ApplicationHost",
    "HostBuilder",
    "ConfigurationResults",
    "create_app",
]
