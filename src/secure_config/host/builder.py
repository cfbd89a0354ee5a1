"""
Application host.

Builds everything an application needs before its first line of business
logic runs, in this order:

    1. layered configuration (appsettings files, .env, environment, CLI)
    2. InitialConfiguration, with {RTE} substituted
    3. Azure Key Vault configuration overlay (when KeyVaultName and
       KeyVaultKey are set)
    4. ApplicationSecrets (configuration, overlaid with the Key Vault
       secrets document)
    5. distributed cache (via ``cache_factory``) and the timed refresher
    6. caller service registrations, then the built-in registrations
    7. logging providers

Usage:
    class OrdersApp:
        def __init__(self, secrets: ApplicationSecrets, configuration: Configuration):
            ...

        async def run(self):
            ...

    results = create_app(OrdersApp, sys.argv[1:])
    async with results.host:
        await results.service.run()

All state lives on the ApplicationContext owned by the host; nothing is
stored at module level.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Generic, TypeVar

from secure_config.cache.refresh import ConfigurationRefresher
from secure_config.config.configuration import Configuration, load_configuration
from secure_config.config.setup import INITIAL_CONFIGURATION_SECTION, InitialConfiguration
from secure_config.host.container import ServiceCollection, ServiceProvider
from secure_config.logging.setup import configure_logging
from secure_config.secrets.keyvault import KeyVaultSecretSource
from secure_config.secrets.store import APPLICATION_SECRETS_SECTION, ApplicationSecrets
from secure_config.types import ConfigurationCache, SecretSource

logger = logging.getLogger(__name__)

AppT = TypeVar("AppT")
ServiceT = TypeVar("ServiceT")


@dataclass
class ApplicationContext:
    """
    State shared by the application and its services.

    Attributes:
        configuration: Live configuration (refreshed from the cache)
        setup: Bound InitialConfiguration
        secrets: Application secrets table
        environment_name: Runtime environment (RTE, else the host environment)
        key_vault: Key Vault source, when configured
        cache: Distributed cache returned by the cache factory
        refresher: Timed cache refresher, when refresh keys are configured
        services: Service provider, set once services are built
    """

    configuration: Configuration
    setup: InitialConfiguration
    secrets: ApplicationSecrets
    environment_name: str
    key_vault: SecretSource | None = None
    cache: ConfigurationCache | None = None
    refresher: ConfigurationRefresher | None = None
    services: ServiceProvider | None = field(default=None, repr=False)


ConfigureServices = Callable[[ApplicationContext, ServiceCollection, InitialConfiguration], None]
CacheFactory = Callable[[ApplicationSecrets], ConfigurationCache | None]
KeyVaultFactory = Callable[[str], Any]


class ApplicationHost(Generic[AppT]):
    """Built application: context, services and the refresher lifecycle."""

    def __init__(self, app_type: type[AppT], context: ApplicationContext, services: ServiceProvider):
        self.app_type = app_type
        self.context = context
        self.services = services
        self._started = False

    def get_service(self, service_type: type[ServiceT]) -> ServiceT | None:
        return self.services.get_service(service_type)

    def get_required_service(self, service_type: type[ServiceT]) -> ServiceT:
        return self.services.get_required_service(service_type)

    async def start(self) -> None:
        """Start background work (the cache refresher)."""
        if self._started:
            return
        if self.context.refresher is not None:
            self.context.refresher.start()
        self._started = True
        logger.info(
            "Application host started",
            extra={"app_type": self.app_type.__name__},
        )

    async def stop(self) -> None:
        """Stop background work and release the Key Vault client."""
        if self.context.refresher is not None:
            await self.context.refresher.stop()
        if isinstance(self.context.key_vault, KeyVaultSecretSource):
            self.context.key_vault.close()
        self._started = False
        logger.info(
            "Application host stopped",
            extra={"app_type": self.app_type.__name__},
        )

    async def __aenter__(self) -> "ApplicationHost[AppT]":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()


class HostBuilder(Generic[AppT]):
    """
    Configures and builds an ApplicationHost for ``app_type``.

    Args:
        app_type: Main application class, registered as a transient service
        args: Command-line arguments
        configure_services: Called as ``configure_services(context, services, setup)``
            before the built-in registrations
        cache_factory: Creates the distributed cache from the secrets
        key_vault_factory: Creates the Key Vault source from the vault name
            (default: KeyVaultSecretSource)
        base_path: Directory holding appsettings files
        environment: Host environment name (default: $APP_ENVIRONMENT)
        env_prefix: Only import environment variables with this prefix
    """

    def __init__(
        self,
        app_type: type[AppT],
        args: Iterable[str] | None = None,
        configure_services: ConfigureServices | None = None,
        cache_factory: CacheFactory | None = None,
        key_vault_factory: KeyVaultFactory | None = None,
        base_path: Path | None = None,
        environment: str | None = None,
        env_prefix: str | None = None,
    ):
        self.app_type = app_type
        self.args = list(args or [])
        self.configure_services = configure_services
        self.cache_factory = cache_factory
        self.key_vault_factory = key_vault_factory or KeyVaultSecretSource
        self.base_path = base_path
        self.environment = environment
        self.env_prefix = env_prefix

    def _build_context(self) -> ApplicationContext:
        configuration = load_configuration(
            base_path=self.base_path,
            environment=self.environment,
            args=self.args,
            env_prefix=self.env_prefix,
        )

        setup = configuration.bind(InitialConfiguration, INITIAL_CONFIGURATION_SECTION)
        setup.resolve_runtime_environment()

        key_vault = None
        if setup.has_key_vault:
            key_vault = self.key_vault_factory(setup.key_vault_name)
            configuration.add(key_vault.load_configuration())

        secrets = ApplicationSecrets.from_configuration(
            configuration, setup, key_vault=key_vault, section=APPLICATION_SECRETS_SECTION
        )

        cache = self.cache_factory(secrets) if self.cache_factory else None

        refresher = None
        if cache is not None and setup.timed_cache_refresh and setup.timed_cache_refresh.keys:
            refresher = ConfigurationRefresher(cache, configuration, setup.timed_cache_refresh)

        return ApplicationContext(
            configuration=configuration,
            setup=setup,
            secrets=secrets,
            environment_name=setup.rte or configuration["Environment"] or "",
            key_vault=key_vault,
            cache=cache,
            refresher=refresher,
        )

    def _build_services(self, context: ApplicationContext) -> ServiceProvider:
        services = ServiceCollection()
        if self.configure_services is not None:
            self.configure_services(context, services, context.setup)

        app_logger = logging.getLogger(f"{self.app_type.__module__}.{self.app_type.__name__}")
        services.add_transient(self.app_type)
        services.add_singleton(ApplicationContext, instance=context)
        services.add_singleton(Configuration, instance=context.configuration)
        services.add_singleton(InitialConfiguration, instance=context.setup)
        services.add_singleton(ApplicationSecrets, instance=context.secrets)
        services.add_singleton(logging.Logger, instance=app_logger)
        if context.cache is not None:
            services.add_singleton(ConfigurationCache, instance=context.cache)
        return services.build_provider()

    def build(self) -> ApplicationHost[AppT]:
        """
        Build the host.

        Raises:
            ConfigurationError: If configuration or secrets are malformed
            KeyVaultError: If Key Vault is configured but cannot be read
        """
        context = self._build_context()
        context.services = self._build_services(context)

        configure_logging(
            context.setup,
            context.configuration,
            context.secrets,
            app_name=self.app_type.__name__,
        )

        logger.info(
            "Application host built",
            extra={
                "app_type": self.app_type.__name__,
                "secret_count": len(context.secrets),
                "key_vault": context.setup.key_vault_name if context.key_vault else None,
            },
        )
        return ApplicationHost(self.app_type, context, context.services)


@dataclass
class ConfigurationResults(Generic[AppT]):
    """How an application was created and hosted."""

    builder: HostBuilder[AppT]
    host: ApplicationHost[AppT]
    service: AppT

    def get_service(self, service_type: type[ServiceT]) -> ServiceT | None:
        return self.host.get_service(service_type)


def create_app(
    app_type: type[AppT],
    args: Iterable[str] | None = None,
    configure_services: ConfigureServices | None = None,
    **builder_options: Any,
) -> ConfigurationResults[AppT]:
    """
    Build a host for ``app_type`` and resolve the application instance.

    The application's constructor receives any registered service it
    declares by type hint (Configuration, ApplicationSecrets,
    InitialConfiguration, ApplicationContext, logging.Logger, ...).
    """
    builder = HostBuilder(app_type, args, configure_services, **builder_options)
    host = builder.build()
    service = host.get_required_service(app_type)
    return ConfigurationResults(builder=builder, host=host, service=service)


__all__ = [
    "ApplicationContext",
    "ApplicationHost",
    "HostBuilder",
    "ConfigurationResults",
    "create_app",
]
