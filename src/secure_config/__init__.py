"""
secure_config: application bootstrap for services running against Azure.

Modules:
    config   - Layered configuration (YAML, .env, environment, CLI) and InitialConfiguration
    secrets  - Secret records with metadata, the ApplicationSecrets table, Key Vault source
    auth     - Client-credential tokens and authorized aiohttp sessions
    clients  - Authorized API client factory (``<Subscription>.Api`` secrets)
    cache    - Timed configuration refresh from a distributed cache
    logging  - Structured JSON / console logging and provider selection
    host     - Host builder, service container and application context
    errors   - Exception hierarchy used when ``strict=True``

Error handling:
    Operations are best-effort by default: failures are logged and a None
    or partial result is returned. Pass ``strict=True`` to get typed
    SecureConfigError subclasses instead.
"""

from secure_config.auth import AuthCredential, AuthResult
from secure_config.clients import AuthorizedClientDetails, create_authorized_api_client
from secure_config.config import Configuration, InitialConfiguration, load_configuration
from secure_config.errors import SecureConfigError
from secure_config.host import ConfigurationResults, HostBuilder, create_app
from secure_config.secrets import ApplicationSecrets, SecretMetadata, SecretRecord

__version__ = "0.1.0"

__all__ = [
    "AuthCredential",
    "AuthResult",
    "AuthorizedClientDetails",
    "create_authorized_api_client",
    "Configuration",
    "InitialConfiguration",
    "load_configuration",
    "SecureConfigError",
    "HostBuilder",
    "ConfigurationResults",
    "create_app",
    "ApplicationSecrets",
    "SecretMetadata",
    "SecretRecord",
]
