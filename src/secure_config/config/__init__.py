"""Configuration loading.

Main Functions
--------------

    - load_configuration(): Build layered configuration (YAML, .env,
      environment, command line)
    - Configuration: ``:``-separated, case-insensitive key space
    - InitialConfiguration: settings bound from the InitialConfiguration
      section (runtime environment, Key Vault, logging providers, cache
      refresh)

Usage Examples
--------------

    >>> from secure_config.config import load_configuration, InitialConfiguration
    >>> config = load_configuration(args=["--SubscriptionName=Orders"])
    >>> config["SubscriptionName"]
    'Orders'
    >>> setup = config.bind(InitialConfiguration, "InitialConfiguration")
"""

from secure_config.config.configuration import (
    Configuration,
    environment_values,
    load_configuration,
    load_yaml,
    parse_command_line,
)
from secure_config.config.setup import (
    INITIAL_CONFIGURATION_SECTION,
    EnabledLogger,
    InitialConfiguration,
    SerializationFormat,
    TimedCacheRefresh,
)

__all__ = [
    "Configuration",
    "load_configuration",
    "load_yaml",
    "parse_command_line",
    "environment_values",
    "InitialConfiguration",
    "TimedCacheRefresh",
    "EnabledLogger",
    "SerializationFormat",
    "INITIAL_CONFIGURATION_SECTION",
]
