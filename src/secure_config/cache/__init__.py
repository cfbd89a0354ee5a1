"""Cache-driven configuration refresh."""

from secure_config.cache.refresh import CacheRefreshSettings, ConfigurationRefresher
from secure_config.types import ConfigurationCache

__all__ = ["ConfigurationRefresher", "CacheRefreshSettings", "ConfigurationCache"]
