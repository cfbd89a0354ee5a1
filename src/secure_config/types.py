"""
Shared types and protocols used across modules.

Base enums and protocol definitions shared by the secrets, auth, cache and
host layers.
"""

from enum import Enum
from typing import Protocol


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures (network timeouts, throttling)
        AUTH: Identity provider rejected the credentials
        PERMANENT: Won't succeed on retry (missing secret, bad metadata)
        CONFIG: Configuration is missing or malformed
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    CONFIG = "config"
    UNKNOWN = "unknown"


class ConfigurationCache(Protocol):
    """
    Read side of the distributed cache used for timed configuration refresh.

    The cache itself (Redis or similar) is provided by the host application.
    """

    async def get(self, key: str) -> str | None:
        """Return the cached value for key, or None when absent."""
        ...


class SecretSource(Protocol):
    """Protocol for stores that can resolve a single secret by name."""

    def get_secret(self, name: str) -> str | None:
        ...


__all__ = ["ErrorCategory", "ConfigurationCache", "SecretSource"]
