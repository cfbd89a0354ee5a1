"""
Error classification and exception hierarchy.

Provides:
- SecureConfigError hierarchy for typed exceptions (strict mode)
- Classification utilities mapping Azure SDK errors to ErrorCategory
"""

from secure_config.errors.exceptions import (
    AuthError,
    ConfigurationError,
    KeyVaultError,
    MetadataConversionError,
    SecretNotFoundError,
    SecureConfigError,
    ServiceNotRegisteredError,
    TokenAcquisitionError,
    classify_exception,
    wrap_exception,
)
from secure_config.types import ErrorCategory

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "SecureConfigError",
    "AuthError",
    # Concrete errors
    "TokenAcquisitionError",
    "SecretNotFoundError",
    "MetadataConversionError",
    "KeyVaultError",
    "ConfigurationError",
    "ServiceNotRegisteredError",
    # Classification utilities
    "classify_exception",
    "wrap_exception",
]
