"""
Exception hierarchy for secure_config.

Every lenient (best-effort) boundary in this package logs and swallows its
failures by default. The same boundaries accept ``strict=True`` and then
raise one of the typed exceptions below instead.
"""

from azure.core.exceptions import (
    ClientAuthenticationError,
    ResourceNotFoundError,
    ServiceRequestError,
    ServiceResponseError,
)

from secure_config.types import ErrorCategory


class SecureConfigError(Exception):
    """
    Base exception for all secure_config errors.

    Attributes:
        message: Human-readable error description
        category: Error classification
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.category in (ErrorCategory.TRANSIENT, ErrorCategory.UNKNOWN)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Authentication Errors
# =============================================================================


class AuthError(SecureConfigError):
    """Base class for authentication errors."""

    category = ErrorCategory.AUTH


class TokenAcquisitionError(AuthError):
    """The identity provider did not return an access token."""

    pass


# =============================================================================
# Secret Errors
# =============================================================================


class SecretNotFoundError(SecureConfigError):
    """Named secret is not present in the application secrets table."""

    category = ErrorCategory.PERMANENT

    def __init__(self, secret_name: str, cause: Exception | None = None):
        super().__init__(
            f"Secret '{secret_name}' not found", cause, {"secret_name": secret_name}
        )
        self.secret_name = secret_name


class MetadataConversionError(SecureConfigError):
    """Secret metadata could not be converted into the requested model."""

    category = ErrorCategory.PERMANENT


class KeyVaultError(SecureConfigError):
    """Error talking to Azure Key Vault."""

    category = ErrorCategory.TRANSIENT


# =============================================================================
# Configuration / Host Errors
# =============================================================================


class ConfigurationError(SecureConfigError):
    """Configuration file or section is missing or malformed."""

    category = ErrorCategory.CONFIG


class ServiceNotRegisteredError(SecureConfigError):
    """Requested service type has no registration in the service collection."""

    category = ErrorCategory.CONFIG

    def __init__(self, service_type: type):
        name = getattr(service_type, "__name__", str(service_type))
        super().__init__(
            f"No service registered for type '{name}'", context={"service_type": name}
        )
        self.service_type = service_type


# =============================================================================
# Classification Utilities
# =============================================================================


def classify_exception(error: Exception) -> ErrorCategory:
    """
    Classify any exception into an ErrorCategory.

    SecureConfigError subclasses carry their own category. Azure SDK errors
    are mapped by type: authentication failures to AUTH, request/response
    transport failures to TRANSIENT.
    """
    if isinstance(error, SecureConfigError):
        return error.category

    if isinstance(error, ClientAuthenticationError):
        return ErrorCategory.AUTH
    if isinstance(error, ResourceNotFoundError):
        return ErrorCategory.PERMANENT
    if isinstance(error, (ServiceRequestError, ServiceResponseError, TimeoutError, ConnectionError)):
        return ErrorCategory.TRANSIENT
    if isinstance(error, (KeyError, ValueError, TypeError)):
        return ErrorCategory.PERMANENT
    return ErrorCategory.UNKNOWN


def wrap_exception(error: Exception, message: str | None = None) -> SecureConfigError:
    """Wrap an arbitrary exception in the matching SecureConfigError subclass."""
    if isinstance(error, SecureConfigError):
        return error

    category = classify_exception(error)
    message = message or str(error)
    if category == ErrorCategory.AUTH:
        return TokenAcquisitionError(message, cause=error)
    if category == ErrorCategory.TRANSIENT:
        return KeyVaultError(message, cause=error)
    wrapped = SecureConfigError(message, cause=error)
    wrapped.category = category
    return wrapped


__all__ = [
    "SecureConfigError",
    "AuthError",
    "TokenAcquisitionError",
    "SecretNotFoundError",
    "MetadataConversionError",
    "KeyVaultError",
    "ConfigurationError",
    "ServiceNotRegisteredError",
    "classify_exception",
    "wrap_exception",
]
