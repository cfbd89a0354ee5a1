"""
Authorized API client factory.

For an API subscription named ``Orders`` the secret ``Orders.Api`` holds
the identity and endpoint details as metadata. The factory looks the secret
up, converts its metadata into an AuthCredential, acquires a token and
returns an aiohttp session carrying the bearer token:

    async with await create_authorized_api_client(secrets, configuration) as details:
        if details.authorized_api_client is not None:
            async with details.authorized_api_client.get(
                details.auth_config.endpoint_address
            ) as response:
                ...

Error handling:
    By default every failure is logged and a partially populated
    AuthorizedClientDetails is returned; fields after the failing step are
    None, so callers must check each field. With ``strict=True`` the
    failure is raised as a SecureConfigError subclass instead.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from secure_config.auth.credential import AuthCredential
from secure_config.errors import (
    MetadataConversionError,
    SecretNotFoundError,
    SecureConfigError,
    wrap_exception,
)
from secure_config.secrets.models import SecretRecord
from secure_config.secrets.store import ApplicationSecrets

logger = logging.getLogger(__name__)

SUBSCRIPTION_NAME_KEY = "SubscriptionName"
API_SECRET_SUFFIX = ".Api"


@dataclass
class AuthorizedClientDetails:
    """
    Result of building an authorized API client.

    Attributes:
        api_secret_name: Name of the secret that was looked up
        secret: Secret record holding the API metadata
        auth_config: Credential converted from the secret metadata
        authorized_api_client: Session with Authorization/Accept headers set
    """

    api_secret_name: str | None = None
    secret: SecretRecord | None = None
    auth_config: AuthCredential | None = None
    authorized_api_client: aiohttp.ClientSession | None = field(default=None, repr=False)

    @property
    def is_complete(self) -> bool:
        return all(
            [self.api_secret_name, self.secret, self.auth_config, self.authorized_api_client]
        )

    async def close(self) -> None:
        """Close the authorized session, if one was created."""
        if self.authorized_api_client is not None and not self.authorized_api_client.closed:
            await self.authorized_api_client.close()

    async def __aenter__(self) -> "AuthorizedClientDetails":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def api_secret_name(configuration: Mapping[str, Any] | Any, subscription_name: str | None = None) -> str:
    """Secret name for an API subscription: ``<subscription>.Api``."""
    if not subscription_name:
        try:
            subscription_name = configuration[SUBSCRIPTION_NAME_KEY]
        except KeyError:
            subscription_name = None
    return f"{subscription_name or ''}{API_SECRET_SUFFIX}"


async def create_authorized_api_client(
    secrets: ApplicationSecrets,
    configuration: Mapping[str, Any] | Any,
    subscription_name: str | None = None,
    strict: bool = False,
) -> AuthorizedClientDetails:
    """
    Build an HTTP client authorized to call the API behind a subscription.

    Args:
        secrets: Application secrets table
        configuration: Configuration used when subscription_name is not given
            (reads ``SubscriptionName``)
        subscription_name: API subscription name
        strict: Raise instead of returning partial details

    Returns:
        AuthorizedClientDetails, possibly partially populated

    Raises:
        SecureConfigError: Only when ``strict`` is set
    """
    details = AuthorizedClientDetails()

    try:
        details.api_secret_name = api_secret_name(configuration, subscription_name)

        details.secret = secrets.secret(details.api_secret_name)
        if details.secret is None:
            raise SecretNotFoundError(details.api_secret_name)

        details.auth_config = details.secret.convert_metadata_to(AuthCredential, strict=strict)
        if details.auth_config is None:
            raise MetadataConversionError(
                f"Secret '{details.api_secret_name}' metadata is not a valid AuthCredential",
                context={"secret_name": details.api_secret_name},
            )

        details.authorized_api_client = await details.auth_config.get_authorized_client(
            strict=strict
        )
    except Exception as e:
        logger.warning(
            "Failed to create authorized API client",
            extra={
                "secret_name": details.api_secret_name,
                "error": str(e),
                "error_type": type(e).__name__,
            },
        )
        if strict:
            if isinstance(e, SecureConfigError):
                raise
            raise wrap_exception(e) from e
        return details

    logger.info(
        "Created authorized API client",
        extra={
            "secret_name": details.api_secret_name,
            "api_endpoint": details.auth_config.endpoint_address,
        },
    )
    return details


__all__ = [
    "AuthorizedClientDetails",
    "create_authorized_api_client",
    "api_secret_name",
    "SUBSCRIPTION_NAME_KEY",
]
