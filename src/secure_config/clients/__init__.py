"""Authorized API clients built from application secrets."""

from secure_config.clients.factory import (
    SUBSCRIPTION_NAME_KEY,
    AuthorizedClientDetails,
    api_secret_name,
    create_authorized_api_client,
)

__all__ = [
    "AuthorizedClientDetails",
    "create_authorized_api_client",
    "api_secret_name",
    "SUBSCRIPTION_NAME_KEY",
]
