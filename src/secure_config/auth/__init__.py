"""
Authentication module.

Client-credential token acquisition against Azure AD (azure-identity) and
construction of authorized aiohttp clients.

Components:
    - AuthCredential: identity/endpoint details with a cached token
    - AuthResult: token response with expiry tracking
"""

from secure_config.auth.credential import (
    DEFAULT_INSTANCE,
    AuthCredential,
    ensure_json_accept,
    has_media_type,
)
from secure_config.auth.models import AuthResult

__all__ = [
    "AuthCredential",
    "AuthResult",
    "ensure_json_accept",
    "has_media_type",
    "DEFAULT_INSTANCE",
]
