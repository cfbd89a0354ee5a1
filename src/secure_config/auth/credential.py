"""
Client-credential authorization for calling protected APIs.

An AuthCredential is normally built from the metadata of an API secret
(see ``SecretRecord.convert_metadata_to``), so the metadata names are the
field aliases:

    Instance      https://login.microsoftonline.com/{0}
    TenantId      Azure AD tenant ID
    ClientId      Application (client) ID
    ClientSecret  Client secret
    BaseAddress   https://api.example.com
    Endpoint      /v1/orders
    ResourceID    api://orders-api/.default

Token caching:
    The acquired token is cached on the instance and reused until a caller
    passes ``force_renew=True``. Expiry is NOT checked unless
    ``renew_before_expiry_seconds`` is set, in which case a cached token
    within that many seconds of expiry is renewed automatically.

Thread Safety:
    Not safe for concurrent ``get_access_token`` calls on one instance.
    The check / acquire / store sequence is not atomic.
"""

import asyncio
import logging
from pathlib import Path
from urllib.parse import urlsplit

import aiohttp
import yaml
from azure.core.exceptions import AzureError
from azure.identity import ClientSecretCredential
from multidict import CIMultiDict
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from secure_config.auth.models import AuthResult
from secure_config.errors import TokenAcquisitionError

logger = logging.getLogger(__name__)

DEFAULT_INSTANCE = "https://login.microsoftonline.com/{0}"
JSON_MEDIA_TYPE = "application/json"
DEFAULT_TIMEOUT_SECONDS = 30


def has_media_type(headers: CIMultiDict, media_type: str) -> bool:
    """Check whether any Accept header value lists ``media_type`` (parameters ignored)."""
    for value in headers.getall("Accept", []):
        for part in value.split(","):
            if part.split(";")[0].strip().lower() == media_type:
                return True
    return False


def ensure_json_accept(headers: CIMultiDict) -> None:
    """Add ``Accept: application/json`` unless it is already accepted."""
    if not has_media_type(headers, JSON_MEDIA_TYPE):
        headers.add("Accept", JSON_MEDIA_TYPE)


def _get_token_and_close(credential: ClientSecretCredential, scopes: list[str]):
    # Runs in the worker thread; the credential outlives an awaiting caller that timed out
    try:
        return credential.get_token(*scopes)
    finally:
        credential.close()


class AuthCredential(BaseModel):
    """
    Identity and endpoint details for one protected API, plus its cached token.

    Attributes:
        instance: Authority template with one placeholder for the tenant
        tenant_id: Azure AD tenant ID
        client_id: Application (client) ID
        client_secret: Client secret (never logged or repr'd)
        base_address: API base URL
        endpoint: Path appended to base_address
        resource_id: Scope requested for the token
        renew_before_expiry_seconds: Renew cached tokens this close to expiry
            (None keeps the token until a forced renewal)
        timeout_seconds: Timeout for token acquisition and client requests
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    instance: str = Field(default=DEFAULT_INSTANCE, alias="Instance")
    tenant_id: str | None = Field(default=None, alias="TenantId")
    client_id: str | None = Field(default=None, alias="ClientId")
    client_secret: str | None = Field(default=None, alias="ClientSecret", repr=False)
    base_address: str | None = Field(default=None, alias="BaseAddress")
    endpoint: str | None = Field(default=None, alias="Endpoint")
    resource_id: str | None = Field(default=None, alias="ResourceID")
    renew_before_expiry_seconds: float | None = Field(
        default=None, alias="RenewBeforeExpirySeconds", ge=0
    )
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, alias="TimeoutSeconds", gt=0)

    _auth_result: AuthResult | None = PrivateAttr(default=None)
    _jwt: str | None = PrivateAttr(default=None)

    @property
    def authority(self) -> str:
        """Authority URL: ``instance`` with the tenant substituted."""
        tenant = self.tenant_id or ""
        return self.instance.replace("{0}", tenant).replace("{}", tenant)

    @property
    def endpoint_address(self) -> str:
        return f"{self.base_address or ''}{self.endpoint or ''}"

    @property
    def auth_result(self) -> AuthResult | None:
        return self._auth_result

    @property
    def jwt(self) -> str | None:
        """Current JWT used as the bearer token."""
        return self._jwt

    @classmethod
    def read_from_file(cls, path: str | Path) -> "AuthCredential":
        """Load an AuthCredential from a YAML or JSON file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)

    def _create_identity_client(self) -> ClientSecretCredential:
        """Build a client-credential requester for ``authority``."""
        parts = urlsplit(self.authority)
        tenant = parts.path.strip("/") or (self.tenant_id or "")
        return ClientSecretCredential(
            tenant_id=tenant,
            client_id=self.client_id,
            client_secret=self.client_secret,
            authority=f"{parts.scheme}://{parts.netloc}" if parts.netloc else None,
        )

    def _needs_renewal(self, force_renew: bool) -> bool:
        if self._auth_result is None or force_renew:
            return True
        if self.renew_before_expiry_seconds is not None:
            return self._auth_result.is_expired(self.renew_before_expiry_seconds)
        return False

    async def _acquire(self) -> AuthResult:
        scopes = [self.resource_id]
        credential = self._create_identity_client()
        access_token = await asyncio.wait_for(
            asyncio.to_thread(_get_token_and_close, credential, scopes),
            timeout=self.timeout_seconds,
        )
        return AuthResult.from_access_token(access_token, scopes)

    async def get_access_token(self, force_renew: bool = False, strict: bool = False) -> str | None:
        """
        Get a token authorizing the caller to access ``resource_id``.

        The identity provider is contacted only when there is no cached
        result or ``force_renew`` is set. A failed acquisition leaves any
        previously cached token in place and returns None.

        Args:
            force_renew: Always acquire a new token
            strict: Raise TokenAcquisitionError instead of returning None

        Returns:
            Access token string, or None if acquisition failed
        """
        if not self._needs_renewal(force_renew):
            self._jwt = self._auth_result.access_token
            return self._jwt

        try:
            result = await self._acquire()
        except (AzureError, ValueError, asyncio.TimeoutError) as e:
            logger.warning(
                "Token acquisition failed",
                extra={
                    "client_id": self.client_id,
                    "authority": self.authority,
                    "resource": self.resource_id,
                    "error": str(e),
                },
            )
            if strict:
                raise TokenAcquisitionError(
                    f"Failed to acquire token for '{self.resource_id}'",
                    cause=e,
                    context={"client_id": self.client_id, "authority": self.authority},
                ) from e
            return None

        self._auth_result = result
        self._jwt = result.access_token
        logger.debug(
            "Acquired access token",
            extra={
                "client_id": self.client_id,
                "resource": self.resource_id,
                "expires_on": result.expires_on.isoformat(),
            },
        )
        return self._jwt

    async def get_authorized_client(
        self, session: aiohttp.ClientSession | None = None, strict: bool = False
    ) -> aiohttp.ClientSession:
        """
        Get an HTTP client authorized to call the API.

        Creates a new ``aiohttp.ClientSession`` (unless one is passed in)
        whose default headers accept JSON and carry
        ``Authorization: Bearer <token>``. The caller owns the session and
        must close it.

        Args:
            session: Existing session to authorize instead of creating one
            strict: Raise TokenAcquisitionError if no token is available
        """
        created = session is None
        if created:
            session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            )
        headers = session.headers
        ensure_json_accept(headers)

        try:
            access_token = await self.get_access_token(strict=strict)
        except BaseException:
            if created:
                await session.close()
            raise
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        else:
            logger.warning(
                "No access token available, client is not authorized",
                extra={"client_id": self.client_id, "resource": self.resource_id},
            )
        return session


__all__ = ["AuthCredential", "ensure_json_accept", "has_media_type", "DEFAULT_INSTANCE"]
