"""Token response model."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from azure.core.credentials import AccessToken


@dataclass
class AuthResult:
    """
    Access token returned by the identity provider, with expiration tracking.

    Attributes:
        access_token: The access token string (JWT)
        expires_on: UTC timestamp when the token expires
        token_type: Token type (always "Bearer" for client credentials)
        scope: Space-separated scopes the token was requested for
    """

    access_token: str
    expires_on: datetime
    token_type: str = "Bearer"
    scope: str | None = None

    @classmethod
    def from_access_token(cls, token: AccessToken, scopes: list[str] | None = None) -> "AuthResult":
        """Convert an azure-core AccessToken (expires_on is a Unix timestamp)."""
        expires_on = token.expires_on
        if not isinstance(expires_on, datetime):
            expires_on = datetime.fromtimestamp(expires_on, UTC)
        return cls(
            access_token=token.token,
            expires_on=expires_on,
            scope=" ".join(scopes) if scopes else None,
        )

    def is_expired(self, buffer_seconds: float = 0) -> bool:
        """True if the token has expired or expires within ``buffer_seconds``."""
        return datetime.now(UTC) >= self.expires_on - timedelta(seconds=buffer_seconds)

    @property
    def remaining_lifetime(self) -> timedelta:
        return self.expires_on - datetime.now(UTC)

    def __repr__(self) -> str:
        return (
            f"AuthResult(token_type={self.token_type!r}, "
            f"expires_on={self.expires_on.isoformat()}, scope={self.scope!r})"
        )


__all__ = ["AuthResult"]
