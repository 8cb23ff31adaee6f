"""Bearer token model shared by the token providers."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta


@dataclass
class OAuth2Token:
    """
    Access token for the Eventhouse management endpoint.

    Attributes:
        access_token: The bearer token string
        token_type: Always "Bearer" for Azure AD
        expires_at: UTC expiry
        scope: Resource scope the token was issued for
    """

    access_token: str
    token_type: str
    expires_at: datetime
    scope: str | None = None

    @classmethod
    def from_expires_on(cls, access_token: str, expires_on: int, scope: str | None = None) -> "OAuth2Token":
        """Build from an azure-identity AccessToken's Unix expiry."""
        return cls(
            access_token=access_token,
            token_type="Bearer",
            expires_at=datetime.fromtimestamp(expires_on, UTC),
            scope=scope,
        )

    @classmethod
    def from_lifetime(cls, access_token: str, lifetime_seconds: int, scope: str | None = None) -> "OAuth2Token":
        """Build a token assumed valid for lifetime_seconds from now."""
        return cls(
            access_token=access_token,
            token_type="Bearer",
            expires_at=datetime.now(UTC) + timedelta(seconds=lifetime_seconds),
            scope=scope,
        )

    def is_expired(self, buffer_seconds: int = 300) -> bool:
        """True once we are within buffer_seconds of expiry."""
        return datetime.now(UTC) >= self.expires_at - timedelta(seconds=buffer_seconds)


__all__ = ["OAuth2Token"]
