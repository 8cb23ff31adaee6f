"""Provider for pre-issued bearer tokens."""

from core.oauth2.exceptions import InvalidConfigurationError
from core.oauth2.models import OAuth2Token
from core.oauth2.providers.base import BaseOAuth2Provider


class StaticTokenProvider(BaseOAuth2Provider):
    """Hands out a token obtained elsewhere (CI secrets, az account get-access-token)."""

    def __init__(self, access_token: str, provider_name: str = "static", lifetime_seconds: int = 3600):
        super().__init__(provider_name, refresh_buffer_seconds=0)
        if not access_token:
            raise InvalidConfigurationError("access_token is required")
        self._access_token = access_token
        self.lifetime_seconds = lifetime_seconds

    async def acquire_token(self) -> OAuth2Token:
        return OAuth2Token.from_lifetime(self._access_token, self.lifetime_seconds)


__all__ = ["StaticTokenProvider"]
