"""Base OAuth2 provider interface."""

import logging
from abc import ABC, abstractmethod

from core.oauth2.exceptions import TokenAcquisitionError
from core.oauth2.models import OAuth2Token

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_BUFFER_SECONDS = 300


class BaseOAuth2Provider(ABC):
    """
    Abstract base class for OAuth2 token providers.

    Subclasses implement acquire_token(); get_token() caches the result
    and only goes back to the provider once the token is close to expiry.
    Satisfies the core.types.TokenProvider protocol.
    """

    def __init__(
        self,
        provider_name: str,
        refresh_buffer_seconds: int = DEFAULT_REFRESH_BUFFER_SECONDS,
    ):
        """
        Initialize provider.

        Args:
            provider_name: Unique identifier for this provider instance
            refresh_buffer_seconds: Refresh cached tokens this long before expiry
        """
        self.provider_name = provider_name
        self.refresh_buffer_seconds = refresh_buffer_seconds
        self._cached: OAuth2Token | None = None

    @abstractmethod
    async def acquire_token(self) -> OAuth2Token:
        """
        Acquire a new OAuth2 token.

        Raises:
            TokenAcquisitionError: If token acquisition fails
        """
        pass

    async def get_token(self) -> str:
        """Return a valid access token string, acquiring one if needed."""
        if self._cached is not None and not self._cached.is_expired(self.refresh_buffer_seconds):
            return self._cached.access_token

        try:
            token = await self.acquire_token()
        except TokenAcquisitionError:
            raise
        except Exception as e:
            raise TokenAcquisitionError(
                f"Token acquisition failed for '{self.provider_name}'",
                cause=e,
                context={"provider": self.provider_name},
            ) from e

        if not token.access_token:
            raise TokenAcquisitionError(
                f"Provider '{self.provider_name}' returned an empty token",
                context={"provider": self.provider_name},
            )

        self._cached = token
        logger.debug(
            "Acquired token",
            extra={
                "provider": self.provider_name,
                "expires_at": token.expires_at.isoformat(),
            },
        )
        return token.access_token


__all__ = ["BaseOAuth2Provider", "DEFAULT_REFRESH_BUFFER_SECONDS"]
