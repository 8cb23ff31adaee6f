"""OAuth2 provider implementations."""

from core.oauth2.providers.azure import AzureADProvider, DefaultCredentialProvider
from core.oauth2.providers.base import BaseOAuth2Provider
from core.oauth2.providers.static import StaticTokenProvider

__all__ = [
    "BaseOAuth2Provider",
    "AzureADProvider",
    "DefaultCredentialProvider",
    "StaticTokenProvider",
]
