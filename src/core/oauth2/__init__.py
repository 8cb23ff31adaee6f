"""
OAuth2 bearer tokens for the Eventhouse management endpoint.

Basic Usage:
    from core.oauth2 import build_token_provider

    provider = build_token_provider(
        scope="https://mycluster.kusto.windows.net/.default",
        tenant_id=os.getenv("AZURE_TENANT_ID"),
        client_id=os.getenv("AZURE_CLIENT_ID"),
        client_secret=os.getenv("AZURE_CLIENT_SECRET"),
    )
    token = await provider.get_token()
    headers = {"Authorization": f"Bearer {token}"}

Selection order:
    1. access_token given -> StaticTokenProvider
    2. tenant_id/client_id/client_secret given -> AzureADProvider
    3. otherwise -> DefaultCredentialProvider (managed identity, Azure CLI)
"""

import logging

from core.oauth2.exceptions import (
    InvalidConfigurationError,
    OAuth2Error,
    TokenAcquisitionError,
)
from core.oauth2.models import OAuth2Token
from core.oauth2.providers import (
    AzureADProvider,
    BaseOAuth2Provider,
    DefaultCredentialProvider,
    StaticTokenProvider,
)

logger = logging.getLogger(__name__)


def build_token_provider(
    scope: str,
    tenant_id: str = "",
    client_id: str = "",
    client_secret: str = "",
    access_token: str = "",
) -> BaseOAuth2Provider:
    """Pick a token provider from whichever credentials are configured."""
    if access_token:
        logger.info("Using pre-issued bearer token")
        return StaticTokenProvider(access_token)

    if client_id or client_secret:
        logger.info(
            "Using Azure AD client credentials",
            extra={"tenant_id": tenant_id, "client_id": client_id},
        )
        return AzureADProvider(
            provider_name="eventhouse",
            client_id=client_id,
            client_secret=client_secret,
            tenant_id=tenant_id,
            scopes=[scope],
        )

    logger.info("Using DefaultAzureCredential")
    return DefaultCredentialProvider(provider_name="eventhouse", scopes=[scope])


__all__ = [
    "build_token_provider",
    # Providers
    "BaseOAuth2Provider",
    "AzureADProvider",
    "DefaultCredentialProvider",
    "StaticTokenProvider",
    # Models
    "OAuth2Token",
    # Exceptions
    "OAuth2Error",
    "TokenAcquisitionError",
    "InvalidConfigurationError",
]
