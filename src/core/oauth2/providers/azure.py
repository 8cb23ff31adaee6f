"""Azure AD OAuth2 providers backed by azure-identity."""

import asyncio
import logging

from azure.core.credentials import TokenCredential
from azure.identity import ClientSecretCredential, DefaultAzureCredential

from core.oauth2.exceptions import InvalidConfigurationError, TokenAcquisitionError
from core.oauth2.models import OAuth2Token
from core.oauth2.providers.base import BaseOAuth2Provider

logger = logging.getLogger(__name__)


class _CredentialProvider(BaseOAuth2Provider):
    """Shared token acquisition for azure-identity credentials."""

    def __init__(self, provider_name: str, credential: TokenCredential, scopes: list[str]):
        super().__init__(provider_name)
        if not scopes:
            raise InvalidConfigurationError("At least one scope is required")
        self.scopes = scopes
        self._credential = credential

    async def acquire_token(self) -> OAuth2Token:
        """
        Acquire token from Azure AD.

        Raises:
            TokenAcquisitionError: If token acquisition fails
        """
        try:
            # azure-identity's sync get_token blocks on the network
            access_token = await asyncio.to_thread(self._credential.get_token, *self.scopes)
        except Exception as e:
            logger.error(
                f"Failed to acquire Azure AD token for '{self.provider_name}': {e}",
                extra={"scopes": self.scopes},
            )
            raise TokenAcquisitionError(
                f"Azure AD token acquisition failed for '{self.provider_name}'",
                cause=e,
                context={"provider": self.provider_name, "scopes": self.scopes},
            ) from e

        return OAuth2Token.from_expires_on(
            access_token.token,
            access_token.expires_on,
            scope=" ".join(self.scopes),
        )


class AzureADProvider(_CredentialProvider):
    """
    Azure AD provider using the client credentials flow.

    Uses azure-identity's ClientSecretCredential. Tokens are scoped to a
    resource, e.g. "https://mycluster.kusto.windows.net/.default".
    """

    def __init__(
        self,
        provider_name: str,
        client_id: str,
        client_secret: str,
        tenant_id: str,
        scopes: list[str],
    ):
        if not all([client_id, client_secret, tenant_id]):
            raise InvalidConfigurationError(
                "client_id, client_secret, and tenant_id are required"
            )

        # Don't log the secret
        logger.debug(
            f"Initialized Azure AD provider '{provider_name}'",
            extra={"tenant_id": tenant_id, "client_id": client_id},
        )

        credential = ClientSecretCredential(
            tenant_id=tenant_id,
            client_id=client_id,
            client_secret=client_secret,
        )
        super().__init__(provider_name, credential, scopes)
        self.client_id = client_id
        self.tenant_id = tenant_id


class DefaultCredentialProvider(_CredentialProvider):
    """
    Provider backed by DefaultAzureCredential.

    Supports managed identity in production and Azure CLI credentials
    for local development.
    """

    def __init__(self, provider_name: str, scopes: list[str]):
        super().__init__(provider_name, DefaultAzureCredential(), scopes)


__all__ = ["AzureADProvider", "DefaultCredentialProvider"]
