"""
Core types and protocols used across modules.

This module provides base types, enums, and protocol definitions that are
shared across the core library to ensure consistency and type safety.
"""

from enum import Enum
from typing import Protocol


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures (network timeouts, 429/503 errors)
        AUTH: Authentication failures (401, expired or missing tokens)
        PERMANENT: Failures that won't succeed on retry (4xx, bad input)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class TokenProvider(Protocol):
    """
    Protocol for bearer token providers.

    Implementations hand out access tokens for the Eventhouse management
    endpoint (Azure AD, pre-issued tokens, test doubles).
    """

    async def get_token(self) -> str:
        """
        Get an access token string.

        Raises:
            TokenAcquisitionError: If token acquisition fails
        """
        ...


__all__ = [
    "ErrorCategory",
    "TokenProvider",
]
