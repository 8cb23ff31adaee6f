"""Token provider errors. All are AuthErrors, so they classify as AUTH."""

from core.errors.exceptions import AuthError


class OAuth2Error(AuthError):
    pass


class TokenAcquisitionError(OAuth2Error):
    """No bearer token could be obtained; the schema path cannot continue."""


class InvalidConfigurationError(OAuth2Error):
    """Provider credentials are missing or inconsistent."""


__all__ = [
    "OAuth2Error",
    "TokenAcquisitionError",
    "InvalidConfigurationError",
]
