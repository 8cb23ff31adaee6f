"""
Authentication module.

Provides Shared Access Signature signing for the Event Hub REST endpoint.
Bearer tokens for Eventhouse live in core.oauth2.
"""

from .sas import DEFAULT_SAS_TTL_SECONDS, SasSigner, SignedRequest, compute_signature

__all__ = [
    "DEFAULT_SAS_TTL_SECONDS",
    "SasSigner",
    "SignedRequest",
    "compute_signature",
]
