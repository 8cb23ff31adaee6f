"""
Shared Access Signature tokens for the Event Hub REST endpoint.

A SAS token authorizes requests against one resource URI until an expiry
timestamp. The signature is an HMAC-SHA256 over the URL-encoded resource
URI and the expiry, keyed with a shared access key:

    string_to_sign = quote_plus(uri) + "\\n" + str(expiry)
    sig = quote(base64(hmac_sha256(key, string_to_sign)))

Header format:
    SharedAccessSignature sr=<uri>&sig=<sig>&se=<expiry>&skn=<key name>
"""

import base64
import hashlib
import hmac
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import quote, quote_plus

from core.errors.exceptions import SigningError

logger = logging.getLogger(__name__)

DEFAULT_SAS_TTL_SECONDS = 3600


@dataclass(frozen=True)
class SignedRequest:
    """Signed authorization for one resource URI. Never persisted."""

    uri: str
    expiry: int  # Unix epoch seconds
    signature: str  # Already URL-encoded
    key_name: str

    @property
    def token(self) -> str:
        """Authorization header value."""
        return (
            f"SharedAccessSignature sr={quote_plus(self.uri)}"
            f"&sig={self.signature}&se={self.expiry}&skn={self.key_name}"
        )

    def expires_within(self, seconds: int, now: float | None = None) -> bool:
        """Check if the token expires within N seconds (for re-sign buffer logic)."""
        now = time.time() if now is None else now
        return now + seconds >= self.expiry


def compute_signature(resource_uri: str, expiry: int, key: str) -> str:
    """
    Compute the URL-encoded signature for a resource URI and expiry.

    Deterministic: identical (uri, expiry, key) always yield the same value.

    Raises:
        SigningError: If the inputs cannot be UTF-8 encoded
    """
    try:
        string_to_sign = f"{quote_plus(resource_uri)}\n{expiry}".encode("utf-8")
        digest = hmac.new(key.encode("utf-8"), string_to_sign, hashlib.sha256).digest()
    except UnicodeEncodeError as e:
        raise SigningError(
            "Failed to encode signing input",
            cause=e,
            context={"resource": resource_uri},
        ) from e
    return quote(base64.b64encode(digest).decode("ascii"), safe="")


class SasSigner:
    """
    Produces SignedRequests for a resource URI.

    The clock is injectable so tests can pin the expiry.

    Example:
        signer = SasSigner()
        signed = signer.sign(
            "https://myns.servicebus.windows.net/myhub",
            key_name="RootManageSharedAccessKey",
            key=os.environ["EVENTHUB_KEY"],
            ttl_seconds=3600,
        )
        headers = {"Authorization": signed.token}
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    def sign(
        self,
        resource_uri: str,
        key_name: str,
        key: str,
        ttl_seconds: int = DEFAULT_SAS_TTL_SECONDS,
    ) -> SignedRequest:
        """
        Sign a resource URI.

        Raises:
            SigningError: If key, key name or URI is empty, TTL is not
                positive, or encoding fails
        """
        context = {"resource": resource_uri, "key_name": key_name}
        if not key:
            raise SigningError("Shared access key is empty", context=context)
        if not key_name:
            raise SigningError("Shared access key name is empty", context=context)
        if not resource_uri:
            raise SigningError("Resource URI is empty", context=context)
        if ttl_seconds <= 0:
            raise SigningError(
                f"SAS TTL must be positive, got {ttl_seconds}", context=context
            )

        expiry = int(self._clock() + ttl_seconds)
        signature = compute_signature(resource_uri, expiry, key)

        logger.debug(
            "Signed resource URI",
            extra={"resource": resource_uri, "expiry": expiry, "key_name": key_name},
        )

        return SignedRequest(
            uri=resource_uri,
            expiry=expiry,
            signature=signature,
            key_name=key_name,
        )


__all__ = [
    "DEFAULT_SAS_TTL_SECONDS",
    "SasSigner",
    "SignedRequest",
    "compute_signature",
]
