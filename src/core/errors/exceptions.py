"""
Unified exception hierarchy for the ingestion pipeline.

Provides typed exceptions with an error category so callers can tell
fatal failures (signing, DDL dispatch) from best-effort losses (delivery).
"""

from core.types import ErrorCategory


class PipelineError(Exception):
    """
    Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error description
        category: Error classification
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Base categories
# =============================================================================


class AuthError(PipelineError):
    """Base class for authentication errors."""

    category = ErrorCategory.AUTH


class PermanentError(PipelineError):
    """Base class for permanent errors."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Domain-Specific Errors
# =============================================================================


class SigningError(PermanentError):
    """SAS token could not be produced (empty key, bad URI, encoding failure)."""

    pass


class DeliveryFailure(PipelineError):
    """
    A batch POST to the message endpoint failed.

    The category follows the HTTP status when there is one and is
    TRANSIENT for transport errors. Delivery failures are recovered
    locally: the batch is counted as lost and the pipeline moves on.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.status_code = status_code
        if status_code is not None:
            self.category = classify_http_status(status_code)
        else:
            self.category = ErrorCategory.TRANSIENT


class DdlDispatchFailure(PipelineError):
    """The create-table command could not be sent or was rejected."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.status_code = status_code
        if status_code is not None:
            self.category = classify_http_status(status_code)
        else:
            self.category = ErrorCategory.TRANSIENT


class TypeInferenceWarning(UserWarning):
    """
    A field value had a runtime kind outside the type table.

    Never raised by the inferencer; instances are logged and collected
    while the field falls back to the dynamic type.
    """

    def __init__(self, field_name: str, kind: str):
        self.field_name = field_name
        self.kind = kind
        super().__init__(
            f"Unrecognized value kind '{kind}' for field '{field_name}', using dynamic"
        )


# =============================================================================
# Error Classification Utilities
# =============================================================================


def classify_http_status(status_code: int) -> ErrorCategory:
    """Classify HTTP status code into error category."""
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code == 401:
        return ErrorCategory.AUTH

    if status_code == 429:
        return ErrorCategory.TRANSIENT  # Rate limited

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT

    if status_code >= 500:
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


def is_fatal(exc: BaseException) -> bool:
    """
    Check whether an error aborts the path it was raised on.

    Delivery failures are best-effort losses; everything else that
    reaches the runner ends its path.
    """
    return not isinstance(exc, DeliveryFailure)
