"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- PipelineError hierarchy for typed exceptions
- HTTP status classification
"""

from core.errors.exceptions import (
    AuthError,
    DdlDispatchFailure,
    DeliveryFailure,
    # Enums
    ErrorCategory,
    PermanentError,
    # Base classes
    PipelineError,
    SigningError,
    TypeInferenceWarning,
    # Classification utilities
    classify_http_status,
    is_fatal,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "PipelineError",
    "AuthError",
    "PermanentError",
    # Domain errors
    "SigningError",
    "DeliveryFailure",
    "DdlDispatchFailure",
    "TypeInferenceWarning",
    # Classification utilities
    "classify_http_status",
    "is_fatal",
]
