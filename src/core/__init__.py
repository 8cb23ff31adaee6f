"""
Core library: Reusable, infrastructure-agnostic components.

Modules:
    auth        - Shared Access Signature signing for Event Hub REST calls
    oauth2      - Bearer token providers for the Eventhouse management API
    logging     - Structured console/JSON logging with run context
    errors      - Error classification and exception hierarchy
    http        - aiohttp session construction
    utils       - Canonical JSON serialization

Design Principles:
    - No dependencies on the ingestion package or its config
    - All modules are independently testable
    - Async-first where applicable
"""

from .types import ErrorCategory, TokenProvider

__version__ = "0.1.0"

__all__ = [
    "ErrorCategory",
    "TokenProvider",
]
