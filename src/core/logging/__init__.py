"""
Structured logging module.

Provides console and JSON logging with run-level context propagation.
"""

from core.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from core.logging.setup import generate_run_id, setup_logging
from core.logging.utilities import log_exception

__all__ = [
    # Setup
    "setup_logging",
    "generate_run_id",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    # Utilities
    "log_exception",
]
