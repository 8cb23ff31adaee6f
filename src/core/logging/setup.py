"""Logging setup and configuration."""

import logging
import secrets
import sys
from datetime import datetime
from pathlib import Path

from core.logging.context import set_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter

DEFAULT_CONSOLE_LEVEL = logging.INFO
DEFAULT_FILE_LEVEL = logging.DEBUG

# Noisy loggers to suppress
NOISY_LOGGERS = [
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.identity",
    "urllib3",
    "aiohttp",
    "asyncio",
]


def generate_run_id() -> str:
    """Generate a short run identifier: timestamp plus random suffix."""
    return f"{datetime.now().strftime('%Y%m%d%H%M%S')}-{secrets.token_hex(3)}"


def setup_logging(
    name: str = "ingestion",
    console_level: int = DEFAULT_CONSOLE_LEVEL,
    json_log_file: Path | None = None,
    file_level: int = DEFAULT_FILE_LEVEL,
    suppress_noisy: bool = True,
    run_id: str | None = None,
) -> logging.Logger:
    """
    Configure logging with a console handler and an optional JSON file handler.

    Args:
        name: Logger name to return
        console_level: Console handler level (default: INFO)
        json_log_file: Write JSON lines here when set
        file_level: File handler level (default: DEBUG)
        suppress_noisy: Quiet down Azure SDK and HTTP client loggers
        run_id: Run identifier injected into every log line

    Returns:
        Configured logger instance
    """
    if run_id:
        set_log_context(run_id=run_id)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ConsoleFormatter())
    root_logger.addHandler(console_handler)

    if json_log_file is not None:
        json_log_file = Path(json_log_file)
        json_log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(json_log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    if suppress_noisy:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger(name)
    logger.debug(
        "Logging initialized",
        extra={"json_log_file": str(json_log_file) if json_log_file else None},
    )
    return logger

