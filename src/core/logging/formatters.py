"""Log formatters for JSON and console output."""

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any

from core.logging.context import get_log_context
from core.utils.json_serializers import json_serializer


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with context injection.

    Produces one JSON object per line for easy parsing with jq/grep.
    Redacts SAS signatures and tokens before logging.
    """

    # Fields to extract from LogRecord extras
    EXTRA_FIELDS = [
        # Correlation
        "trace_id",
        "duration_ms",
        # HTTP
        "http_status",
        "http_method",
        "http_url",
        "endpoint",
        # Errors
        "error_category",
        "error_message",
        "error",
        "error_type",
        # Delivery
        "batch_index",
        "batch_size",
        "batch_bytes",
        "bytes_sent",
        "records",
        "batches_attempted",
        "batches_delivered",
        "batches_failed",
        "records_lost",
        "max_bytes",
        # Signing
        "resource",
        "key_name",
        "expiry",
        # Schema
        "field_name",
        "field_count",
        "inferred_type",
        "value_kind",
        "table",
        "database",
        "command",
        "dispatched",
        # Run
        "input",
        "delivery",
        "schema",
        "dry_run",
        "error_count",
        "config_path",
        # Auth
        "provider",
        "tenant_id",
        "client_id",
        "expires_at",
    ]

    # Numeric fields kept numeric so Eventhouse aggregations work
    NUMERIC_FIELDS = {
        "duration_ms": float,
        "http_status": int,
        "batch_index": int,
        "batch_size": int,
        "batch_bytes": int,
        "bytes_sent": int,
        "records": int,
        "batches_attempted": int,
        "batches_delivered": int,
        "batches_failed": int,
        "records_lost": int,
        "error_count": int,
        "max_bytes": int,
        "expiry": int,
        "field_count": int,
    }

    # sig=... in URLs and in SharedAccessSignature header values
    SIGNATURE_PATTERN = re.compile(
        r"(^|[?&\s])(sig|token|key|secret|password)=[^&\s]*",
        re.IGNORECASE,
    )
    BEARER_PATTERN = re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE)

    @classmethod
    def redact(cls, text: str) -> str:
        """Mask SAS signatures and bearer tokens anywhere in a string."""
        text = cls.SIGNATURE_PATTERN.sub(r"\1\2=[REDACTED]", text)
        return cls.BEARER_PATTERN.sub(r"\1[REDACTED]", text)

    def _sanitize_value(self, key: str, value: Any) -> Any:
        if isinstance(value, str):
            return self.redact(value)
        return value

    def _ensure_type(self, field: str, value: Any) -> Any:
        """Convert numeric fields to their expected type, None if conversion fails."""
        if field not in self.NUMERIC_FIELDS or value is None:
            return value

        expected_type = self.NUMERIC_FIELDS[field]
        try:
            return expected_type(value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _base_log_entry(record: logging.LogRecord) -> dict[str, Any]:
        return {
            "ts": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": JSONFormatter.redact(record.getMessage()),
        }

    @staticmethod
    def _inject_context(log_entry: dict[str, Any], log_context: dict[str, Any]) -> None:
        for field in ("run_id", "stage", "trace_id"):
            if log_context.get(field):
                log_entry[field] = log_context[field]

    @staticmethod
    def _should_include_source_location(record: logging.LogRecord) -> bool:
        return record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL)

    def _inject_extra_fields(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                typed_value = self._ensure_type(field, value)
                log_entry[field] = self._sanitize_value(field, typed_value)

    def _inject_exception(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        if not record.exc_info:
            return

        exc_type, exc_value, _ = record.exc_info
        log_entry["exception"] = {
            "type": exc_type.__name__ if exc_type else None,
            "message": str(exc_value) if exc_value else None,
            "stacktrace": self.formatException(record.exc_info),
        }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single JSON line."""
        log_entry = self._base_log_entry(record)

        self._inject_context(log_entry, get_log_context())

        if self._should_include_source_location(record):
            log_entry["file"] = f"{record.filename}:{record.lineno}"

        # Type validation must happen before sanitization
        self._inject_extra_fields(log_entry, record)

        self._inject_exception(log_entry, record)

        return json.dumps(log_entry, default=json_serializer, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter with color-coded log levels.

    Colors are auto-disabled when output is not a TTY (pipes, files).
    """

    # ANSI color codes
    COLORS = {
        logging.DEBUG: "\033[36m",  # Cyan
        logging.INFO: "\033[32m",  # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._use_colors = sys.stdout.isatty()

    def _format_level_name(self, record: logging.LogRecord) -> str:
        level_name = record.levelname
        if not self._use_colors:
            return level_name

        color = self.COLORS.get(record.levelno, "")
        if not color:
            return level_name

        return f"{color}{level_name}{self.RESET}"

    @staticmethod
    def _build_prefix(level_name: str, log_context: dict[str, Any]) -> str:
        parts = [
            datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            level_name,
        ]

        if log_context["stage"]:
            parts.append(f"[{log_context['stage']}]")

        return " - ".join(parts)

    @staticmethod
    def _build_tags(record: logging.LogRecord, log_context: dict[str, Any]) -> list[str]:
        batch_index = getattr(record, "batch_index", None)
        field_name = getattr(record, "field_name", None)
        run_id = log_context.get("run_id")

        tags = []
        if run_id:
            tags.append(f"[{run_id[:8]}]")
        if batch_index is not None:
            tags.append(f"[batch:{batch_index}]")
        if field_name:
            tags.append(f"[field:{field_name}]")
        return tags

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console output with optional color coding."""
        log_context = get_log_context()

        level_name = self._format_level_name(record)
        prefix = self._build_prefix(level_name, log_context)
        tags = self._build_tags(record, log_context)

        message = record.getMessage()
        if record.exc_info and record.levelno >= logging.ERROR:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        if tags:
            return f"{prefix} - {' '.join(tags)} {message}"

        return f"{prefix} - {message}"
