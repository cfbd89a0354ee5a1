"""Log formatters for JSON and console output."""

import json
import logging
import re
import sys
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from secure_config.logging.context import get_log_context


def json_serializer(obj: Any) -> Any:
    """Serialize datetimes, paths and enums; fall back to str."""
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Path):
        return str(obj)
    if hasattr(obj, "value"):
        return obj.value
    return str(obj)


def redact(text: str) -> str:
    """Remove bearer tokens and secret key/value fragments from text."""
    for pattern, replacement in JSONFormatter.SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with context injection.

    Produces one JSON object per line. Messages and string extras are
    scrubbed of bearer tokens and secret values before they are written.
    """

    # Fields to extract from LogRecord extras
    EXTRA_FIELDS = [
        # Correlation
        "trace_id",
        "duration_ms",
        # Errors
        "error",
        "error_type",
        "error_category",
        # Secrets and configuration (names only, never values)
        "secret_name",
        "secret_count",
        "key_vault",
        "key_vault_key",
        "vault_url",
        "section",
        "key",
        "keys",
        "keys_checked",
        "keys_updated",
        "keys_loaded",
        "interval_seconds",
        # Identity
        "client_id",
        "authority",
        "resource",
        "expires_on",
        # API
        "api_endpoint",
        # Host
        "app_type",
        "service_type",
        "loggers",
        "log_file",
    ]

    NUMERIC_FIELDS = {
        "duration_ms": float,
        "interval_seconds": float,
        "secret_count": int,
        "keys_checked": int,
        "keys_updated": int,
        "keys_loaded": int,
    }

    SENSITIVE_PATTERNS = [
        (re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE), r"\1[REDACTED]"),
        (re.compile(r"((?:ClientSecret|client_secret|password|pwd)\s*=\s*)[^;&\s]*", re.IGNORECASE),
         r"\1[REDACTED]"),
    ]

    def _ensure_type(self, field: str, value: Any) -> Any:
        if field not in self.NUMERIC_FIELDS or value is None:
            return value
        try:
            return self.NUMERIC_FIELDS[field](value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _base_log_entry(record: logging.LogRecord) -> dict[str, Any]:
        return {
            "ts": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
        }

    @staticmethod
    def _inject_context(log_entry: dict[str, Any], log_context: dict[str, str]) -> None:
        for field, value in log_context.items():
            if value:
                log_entry[field] = value

    def _inject_extra_fields(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is None:
                continue
            value = self._ensure_type(field, value)
            if isinstance(value, str):
                value = redact(value)
            log_entry[field] = value

    def _inject_exception(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        if not record.exc_info:
            return

        exc_type, exc_value, _ = record.exc_info
        log_entry["exception"] = {
            "type": exc_type.__name__ if exc_type else None,
            "message": redact(str(exc_value)) if exc_value else None,
            "stacktrace": self.formatException(record.exc_info),
        }

    def format(self, record: logging.LogRecord) -> str:
        log_entry = self._base_log_entry(record)
        self._inject_context(log_entry, get_log_context())

        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            log_entry["file"] = f"{record.filename}:{record.lineno}"

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

    def __init__(self, *args, use_colors: bool | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._use_colors = sys.stdout.isatty() if use_colors is None else use_colors

    def _format_level_name(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, "") if self._use_colors else ""
        if not color:
            return record.levelname
        return f"{color}{record.levelname}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        log_context = get_log_context()
        parts = [
            datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            self._format_level_name(record),
            record.name,
        ]
        if log_context["environment"]:
            parts.append(f"[{log_context['environment']}]")

        message = redact(record.getMessage())
        trace_id = getattr(record, "trace_id", None) or log_context["trace_id"]
        if trace_id:
            message = f"[{trace_id[:8]}] {message}"

        line = f"{' - '.join(parts)} - {message}"
        if record.exc_info:
            line = f"{line}\n{redact(self.formatException(record.exc_info))}"
        return line
