"""
Structured logging module.

Provides JSON and console logging with context propagation, and selects
logging providers from the initial configuration.
"""

from secure_config.logging.context import (
    LogContext,
    clear_log_context,
    get_log_context,
    set_log_context,
)
from secure_config.logging.formatters import ConsoleFormatter, JSONFormatter, redact
from secure_config.logging.handlers import ArchivingTimedRotatingFileHandler
from secure_config.logging.setup import (
    NOISY_LOGGERS,
    configure_logging,
    get_log_file_path,
    parse_file_logger,
    parse_log_level,
)

__all__ = [
    # Setup
    "configure_logging",
    "get_log_file_path",
    "parse_file_logger",
    "parse_log_level",
    "NOISY_LOGGERS",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    "redact",
    # Handlers
    "ArchivingTimedRotatingFileHandler",
    # Context
    "LogContext",
    "set_log_context",
    "get_log_context",
    "clear_log_context",
]
