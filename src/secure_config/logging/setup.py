"""
Logging provider selection.

Which handlers are attached is driven by InitialConfiguration:

    IsLoggingEnabled     master switch; when false no handler is attached
    EnabledLoggers       any of Debug (stderr), Console (stdout), File
    SerializationFormat  Json -> JSONFormatter, Text -> ConsoleFormatter

Levels come from the ``Logging:LogLevel`` configuration section:

    Logging:
      LogLevel:
        Default: Information
        azure.identity: Warning

The File provider writes to the path given by the ``FileLogger``
application secret, a connection string of the form
``LogPath=/var/log/orders;LogName=orders.log``.
"""

import io
import logging
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from secure_config.config.configuration import Configuration
from secure_config.config.setup import EnabledLogger, InitialConfiguration, SerializationFormat
from secure_config.logging.context import set_log_context
from secure_config.logging.formatters import ConsoleFormatter, JSONFormatter
from secure_config.logging.handlers import ArchivingTimedRotatingFileHandler

DEFAULT_LOG_DIR = Path("logs")
DEFAULT_ROTATION_WHEN = "midnight"
DEFAULT_BACKUP_COUNT = 7
FILE_LOGGER_SECRET = "FileLogger"
LOG_LEVEL_SECTION = "Logging:LogLevel"

# Noisy loggers to suppress
NOISY_LOGGERS = [
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.identity",
    "azure.keyvault",
    "urllib3",
    "aiohttp",
]

# Level names used in appsettings, mapped to stdlib levels
LEVEL_NAMES = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "information": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "none": logging.CRITICAL + 1,
}

logger = logging.getLogger(__name__)


def parse_log_level(value: Any, default: int = logging.INFO) -> int:
    """Map a level name (``Information``, ``WARNING``...) or number to a stdlib level."""
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        name = value.strip().lower()
        if name in LEVEL_NAMES:
            return LEVEL_NAMES[name]
        if name.isdigit():
            return int(name)
    return default


def parse_file_logger(connection_string: str | None) -> tuple[str | None, str | None]:
    """
    Split ``LogPath=<dir>;LogName=<file>`` into (log_path, log_name).

    Parts may appear in any order; missing parts are None.
    """
    log_path = log_name = None
    for part in (connection_string or "").split(";"):
        key, _, value = part.partition("=")
        key = key.strip().lower()
        if key == "logpath":
            log_path = value.strip() or None
        elif key == "logname":
            log_name = value.strip() or None
    return log_path, log_name


def get_log_file_path(
    connection_string: str | None,
    app_name: str = "app",
    log_dir: Path | None = None,
) -> Path:
    """Resolve the log file from the FileLogger connection string, creating its directory."""
    log_path, log_name = parse_file_logger(connection_string)
    directory = Path(log_path) if log_path else (log_dir or DEFAULT_LOG_DIR)
    log_file = directory / (log_name or f"{app_name}.log")
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return log_file


def apply_log_levels(levels: Mapping[str, Any]) -> None:
    """Apply ``Logging:LogLevel`` entries: ``Default`` to root, others to named loggers."""
    for name, value in levels.items():
        if isinstance(value, Mapping):
            continue
        level = parse_log_level(value)
        if name.lower() == "default":
            logging.getLogger().setLevel(level)
        else:
            logging.getLogger(name).setLevel(level)


def _stdout_stream():
    if sys.platform == "win32":
        return io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
    return sys.stdout


def configure_logging(
    setup: InitialConfiguration,
    configuration: Configuration | None = None,
    secrets: Any = None,
    app_name: str = "app",
    log_dir: Path | None = None,
    suppress_noisy: bool = True,
) -> list[logging.Handler]:
    """
    Replace the root handlers with the providers enabled in ``setup``.

    Args:
        setup: Initial configuration (enabled loggers, format, master switch)
        configuration: Source of the ``Logging:LogLevel`` section
        secrets: ApplicationSecrets holding the ``FileLogger`` connection string
        app_name: Application name for the log context and default file name
        log_dir: Directory for the log file when FileLogger has no LogPath
        suppress_noisy: Quiet down Azure SDK and HTTP client loggers

    Returns:
        Handlers attached to the root logger
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    set_log_context(environment=setup.rte or None, application=app_name)

    if not setup.is_logging_enabled:
        root_logger.addHandler(logging.NullHandler())
        return []

    root_logger.setLevel(logging.INFO)
    if configuration is not None:
        apply_log_levels(configuration.get_section(LOG_LEVEL_SECTION).as_dict())

    formatter: logging.Formatter
    if setup.serialization_format == SerializationFormat.JSON:
        formatter = JSONFormatter()
    else:
        formatter = ConsoleFormatter()

    handlers: list[logging.Handler] = []

    if setup.is_logger_enabled(EnabledLogger.DEBUG):
        debug_handler = logging.StreamHandler(sys.stderr)
        debug_handler.setLevel(logging.DEBUG)
        handlers.append(debug_handler)

    if setup.is_logger_enabled(EnabledLogger.CONSOLE):
        handlers.append(logging.StreamHandler(_stdout_stream()))

    log_file = None
    if setup.is_logger_enabled(EnabledLogger.FILE):
        connection_string = secrets.connection_string(FILE_LOGGER_SECRET) if secrets else None
        log_file = get_log_file_path(connection_string, app_name=app_name, log_dir=log_dir)
        handlers.append(
            ArchivingTimedRotatingFileHandler(
                log_file,
                when=DEFAULT_ROTATION_WHEN,
                backupCount=DEFAULT_BACKUP_COUNT,
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    if suppress_noisy:
        for logger_name in NOISY_LOGGERS:
            noisy = logging.getLogger(logger_name)
            if noisy.level == logging.NOTSET:
                noisy.setLevel(logging.WARNING)

    logger.debug(
        "Logging initialized",
        extra={
            "loggers": [logger_type.value for logger_type in setup.enabled_loggers],
            "log_file": str(log_file) if log_file else None,
        },
    )
    return handlers
