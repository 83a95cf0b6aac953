"""Logging setup and configuration."""

import io
import logging
import secrets
import sys
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.logging.context import set_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter

# Default settings
DEFAULT_ROTATION_WHEN = "midnight"
DEFAULT_BACKUP_COUNT = 7
DEFAULT_CONSOLE_LEVEL = logging.INFO
DEFAULT_FILE_LEVEL = logging.DEBUG

# Noisy loggers to suppress
NOISY_LOGGERS = [
    "urllib3",
    "requests",
    "hdfs.client",
    "hdfs.util",
]


def get_log_file_path(
    log_dir: Path,
    cluster_name: str | None = None,
    component: str | None = None,
) -> Path:
    """
    Build log file path with cluster/date subfolder structure.

    Structure: {log_dir}/{cluster}/{YYYY-MM-DD}/{cluster}_{component}_{MMDD}_{HHMM}.log

    Examples:
        logs/analytics/2026-01-05/analytics_appmaster_0105_1430.log
        logs/amsecurity/2026-01-05/amsecurity_0105_0930.log

    Args:
        log_dir: Base log directory
        cluster_name: Application cluster name
        component: Component name (appmaster, ...)

    Returns:
        Full path to log file
    """
    now = datetime.now()
    date_folder = now.strftime("%Y-%m-%d")
    stamp = now.strftime("%m%d_%H%M")

    prefix = cluster_name or "amsecurity"
    if component:
        base_name = f"{prefix}_{component}_{stamp}"
    else:
        base_name = f"{prefix}_{stamp}"

    return log_dir / prefix / date_folder / f"{base_name}.log"


def setup_logging(
    name: str = "amsecurity",
    cluster_name: str | None = None,
    component: str | None = None,
    log_dir: Path | None = None,
    json_format: bool = True,
    console_level: int = DEFAULT_CONSOLE_LEVEL,
    file_level: int = DEFAULT_FILE_LEVEL,
    rotation_when: str = DEFAULT_ROTATION_WHEN,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    suppress_noisy: bool = True,
    trace_id: str | None = None,
) -> logging.Logger:
    """
    Configure logging with a console handler and an optional rotating file handler.

    Console output is always human readable. When log_dir is given, a file handler
    is added under a cluster/date subfolder, writing JSON lines by default:
        logs/analytics/2026-01-05/analytics_appmaster_0105_1430.log

    Args:
        name: Logger name returned to the caller
        cluster_name: Application cluster name, added to every record's context
        component: Component name, added to every record's context
        log_dir: Directory for log files (None = console only)
        json_format: Use JSON format for file logs (default: True)
        console_level: Console handler level (default: INFO)
        file_level: File handler level (default: DEBUG)
        rotation_when: When to rotate file logs (default: midnight)
        backup_count: Number of rotated files to keep (default: 7)
        suppress_noisy: Quiet down HTTP client loggers
        trace_id: Correlation ID for this startup (generated if None)

    Returns:
        Configured logger instance
    """
    set_log_context(
        cluster_name=cluster_name,
        component=component,
        trace_id=trace_id or generate_trace_id(),
    )

    console_formatter = ConsoleFormatter()
    if sys.platform == "win32":
        safe_stdout = io.TextIOWrapper(
            sys.stdout.buffer, encoding="utf-8", errors="replace"
        )
        console_handler = logging.StreamHandler(safe_stdout)
    else:
        console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(console_formatter)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    log_file = None
    if log_dir is not None:
        log_file = get_log_file_path(log_dir, cluster_name=cluster_name, component=component)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        if json_format:
            file_formatter = JSONFormatter()
        else:
            file_formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
            )

        file_handler = TimedRotatingFileHandler(
            log_file,
            when=rotation_when,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    if suppress_noisy:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger(name)
    if log_file is None:
        logger.debug("Logging initialized: console only")
    else:
        logger.debug(f"Logging initialized: file={log_file}, json={json_format}")

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Use this instead of logging.getLogger() to ensure consistent naming.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def generate_trace_id() -> str:
    """
    Generate unique startup identifier.

    Format: s-YYYYMMDD-HHMMSS-XXXX where XXXX is random hex.
    """
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")
    suffix = secrets.token_hex(2)
    return f"s-{ts}-{suffix}"
