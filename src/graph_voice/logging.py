"""Logging infrastructure for graph-voice.

Two rotating log files are written to the log directory:
- graph-voice-actions.log: Lifecycle of every pending action (created,
  edited, confirmed, cancelled, expired)
- graph-voice-error.log: Errors from all components (ERROR+ level only)

Usage:
    from graph_voice.logging import setup_logging, get_action_logger

    # Initialize once at startup
    setup_logging(log_dir)

    engine = ConfirmationEngine(logger=get_action_logger())
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_LOG_DIR = Path.home() / ".local" / "state" / "graph-voice" / "logs"

# Default rotation settings
DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5MB
DEFAULT_BACKUP_COUNT = 3

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

# Module-level state
_action_logger: logging.Logger | None = None
_error_logger: logging.Logger | None = None
_log_dir: Path = DEFAULT_LOG_DIR
_max_bytes: int = DEFAULT_MAX_BYTES
_backup_count: int = DEFAULT_BACKUP_COUNT
_initialized: bool = False


class ErrorPropagatingHandler(logging.Handler):
    """Handler that copies ERROR+ records to the shared error log."""

    def __init__(self, source: str) -> None:
        super().__init__(level=logging.ERROR)
        self.source = source

    def emit(self, record: logging.LogRecord) -> None:
        """Forward error records to the error logger with a source prefix."""
        error_logger = get_error_logger()
        prefixed_record = logging.LogRecord(
            name=record.name,
            level=record.levelno,
            pathname=record.pathname,
            lineno=record.lineno,
            msg=f"[{self.source}] {record.getMessage()}",
            args=(),  # Already formatted via getMessage()
            exc_info=record.exc_info,
        )
        error_logger.handle(prefixed_record)


def _rotating_handler(filename: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        _log_dir / filename,
        maxBytes=_max_bytes,
        backupCount=_backup_count,
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(
    log_dir: Path | None = None,
    log_level: str = "INFO",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> None:
    """Initialize the logging system.

    Args:
        log_dir: Directory for log files.
        log_level: Minimum log level for the graph_voice namespace.
        max_bytes: Max size per log file before rotation (default: 5MB).
        backup_count: Number of backup files to keep (default: 3).
    """
    global _log_dir, _max_bytes, _backup_count, _initialized

    _log_dir = log_dir or DEFAULT_LOG_DIR
    _max_bytes = max_bytes or DEFAULT_MAX_BYTES
    _backup_count = backup_count if backup_count is not None else DEFAULT_BACKUP_COUNT

    _log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger("graph_voice")
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    if not any(isinstance(h, ErrorPropagatingHandler) for h in root_logger.handlers):
        root_logger.addHandler(ErrorPropagatingHandler("graph_voice"))

    _initialized = True


def get_error_logger() -> logging.Logger:
    """Get the shared error logger (ERROR+ level).

    Returns:
        Logger that writes to graph-voice-error.log
    """
    global _error_logger

    if _error_logger is not None:
        return _error_logger

    if not _initialized:
        setup_logging()

    # Outside the graph_voice namespace so records don't loop back through
    # the propagating handler
    logger = logging.getLogger("graph_voice_errors")
    logger.setLevel(logging.ERROR)
    logger.propagate = False

    if not logger.handlers:
        handler = _rotating_handler("graph-voice-error.log")
        handler.setLevel(logging.ERROR)
        logger.addHandler(handler)

    _error_logger = logger
    return logger


def get_action_logger() -> logging.Logger:
    """Get the action lifecycle logger.

    Returns:
        Logger that writes to graph-voice-actions.log. ERROR+ records also
        reach graph-voice-error.log.
    """
    global _action_logger

    if _action_logger is not None:
        return _action_logger

    if not _initialized:
        setup_logging()

    logger = logging.getLogger("graph_voice.actions.audit")
    logger.setLevel(logging.INFO)

    if not logger.handlers:
        logger.addHandler(_rotating_handler("graph-voice-actions.log"))

    _action_logger = logger
    return logger


def reset_logging() -> None:
    """Reset logging state (primarily for testing)."""
    global _action_logger, _error_logger, _initialized

    for logger in (_action_logger, _error_logger):
        if logger is None:
            continue
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    root_logger = logging.getLogger("graph_voice")
    for handler in root_logger.handlers[:]:
        if isinstance(handler, ErrorPropagatingHandler):
            root_logger.removeHandler(handler)

    _action_logger = None
    _error_logger = None
    _initialized = False
