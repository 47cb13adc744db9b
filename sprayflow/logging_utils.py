"""Logging setup shared by every SprayFlow entry point.

``setup_logging`` installs two handlers on the chosen logger: a rotating file
in the per-user data directory and a console stream. The per-second countdown
lines (``[clock.trace]``) are filtered out of both unless trace mode or
``SPRAYFLOW_CLOCK_TRACE`` asks for them.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from enum import Enum
from pathlib import Path
from typing import Optional

from .platform_paths import get_user_data_dir


DEFAULT_LOG_FILENAME = "sprayflow.log"
CLOCK_TRACE_ENV = "SPRAYFLOW_CLOCK_TRACE"
CLOCK_TRACE_TAG = "[clock.trace]"

_PLAIN_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
_FLAT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_DATE_FORMAT = "%H:%M:%S"
_MAX_BYTES = 1_000_000
_BACKUPS = 3


class LogMode(str, Enum):
    """Verbosity presets selectable from the CLI."""

    QUIET = "quiet"    # console shows warnings and errors only
    NORMAL = "normal"
    TRACE = "trace"    # DEBUG everywhere, countdown lines included


_active_mode: LogMode = LogMode.NORMAL


def get_default_log_dir() -> Path:
    """Per-user data directory, or the working directory if it cannot be created."""
    directory = get_user_data_dir()
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError:
        return Path.cwd()
    return directory


def get_default_log_path() -> Path:
    return get_default_log_dir() / DEFAULT_LOG_FILENAME


def _coerce_mode(mode: LogMode | str | None) -> LogMode:
    if isinstance(mode, LogMode):
        return mode
    if not mode:
        return LogMode.NORMAL
    try:
        return LogMode(str(mode).strip().lower())
    except ValueError:
        return LogMode.NORMAL


def set_log_mode(mode: LogMode | str | None) -> LogMode:
    """Record the active preset; unknown names fall back to NORMAL."""
    global _active_mode
    _active_mode = _coerce_mode(mode)
    return _active_mode


def get_log_mode() -> LogMode:
    return _active_mode


def is_trace_logging_enabled() -> bool:
    return _active_mode is LogMode.TRACE


def is_quiet_logging_enabled() -> bool:
    return _active_mode is LogMode.QUIET


def clock_trace_enabled() -> bool:
    if os.environ.get(CLOCK_TRACE_ENV, "").strip().lower() in {"1", "true", "yes", "on"}:
        return True
    return is_trace_logging_enabled()


class _ClockTraceFilter(logging.Filter):
    """Hides countdown chatter unless clock tracing is on."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not isinstance(record.msg, str) or CLOCK_TRACE_TAG not in record.msg:
            return True
        return clock_trace_enabled()


_CLOCK_TRACE_FILTER = _ClockTraceFilter()


def _level_number(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


def _open_file_handler(path: Path, level: int, formatter: logging.Formatter) -> Optional[logging.Handler]:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8"
        )
    except OSError:
        # Read-only data dir: console logging still works
        return None
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(_CLOCK_TRACE_FILTER)
    return handler


def _retune(logger: logging.Logger, file_level: int, console_level: int) -> None:
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            handler.setLevel(file_level)
        elif isinstance(handler, logging.StreamHandler):
            handler.setLevel(console_level)
        else:
            handler.setLevel(file_level)


def setup_logging(
    *,
    level: str | int = "INFO",
    log_file: Optional[str | Path] = None,
    json_format: bool = False,
    logger_name: Optional[str] = None,
    log_mode: LogMode | str | None = None,
    add_console: bool = True,
) -> logging.Logger:
    """Configure SprayFlow logging.

    Safe to call more than once: later calls only adjust levels on the
    handlers installed by the first call.

    Args:
        level: Threshold name or number
        log_file: Rotating log file (default: sprayflow.log in the data dir)
        json_format: Flat single-line ``time LEVEL name message`` records
        logger_name: Configure this logger instead of the root logger
        log_mode: quiet/normal/trace preset (keeps the current one when None)
        add_console: Also log to stderr

    Returns:
        The configured logger
    """
    mode = set_log_mode(log_mode) if log_mode is not None else get_log_mode()
    file_level = _level_number(level)
    if mode is LogMode.TRACE:
        file_level = min(file_level, logging.DEBUG)
    console_level = max(file_level, logging.WARNING) if mode is LogMode.QUIET else file_level

    logger = logging.getLogger(logger_name) if logger_name else logging.getLogger()
    logger.setLevel(file_level)

    if logger.handlers:
        _retune(logger, file_level, console_level)
        return logger

    formatter = logging.Formatter(fmt=_FLAT_FORMAT if json_format else _PLAIN_FORMAT, datefmt=_DATE_FORMAT)
    file_handler = _open_file_handler(Path(log_file) if log_file else get_default_log_path(), file_level, formatter)
    if file_handler is not None:
        logger.addHandler(file_handler)

    if add_console:
        console = logging.StreamHandler()
        console.setLevel(console_level)
        console.setFormatter(formatter)
        console.addFilter(_CLOCK_TRACE_FILTER)
        logger.addHandler(console)

    return logger
