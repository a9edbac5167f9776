"""
Logging configuration with singleton pattern.

Provides a centralized logger accessible via class methods.
All standard logging.Logger methods are accessible directly.

When log_color is True and stdout is a TTY, the severity (levelname) is colored
in the terminal only: DEBUG=gray, INFO=white, WARNING=orange, ERROR=red,
exception (crash)=bright purple. The log file is never colored.

Example usage:
    from utils.Logger import Logger

    Logger.initialize(log_level="INFO")

    Logger.info("Run starting")
    Logger.set_current_item(4)
    Logger.warning("Overlay did not close")  # ... - [T1] [item 4] Overlay did not close
    Logger.clear_current_item()
"""

import logging
import sys
import threading
from pathlib import Path
from typing import Dict, Optional, Union

# ANSI codes: only the severity field is wrapped; reset after it
_RESET = "\033[0m"
_GRAY = "\033[90m"           # DEBUG
_WHITE = "\033[37m"          # INFO
_ORANGE = "\033[38;5;208m"   # WARNING (256-color)
_RED = "\033[31m"            # ERROR
_PURPLE = "\033[95m"         # Exception/crash

_LEVEL_COLORS = {
    "DEBUG": _GRAY,
    "INFO": _WHITE,
    "WARNING": _ORANGE,
    "ERROR": _RED,
    "CRITICAL": _PURPLE,
}

# Human-friendly thread id: map threading.get_ident() -> 1, 2, 3, ...
_thread_id_lock = threading.Lock()
_thread_id_counter = 0
_thread_id_map: Dict[int, int] = {}


def _get_thread_id() -> int:
    """Return a stable, human-friendly thread number (1, 2, 3, ...) for the current thread."""
    ident = threading.get_ident()
    with _thread_id_lock:
        if ident not in _thread_id_map:
            global _thread_id_counter
            _thread_id_counter += 1
            _thread_id_map[ident] = _thread_id_counter
        return _thread_id_map[ident]


def _get_current_item() -> Optional[int]:
    """Return the timeline item index being processed by this thread, if any."""
    return getattr(Logger._thread_local, "item", None)


class _ColoredLevelFormatter(logging.Formatter):
    """Formats like the base formatter but colors only the levelname when outputting to a TTY."""

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname == "ERROR" and record.exc_info:
            color = _PURPLE
        else:
            color = _LEVEL_COLORS.get(levelname)
        record.colored_levelname = f"{color}{levelname}{_RESET}" if color else levelname
        return super().format(record)


class _ItemFilter(logging.Filter):
    """Add thread id and current item index to the log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        thread_id = getattr(record, "thread_id", None)
        if thread_id is None:
            thread_id = f"[T{_get_thread_id()}] "
        record.thread_id = thread_id
        item = getattr(record, "item", None)
        if item is None:
            item = _get_current_item()
        record.item = f"[item {item}] " if item is not None else ""
        return True


class LoggerMeta(type):
    """Metaclass to delegate all method calls to the underlying logger."""

    def __getattr__(cls, name: str):
        """Delegate attribute access to the underlying logger."""
        if not cls._initialized:
            raise RuntimeError("Logger has not been initialized. Call Logger.initialize() first.")
        return getattr(cls._logger, name)


class Logger(metaclass=LoggerMeta):
    """Logger class providing direct access to all logging.Logger methods."""

    _logger: Optional[logging.Logger] = None
    _initialized: bool = False
    _thread_local = threading.local()

    @classmethod
    def get_thread_id(cls) -> int:
        """Return the human-friendly thread number (1, 2, 3, ...) for the current thread."""
        return _get_thread_id()

    @classmethod
    def set_current_item(cls, index: Optional[int]) -> None:
        """Set the timeline item index shown in log output for this thread. None clears it."""
        cls._thread_local.item = index

    @classmethod
    def clear_current_item(cls) -> None:
        """Clear the item index from log output for this thread."""
        cls._thread_local.item = None

    @classmethod
    def initialize(
        cls,
        log_level: str = "INFO",
        log_format: Optional[str] = None,
        log_file: Optional[Union[str, Path, bool]] = None,
        log_color: bool = False,
    ) -> None:
        """
        Initialize the logger with specified settings.

        Logs to stdout and appends to a file (default: batch_downloader.log in cwd).

        Args:
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
            log_format: Custom log format string. If None, the default includes
                %(thread_id)s and %(item)s.
            log_file: Path for log file. Pass False to disable file logging.
            log_color: If True and stdout is a TTY, color the levelname in stream output.
        """
        if cls._initialized:
            return

        if log_format is None:
            log_format = "%(asctime)s - %(levelname)s - %(thread_id)s%(item)s%(message)s"

        level = getattr(logging, log_level.upper(), logging.INFO)
        plain_formatter = logging.Formatter(log_format, datefmt="%Y-%m-%d %H:%M:%S")

        cls._logger = logging.getLogger("BatchDownloader")
        cls._logger.handlers.clear()
        cls._logger.filters.clear()
        cls._logger.setLevel(level)
        cls._logger.propagate = False
        cls._logger.addFilter(_ItemFilter())

        use_color = log_color and sys.stdout.isatty()
        stream_format = log_format.replace("%(levelname)s", "%(colored_levelname)s") if use_color else log_format
        stream_formatter = _ColoredLevelFormatter(stream_format, datefmt="%Y-%m-%d %H:%M:%S") if use_color else plain_formatter

        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setLevel(level)
        stream_handler.setFormatter(stream_formatter)
        cls._logger.addHandler(stream_handler)

        if log_file is not False:
            if log_file is None:
                log_file = Path.cwd() / "batch_downloader.log"
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(plain_formatter)
            cls._logger.addHandler(file_handler)

        cls._initialized = True

    @classmethod
    def get_logger(cls, name: Optional[str] = None) -> logging.Logger:
        """Return the underlying logger, or a named child of it."""
        if not cls._initialized:
            raise RuntimeError("Logger has not been initialized. Call Logger.initialize() first.")
        if name is None:
            return cls._logger
        return logging.getLogger(f"BatchDownloader.{name}")
