"""CompeteHub Notifier — Logging Setup.

Centralized logging: a console handler (colored when attached to a
terminal) and a rotating file handler under logs/. Modules obtain their
logger through get_logger(); the console level follows the `logging.level`
setting once configure_logging() is called by the application.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

# ── Constants ─────────────────────────────────────────────
LOG_DIR = Path(os.environ.get("LOG_DIR", Path(__file__).resolve().parent.parent.parent / "logs"))
LOG_FILE = LOG_DIR / "competehub_notifier.log"
MAX_BYTES = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

_CONSOLE_FORMAT = "%(asctime)s │ %(levelname)s │ %(name)s │ %(message)s"
_FILE_FORMAT = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# ── ANSI Color Codes ─────────────────────────────────────
COLORS = {
    "DEBUG": "\033[36m",     # Cyan
    "INFO": "\033[32m",      # Green
    "WARNING": "\033[33m",   # Yellow
    "ERROR": "\033[31m",     # Red
    "CRITICAL": "\033[41m",  # Red background
}
RESET = "\033[0m"

_initialized = False
_console_handler: logging.Handler | None = None


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name and timestamp.

    The record is copied before decoration so the file handler, which
    formats the same record, never sees ANSI codes.
    """

    def format(self, record: logging.LogRecord) -> str:
        color = COLORS.get(record.levelname, "")
        decorated = logging.makeLogRecord(record.__dict__)
        decorated.levelname = f"{color}{record.levelname:<8}{RESET}"
        decorated.asctime = f"{color}{self.formatTime(record, self.datefmt)}{RESET}"
        return super().format(decorated)

    def usesTime(self) -> bool:
        # asctime is filled in by format() above
        return False


def _setup_logging() -> None:
    """Install the console and file handlers on the root logger once."""
    global _initialized, _console_handler
    if _initialized:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # ── Console Handler ──────────────────────────────────
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    if sys.stdout.isatty():
        console_handler.setFormatter(ColoredFormatter(fmt=_CONSOLE_FORMAT, datefmt=_DATE_FORMAT))
    else:
        console_handler.setFormatter(logging.Formatter(fmt=_FILE_FORMAT, datefmt=_DATE_FORMAT))
    root_logger.addHandler(console_handler)
    _console_handler = console_handler

    # ── Rotating File Handler (DEBUG) ────────────────────
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(LOG_FILE),
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        # Read-only filesystems (containers) still get console logs
        root_logger.warning("File logging disabled (%s): %s", LOG_FILE, e)
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=_FILE_FORMAT, datefmt=_DATE_FORMAT))
        root_logger.addHandler(file_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _initialized = True


def configure_logging(level: str) -> None:
    """Apply the configured console log level.

    Args:
        level: A standard level name such as "DEBUG" or "INFO".

    Raises:
        ValueError: If the level name is unknown.
    """
    _setup_logging()
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level!r}")
    if _console_handler is not None:
        _console_handler.setLevel(numeric)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger with the global configuration applied.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Returns:
        A configured logging.Logger instance.
    """
    _setup_logging()
    return logging.getLogger(name)
