"""
Logging utilities with per-run log files and size-based rotation.

Key Features:
    - Console and file output from a single setup_logger() call
    - One shared log file per process run, grouped in date directories
    - Rotation errors reported on stderr instead of crashing the request
    - Automatic cleanup of old log directories
"""

import datetime
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_FILE_BASENAME = "academic_buddy"
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "true").lower() in ("true", "1", "yes")
LOG_KEEP_DAYS = int(os.getenv("LOG_KEEP_DAYS", "7"))

LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

MAX_LOG_SIZE_BYTES = 5 * 1024 * 1024
MAX_BACKUP_COUNT = 10

# All loggers of one run share the same file
_GLOBAL_LOG_FILE: Path | None = None
_cleanup_done = False


def _get_log_file() -> Path:
    global _GLOBAL_LOG_FILE
    if _GLOBAL_LOG_FILE is None:
        now = datetime.datetime.now()
        date_dir = LOG_DIR / now.strftime("%Y-%m-%d")
        date_dir.mkdir(parents=True, exist_ok=True)
        run_timestamp = now.strftime("%Y-%m-%d_%H-%M-%S")
        _GLOBAL_LOG_FILE = date_dir / f"{LOG_FILE_BASENAME}_{run_timestamp}.log"
    return _GLOBAL_LOG_FILE


class SafeRotatingFileHandler(RotatingFileHandler):
    """Size-based rotation handler that keeps logging when a rollover fails."""

    def doRollover(self):
        try:
            super().doRollover()
        except OSError as e:
            sys.stderr.write(
                f"Log rotation failed: {e}. Continuing with current log file.\n"
            )
            sys.stderr.flush()


def _get_log_level(level_str: str) -> int:
    level = logging.getLevelName(level_str.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logger(name: str, level: str | None = None) -> logging.Logger:
    """Set up logger with both console and file handlers."""
    logger = logging.getLogger(name)
    log_level = _get_log_level(level or DEFAULT_LOG_LEVEL)
    logger.setLevel(log_level)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, DATE_FORMAT))
    logger.addHandler(console_handler)

    if LOG_TO_FILE:
        file_handler = SafeRotatingFileHandler(
            _get_log_file(),
            maxBytes=MAX_LOG_SIZE_BYTES,
            backupCount=MAX_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(file_handler)
        _cleanup_once()

    return logger


def _cleanup_once():
    global _cleanup_done
    if not _cleanup_done:
        _cleanup_done = True
        cleanup_old_logs(keep_days=LOG_KEEP_DAYS)


def cleanup_old_logs(keep_days: int = 7) -> int:
    """
    Delete date directories older than keep_days.

    Returns the number of files removed. Files locked by another process are
    skipped and left for the next run.
    """
    if not LOG_DIR.exists():
        return 0

    cutoff = datetime.datetime.now() - datetime.timedelta(days=keep_days)
    deleted_count = 0

    for date_dir in LOG_DIR.iterdir():
        if not date_dir.is_dir():
            continue
        try:
            dir_date = datetime.datetime.strptime(date_dir.name, "%Y-%m-%d")
        except ValueError:
            # Not one of ours
            continue
        if dir_date >= cutoff:
            continue

        for log_file in date_dir.iterdir():
            try:
                log_file.unlink()
                deleted_count += 1
            except (PermissionError, FileNotFoundError):
                continue
        try:
            date_dir.rmdir()
        except OSError:
            pass

    return deleted_count
