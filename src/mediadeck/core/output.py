"""
Unified output system using Loguru.
User-facing messages go to the rich console and the log file; background
threads (the scan worker) log to file only.
"""

import sys
import threading
from pathlib import Path

from loguru import logger

from .console import get_console

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"

_LEVEL_STYLES = {
    "debug": "cyan",
    "info": None,
    "success": "green",
    "warning": "yellow",
    "error": "red",
}


def setup_logging(
    log_file: Path,
    level: str = "INFO",
    max_file_size_mb: int = 10,
    backup_count: int = 5,
    console_output: bool = False,
) -> None:
    """
    Configure loguru: rotating file sink plus an optional stderr sink.

    Args:
        log_file: Path to log file
        level: Minimum level (DEBUG, INFO, WARNING, ERROR)
        max_file_size_mb: Size at which the log file is rotated
        backup_count: Number of rotated files to keep
        console_output: Also log to stderr
    """
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation=f"{max_file_size_mb} MB",
        retention=backup_count,
        level=level,
        format=_LOG_FORMAT,
        enqueue=True,  # scan worker logs from its own thread
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def mark_silent(thread: threading.Thread) -> None:
    """Keep log() calls made from this thread out of the console."""
    thread.silent_logging = True


def log(message: str, level: str = "info") -> None:
    """
    Write a user-facing message to the log file and the console.

    Calls from threads marked with mark_silent() only reach the log file.

    Args:
        message: User-facing message (may include rich markup)
        level: Log level (debug, info, success, warning, error)
    """
    getattr(logger, level)(message)

    if getattr(threading.current_thread(), "silent_logging", False):
        return

    style = _LEVEL_STYLES.get(level)
    console = get_console()
    if style:
        console.print(message, style=style)
    else:
        console.print(message)
