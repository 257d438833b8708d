"""
Unified output system using Loguru.
Replaces print() statements and stdlib logging with dual output (console + file).
"""

import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import LoggingConfig, get_data_dir
from .console import get_console

# Console echo for log() (disabled when the console sink already shows everything)
_echo_enabled = True
_echo_lock = threading.Lock()

_LEVEL_STYLES = {
    "debug": "cyan",
    "info": "white",
    "success": "green",
    "warning": "yellow",
    "error": "bold red",
}


def get_log_file_path() -> Path:
    """Get the default path to the log file."""
    return get_data_dir() / "yakima.log"


def setup_loguru(logging_config: LoggingConfig, log_file: Optional[Path] = None) -> Path:
    """
    Configure loguru with a rotating file sink and an optional stderr sink.

    Args:
        logging_config: Logging section of the configuration
        log_file: Override for the log file path

    Returns:
        Path of the file sink
    """
    if log_file is None:
        log_file = (
            Path(logging_config.log_file).expanduser()
            if logging_config.log_file
            else get_log_file_path()
        )
    log_file.parent.mkdir(parents=True, exist_ok=True)

    level = logging_config.level.upper()

    # Remove default handler
    logger.remove()

    logger.add(
        log_file,
        rotation=f"{logging_config.max_file_size_mb} MB",
        retention=logging_config.backup_count,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,  # Synchronous writes (thread-safe but blocking)
    )

    if logging_config.console_output:
        logger.add(
            sys.stderr,
            level=level,
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
        )
        set_console_echo(False)
    else:
        set_console_echo(True)

    logger.info(f"Loguru initialized: {log_file} (level={level})")
    return log_file


def set_console_echo(enabled: bool) -> None:
    """Enable or disable printing log() messages to the console."""
    global _echo_enabled
    with _echo_lock:
        _echo_enabled = enabled


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to file AND prints for the operator.

    Use this instead of print() for user-facing messages that should also be logged.

    Args:
        message: User-facing message
        level: Log level (debug, info, success, warning, error)
    """
    # Log via loguru (always); depth=1 reports the caller's location
    log_func = getattr(logger.opt(depth=1), level)
    log_func(message)

    with _echo_lock:
        if _echo_enabled and level != "debug":
            get_console().print(
                message, style=_LEVEL_STYLES.get(level, "white"), markup=False
            )
