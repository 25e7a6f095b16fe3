"""
Platform-aware logging configuration for today.

Provides cross-platform logging setup with appropriate default log file locations
for Linux, macOS, and Windows. Console output goes to stderr so log lines never
interleave with the report printed on stdout.
"""

import logging
import sys
from pathlib import Path
from typing import Optional


def get_default_log_file() -> Path:
    """
    Get the default log file path based on the current platform.

    Returns:
        Path: Platform-specific log file path
            - Linux: ~/.local/state/today/today.log
            - macOS: ~/Library/Logs/Today/today.log
            - Windows: %LOCALAPPDATA%\\Today\\today.log
    """
    if sys.platform == "darwin":  # macOS
        log_dir = Path.home() / "Library" / "Logs" / "Today"
    elif sys.platform == "win32":  # Windows
        app_data = Path.home() / "AppData" / "Local"
        log_dir = app_data / "Today"
    else:  # Linux and other Unix-like systems
        log_dir = Path.home() / ".local" / "state" / "today"

    return log_dir / "today.log"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console_level: Optional[int] = logging.WARNING,
) -> logging.Logger:
    """
    Set up logging with a file handler and an optional stderr console handler.

    Args:
        level: Logging level for the log file (e.g., logging.DEBUG, logging.INFO)
        log_file: Path to log file. If None, uses platform default.
        console_level: Level for the stderr handler, or None to disable it

    Returns:
        logging.Logger: Configured root logger

    Example:
        >>> logger = setup_logging(logging.DEBUG, console_level=logging.DEBUG)
        >>> logger.info("Application started")
    """
    logger = logging.getLogger()
    effective = level if console_level is None else min(level, console_level)
    logger.setLevel(effective)

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if log_file is None:
        log_file = get_default_log_file()

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        # If file logging fails, warn on console
        print(f"Warning: Could not set up file logging at {log_file}: {e}", file=sys.stderr)

    if console_level is not None:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(console_handler)

    return logger


def setup_default_logging(
    verbose: bool = False,
    log_file: Optional[Path] = None,
    console_level: int = logging.WARNING,
) -> logging.Logger:
    """
    Set up logging with sensible defaults for the today CLI.

    Args:
        verbose: If True, log DEBUG to both file and console
        log_file: Optional override of the platform log file
        console_level: Console level used when not verbose

    Returns:
        logging.Logger: Configured root logger
    """
    if verbose:
        return setup_logging(level=logging.DEBUG, log_file=log_file, console_level=logging.DEBUG)
    return setup_logging(level=logging.INFO, log_file=log_file, console_level=console_level)
