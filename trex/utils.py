"""
Utility functions for the T-Rex client library
"""
import asyncio
import logging
from logging.handlers import RotatingFileHandler
from typing import Awaitable, Callable, Optional


class LogConst:
    FORMAT = "%(asctime)s\t%(levelname)s\t%(message)s"
    DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
    MAX_BYTES = 5 * 1024 * 1024  # 5MB
    BACKUP_COUNT = 5


def run_with_keyboard_interrupt(main_func: Callable[[], Awaitable[int]]) -> int:
    """
    Run an async main function with graceful KeyboardInterrupt handling.

    This function wraps asyncio.run() to catch KeyboardInterrupt (Ctrl+C) and
    provide a clean shutdown experience.

    Args:
        main_func: The async main function to run, returning an exit code

    Returns:
        The exit code of main_func, or 0 if interrupted by the user
    """
    try:
        return asyncio.run(main_func())
    except KeyboardInterrupt:
        print("\nInterrupted by user (Ctrl+C)")
        return 0


def setup_logging(level: str = "INFO", log_file: Optional[str] = None, logger: Optional[logging.Logger] = None) -> logging.Logger:
    """
    Attach a console handler, and a rotating file handler if log_file is given.

    Returns the configured logger (the root logger by default).
    """
    logger = logger or logging.getLogger()
    logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(fmt=LogConst.FORMAT, datefmt=LogConst.DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level.upper())
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=LogConst.MAX_BYTES, backupCount=LogConst.BACKUP_COUNT)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
