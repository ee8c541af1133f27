"""
Logging utilities for the CryptoPunks image API.

Sets up the root logger once per process (console + rotating-free file
handler) and exposes the small log_* helpers every module calls.
"""

import logging
from pathlib import Path


# Set once the root logger has been configured
_logger_initialized = False

DEFAULT_LOG_FILE = "logs/punks_api.log"

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def initialize_logger(log_level: str = "INFO", log_file: str = DEFAULT_LOG_FILE) -> None:
    """
    Initialize the root logger with console and file handlers.

    Calling this more than once is a no-op, so both the API server and the
    bulk tools can call it unconditionally at startup.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file; empty string disables the file handler
    """
    global _logger_initialized

    if _logger_initialized:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    _logger_initialized = True

    root_logger.info(f"Logger initialized with level {log_level}, file: {log_file or '<none>'}")


def log_debug(message: str) -> None:
    """Log a debug message."""
    logging.getLogger().debug(message)


def log_info(message: str) -> None:
    """
    Log an info message.

    Args:
        message: Message to log
    """
    logging.getLogger().info(message)


def log_warning(message: str) -> None:
    """
    Log a warning message.

    Args:
        message: Message to log
    """
    logging.getLogger().warning(message)


def log_error(message: str) -> None:
    """
    Log an error message.

    Args:
        message: Message to log
    """
    logging.getLogger().error(message)
