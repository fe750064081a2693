import logging
import sys
from pathlib import Path
from typing import Optional


def create_logger(
    name: str, log_level: int = logging.INFO, log_file: Optional[str] = None
) -> logging.Logger:
    """Create a configured logger instance.

    Library modules log through ``logging.getLogger(__name__)``; scripts call
    this once to get a logger with console (and optionally file) output.

    Args:
        name (str): The name for the logger, typically the script name.
        log_level (int): The minimum logging level to be processed (e.g.,
            logging.INFO).
        log_file (Optional[str]): Path to the log file. If provided, logs
            will also be written to this file.

    Returns:
        logging.Logger: The configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def configure_package_logging(log_level: int = logging.INFO,
                              log_file: Optional[str] = None) -> logging.Logger:
    """
    Route log records of every ``osmplot.*`` module through one handler set.

    Args:
        log_level (int): Logging level for the package logger.
        log_file (str, optional): Path to a log file.

    Returns:
        logging.Logger: The ``osmplot`` package logger.
    """
    return create_logger("osmplot", log_level=log_level, log_file=log_file)
