"""Centralized logging configuration using loguru."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"

# Remove default handler
logger.remove()

# Add console handler with INFO level
logger.add(
    sys.stderr,
    level="INFO",
    format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    colorize=True,
)


def configure_file_logging(
    logs_dir: Union[str, Path] = "logs",
    level: str = "DEBUG",
    rotation: str = "50 MB",
    retention: str = "10 days",
) -> int:
    """Add a rotating file sink.

    Importing the package only installs the stderr sink; files are written
    once this is called.

    Args:
        logs_dir: Directory for log files (created if missing)
        level: Minimum level written to the file
        rotation: loguru rotation policy
        retention: loguru retention policy

    Returns:
        Handler id, usable with ``logger.remove``
    """
    path = Path(logs_dir)
    path.mkdir(parents=True, exist_ok=True)
    return logger.add(
        path / "stereocam_{time}.log",
        rotation=rotation,
        retention=retention,
        level=level,
        format=FILE_FORMAT,
        enqueue=True,  # Thread-safe logging
    )


def get_logger(name: Optional[str] = None):
    """Get a logger instance with the given name.

    Args:
        name: Module name for the logger (usually __name__)

    Returns:
        Configured logger instance
    """
    if name:
        return logger.bind(name=name)
    return logger


# Performance logging helper
def log_performance(operation: str, duration_ms: float, threshold_ms: float = 100.0) -> None:
    """Log performance metrics with warnings for slow operations.

    Args:
        operation: Description of the operation
        duration_ms: Duration in milliseconds
        threshold_ms: Threshold for warning (default: 100ms)
    """
    if duration_ms > threshold_ms:
        logger.warning(f"Slow operation: {operation} took {duration_ms:.2f}ms (threshold: {threshold_ms}ms)")
    else:
        logger.debug(f"Performance: {operation} took {duration_ms:.2f}ms")


# Export configured logger
__all__ = ["logger", "get_logger", "log_performance", "configure_file_logging"]
