"""Logging configuration."""

from .logger import configure_file_logging, get_logger, log_performance, logger

__all__ = ["configure_file_logging", "get_logger", "log_performance", "logger"]
