"""
bcup Logger Module

Usage:
    from bcup.logger import get_logger

    logger = get_logger("bcup")
    logger.info("Backup created", file="backup_2024-01-01_00-00-00.json.gz")

Environment Variables:
    {PREFIX}_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
    {PREFIX}_LOG_FILE: Optional file path for log output
    {PREFIX}_LOG_JSON: Set to "true" for JSON output format
    {PREFIX}_LOG_FORMAT: "json" or "console" (same effect as LOG_JSON)

    Where {PREFIX} is derived from the first segment of the logger name
    (e.g., BCUP for "bcup-web").
"""

import logging
import os
from typing import Optional

from .interface import Logger
from .structured_logger import JsonFormatter, StructuredLogger, TextFormatter


def _get_env_prefix(name: str) -> str:
    """Convert logger name to environment variable prefix.

    Examples:
        "bcup" -> "BCUP"
        "bcup-web" -> "BCUP"
    """
    return name.split("-", 1)[0].upper()


def create_logger(
    name: str = "bcup",
    level: Optional[int] = None,
    log_file: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> Logger:
    """Create a new logger, falling back to environment variables.

    Args:
        name: Logger name (e.g., "bcup", "bcup-web")
        level: Logging level (defaults to INFO or env var)
        log_file: Optional file path for log output
        json_format: If True, output logs as JSON

    Returns:
        A configured Logger instance
    """
    env_prefix = _get_env_prefix(name)

    if level is None:
        level_str = os.environ.get(f"{env_prefix}_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_str, logging.INFO)

    if log_file is None:
        log_file = os.environ.get(f"{env_prefix}_LOG_FILE")

    if json_format is None:
        json_format = (
            os.environ.get(f"{env_prefix}_LOG_JSON", "false").lower() == "true"
            or os.environ.get(f"{env_prefix}_LOG_FORMAT", "").lower() == "json"
        )

    return StructuredLogger(
        name=name,
        level=level,
        log_file=log_file,
        json_format=json_format,
    )


def get_logger(name: str = "bcup") -> Logger:
    """Get a logger configured from environment variables."""
    return create_logger(name=name)


__all__ = [
    "Logger",
    "StructuredLogger",
    "JsonFormatter",
    "TextFormatter",
    "create_logger",
    "get_logger",
]
