"""Logging configuration using loguru."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from workplace_agents.utils.config import Settings, get_settings


def setup_logger(settings: Optional[Settings] = None, stream=None):
    """Configure application logging using loguru.

    Sets up console logging and, when a log file path is configured,
    a rotating file sink. Console output goes to stdout unless another
    stream is given (stdio MCP servers log to stderr).
    """
    settings = settings or get_settings()

    # Remove default handler
    logger.remove()

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    logger.add(
        stream or sys.stdout,
        format=console_format,
        level=settings.log_level,
        colorize=True,
    )

    if not settings.log_file_path:
        logger.info(f"Logger initialized with level: {settings.log_level} (console only)")
        return logger

    log_path = Path(settings.log_file_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    if settings.log_format == "json":
        logger.add(
            log_path,
            format="{message}",
            level=settings.log_level,
            rotation=f"{settings.log_max_size_mb} MB",
            retention=settings.log_backup_count,
            serialize=True,  # JSON output, includes bound extras
        )
    else:
        logger.add(
            log_path,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
                "{name}:{function}:{line} - {message}"
            ),
            level=settings.log_level,
            rotation=f"{settings.log_max_size_mb} MB",
            retention=settings.log_backup_count,
        )

    logger.info(f"Logger initialized with level: {settings.log_level}")
    logger.info(f"Logging to file: {log_path}")

    return logger


def get_logger():
    """Get the configured logger instance."""
    return logger
