"""Logging configuration for the watermarker."""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logger(level: str = "INFO", log_file: Optional[Union[str, Path]] = None):
    """Configure loguru sinks for the watermarker.

    Console output always goes to stdout. When ``log_file`` is given, a rotating
    file sink is added next to a separate errors log in the same directory.
    """

    # Remove default handler
    logger.remove()

    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
               "<level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
               "<level>{message}</level>",
        level=level,
        colorize=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path,
            format=FILE_FORMAT,
            level=level,
            rotation="10 MB",
            retention="7 days",
            compression="gz",
        )

        logger.add(
            log_path.with_name("errors.log"),
            format=FILE_FORMAT,
            level="ERROR",
            rotation="10 MB",
            retention="30 days",
            compression="gz",
        )

    return logger


# Library modules log through this handle; sinks are set up by setup_logger()
log = logger
