"""Centralized logging configuration."""

import sys
from typing import Optional

from loguru import logger

LOG_FORMAT = " | ".join(
    (
        "<lk>{time:YYYY-MM-DD HH:mm:ss.SSS}</>",
        "<lvl>{level:<8}</>",
        "<c>{name}:{function}:{line}</>",
        "{message}",
    )
)


def configure_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """Replace loguru's default sink with ours; add a rotating file sink if asked."""
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if log_dir:
        logger.add(
            f"{log_dir}/ticketpro_{{time:YYYY-MM-DD}}.log",
            level=level,
            format=LOG_FORMAT,
            rotation="1 day",
            retention="30 days",
            compression="zip",
            enqueue=True,
        )
