"""Logging setup for the command line."""

import sys

from loguru import logger


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Replace loguru's default sink with a stderr sink at `level`.

    Args:
        level: Minimum level for the stderr sink.
        log_file: Optional file that receives DEBUG and above, rotated at 10 MB.
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), colorize=True)
    if log_file:
        logger.add(log_file, level="DEBUG", rotation="10 MB", retention=3)
