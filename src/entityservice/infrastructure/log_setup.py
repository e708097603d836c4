"""
Logging Setup

Applies a ``LoggingConfig`` to the ``entityservice`` logger hierarchy.
Library modules only ever call ``logging.getLogger(__name__)``; handlers
are installed here, once, by the application.
"""

import logging
import logging.handlers
from typing import Optional

from .configuration import LoggingConfig

ROOT_LOGGER = "entityservice"


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        config: Logging settings; defaults to ``LoggingConfig()``

    Returns:
        The configured ``entityservice`` logger
    """
    config = config or LoggingConfig()
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(config.level.upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if config.file_path:
        handler = logging.handlers.RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        )
    else:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter(config.format))
    logger.addHandler(handler)
    return logger
