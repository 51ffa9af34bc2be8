"""
Logging Configuration
=====================

Every nnvis module logs through logging.getLogger(__name__), so the whole
library sits under the 'nnvis' logger. Applications call configure_logging()
once; libraries embedding nnvis can leave it alone and configure logging
themselves.
"""

from __future__ import annotations
import logging
import os
import sys
from typing import Optional, Union

LOG_LEVEL_ENV = 'NNVIS_LOG_LEVEL'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(
    level: Optional[Union[int, str]] = None,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the 'nnvis' logger.

    Args:
        level: Logging level, as a number or a name like "DEBUG". Defaults to
            the NNVIS_LOG_LEVEL environment variable, then INFO.
        log_file: Optional path to also write logs to.

    Returns:
        The configured 'nnvis' logger.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, 'INFO')
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger('nnvis')
    logger.setLevel(level)

    # avoid duplicate output when called more than once
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
    return logger
