import logging
import sys
from typing import Optional

from compliance.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger.

    Only the ``compliance`` logger is touched so that embedding applications keep
    control over the root logger. Calling this twice does not add a second handler.
    """
    logger = logging.getLogger("compliance")
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
