# /app/core/logging_config.py

import logging

from .config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """Configure root logging once and return the application logger."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # httpx logs every request at INFO; one line per slot is too chatty.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("app")
