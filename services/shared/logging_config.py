"""Logging setup for the API process."""

import logging
import re

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_URL_PASSWORD = re.compile(r":([^:@/]+)@")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(level=level, format=LOG_FORMAT)


def mask_url(url: str) -> str:
    """Hide the password component of a connection URL for logging."""
    return _URL_PASSWORD.sub(":****@", url)
