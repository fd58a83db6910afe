"""
Logging setup shared by the FastAPI app and the command-line scripts.
"""

import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Transport libraries that log every request line at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str = "INFO", *, stream: Optional[TextIO] = None) -> None:
    """Install a root handler at ``level`` writing to ``stream`` (stdout by default)."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, stream=stream or sys.stdout)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["LOG_FORMAT", "configure_logging"]
