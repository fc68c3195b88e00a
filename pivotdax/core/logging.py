"""
Logging for the pivot service.

Every module logger shares one handler.  The handler looks up ``sys.stdout``
or ``sys.stderr`` when it emits, so :func:`route_logs_to` can move all pivot
logging to stderr (the CLI does this to keep stdout for the DAX it prints).
"""
from __future__ import annotations

import logging
import sys

from pivotdax.core.config import get_settings


class _StdStreamHandler(logging.StreamHandler):
    def __init__(self, stream_name: str = "stdout"):
        super().__init__()
        self.stream_name = stream_name

    @property
    def stream(self):
        return getattr(sys, self.stream_name)

    @stream.setter
    def stream(self, value) -> None:
        # StreamHandler.__init__ assigns a stream; the name decides instead
        pass


_handler = _StdStreamHandler()
_handler.setFormatter(logging.Formatter(
    "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
))


def route_logs_to(stream_name: str) -> None:
    """Send every pivot log line to ``"stdout"`` or ``"stderr"``."""
    if stream_name not in ("stdout", "stderr"):
        raise ValueError(f"Unknown log stream '{stream_name}'")
    _handler.stream_name = stream_name


def get_logger(name: str) -> logging.Logger:
    settings = get_settings()
    logger = logging.getLogger(name)
    if _handler not in logger.handlers:
        logger.addHandler(_handler)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger
