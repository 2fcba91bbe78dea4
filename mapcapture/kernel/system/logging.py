import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: int = logging.INFO, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Sets up the "mapcapture" logger for a host application.
    Writes to ``stream`` (stdout by default). Calling it again only changes the level.
    """
    logger = logging.getLogger("mapcapture")
    logger.setLevel(level)

    if logger.handlers:
        for existing in logger.handlers:
            existing.setLevel(level)
        return logger

    # StreamHandler falls back to stderr when stdout is None (windowed hosts)
    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Helper to get a sub-logger for a specific module.
    """
    if name:
        if name.startswith("mapcapture"):
            return logging.getLogger(name)
        return logging.getLogger(f"mapcapture.{name}")
    return logging.getLogger("mapcapture")
