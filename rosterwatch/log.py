"""
Logging setup for Roster Watch.

Runs are short and scheduled, so everything goes to stderr through the root
logger. The PDF and HTTP libraries underneath are chatty and are held at
WARNING unless asked otherwise.
"""

import logging
from typing import Iterable, Optional

from rosterwatch.config import Config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# pdfminer logs every content stream operator at DEBUG
NOISY_LOGGERS = ("pdfminer", "urllib3", "filelock")


def parse_level(level: str) -> int:
    """
    Resolve a level name such as "info" or "WARNING".

    Raises:
        ValueError: If the name is not a logging level
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")
    return numeric_level


def quiet_libraries(names: Iterable[str] = NOISY_LOGGERS, floor: int = logging.WARNING) -> None:
    """Raise third-party loggers to at least floor."""
    for name in names:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(max(library_logger.getEffectiveLevel(), floor))


def configure_logging(config: Optional[Config] = None, level: Optional[str] = None) -> None:
    """
    Configure logging for a run.

    Args:
        config: Configuration object
        level: Explicit level overriding the configuration, e.g. from --log-level
    """
    if level is None:
        level = config.logging.level if config is not None else "INFO"

    logging.basicConfig(level=parse_level(level), format=LOG_FORMAT, datefmt=DATE_FORMAT)
    quiet_libraries()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
