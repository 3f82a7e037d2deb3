# utils/log.py
import logging
from contextlib import contextmanager
from typing import Iterator

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


@contextmanager
def log_group(logger: logging.Logger, name: str) -> Iterator[None]:
    """Bracket a block of work with start/end lines so its output reads as one group."""
    logger.info(f"▶ {name}")
    try:
        yield
    finally:
        logger.info(f"◀ {name}")
