"""
Logging setup for the tourney CLIs.

Library modules use ``logging.getLogger(__name__)``; every record therefore
lands under the ``tourney`` logger, which :func:`setup_logging` configures
once per CLI run.
"""

from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager

ROOT_LOGGER_NAME = "tourney"

_FORMATS = {
    "simple": "%(levelname)s: %(message)s",
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "json": (
        '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
        '"module": "%(name)s", "message": "%(message)s"}'
    ),
}


def setup_logging(
    level: str | int = logging.INFO, format_style: str = "detailed"
) -> logging.Logger:
    """Route ``tourney.*`` records to stdout.

    Args:
        level: Logging level name or number.
        format_style: One of "simple", "detailed" or "json"; unknown styles
            fall back to "detailed".

    Returns:
        The configured ``tourney`` logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(_FORMATS.get(format_style, _FORMATS["detailed"]))
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger


@contextmanager
def log_timing(logger: logging.Logger, operation: str):
    """Log start, duration and failure of a whole CLI step."""
    start = time.perf_counter()
    logger.info(f"Starting {operation}")
    try:
        yield
    except Exception as e:
        logger.error(
            f"Failed {operation} after {time.perf_counter() - start:.2f}s: {e}"
        )
        raise
    logger.info(f"Completed {operation} in {time.perf_counter() - start:.2f}s")


class ProgressLogger:
    """Periodic progress lines for a loop over files or payloads.

    >>> with ProgressLogger(logger, "normalizing matches", total=100) as progress:
    ...     for i, payload in enumerate(payloads, 1):
    ...         progress.update(i)
    """

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        total: int | None = None,
        update_interval: int = 10,
    ) -> None:
        self.logger = logger
        self.operation = operation
        self.total = total
        self.update_interval = update_interval
        self.start = 0.0
        self.last_update = 0

    def __enter__(self) -> "ProgressLogger":
        self.start = time.perf_counter()
        suffix = f" (0/{self.total})" if self.total else ""
        self.logger.info(f"Starting {self.operation}{suffix}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        elapsed = time.perf_counter() - self.start
        if exc_type is None:
            self.logger.info(f"Completed {self.operation} in {elapsed:.2f}s")
        else:
            self.logger.error(
                f"Failed {self.operation} after {elapsed:.2f}s: {exc_val}"
            )

    def update(self, current: int, message: str | None = None) -> None:
        if current - self.last_update < self.update_interval and current != self.total:
            return
        elapsed = time.perf_counter() - self.start
        rate = current / elapsed if elapsed > 0 else 0.0
        if self.total:
            line = (
                f"{self.operation}: {current}/{self.total} "
                f"({current / self.total:.0%}) - {rate:.1f}/s"
            )
        else:
            line = f"{self.operation}: {current} items - {rate:.1f}/s"
        if message:
            line += f" - {message}"
        self.logger.info(line)
        self.last_update = current
