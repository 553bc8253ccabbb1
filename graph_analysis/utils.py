"""
Utility helpers: logging configuration, wall-clock timing and stage
deadlines.
"""

import contextlib
import logging
import threading
import time
from typing import Generator, Optional

from graph_analysis.exceptions import ResourceExhaustedError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_logging(
    level: int = logging.INFO,
    fmt: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt: str = "%Y-%m-%dT%H:%M:%S%z",
) -> None:
    """Configure the root logger with timestamped structured output."""
    logging.basicConfig(level=level, format=fmt, datefmt=datefmt, force=True)


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------


@contextlib.contextmanager
def timed(label: str) -> Generator[None, None, None]:
    """Context manager that logs elapsed wall-clock time for *label*."""
    t0 = time.monotonic()
    yield
    elapsed = time.monotonic() - t0
    logger.info("⏱  %s completed in %.3fs.", label, elapsed)


# ---------------------------------------------------------------------------
# Deadlines
# ---------------------------------------------------------------------------


class Deadline:
    """Shared wall-clock budget that long-running loops poll.

    ``check()`` raises ``ResourceExhaustedError`` once the budget has run
    out or ``cancel()`` has been called, so worker threads stop on their
    own instead of running to completion after the caller gave up.
    """

    def __init__(self, seconds: Optional[float] = None) -> None:
        self.seconds = seconds
        self._expires_at = None if seconds is None else time.monotonic() + seconds
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def expired(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def check(self, stage: str) -> None:
        if self.expired:
            raise ResourceExhaustedError(
                f"stage {stage} stopped: time budget of {self.seconds}s exceeded"
            )
