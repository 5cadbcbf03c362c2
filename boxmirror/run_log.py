"""Activity and error logs for one mirroring run.

Each run writes two append-only text files into the log directory:
``logs_<timestamp>.txt`` with every activity and error line, and
``errors_<timestamp>.txt`` with error lines only (created on the first
error). Every line is prefixed with an ISO-8601 timestamp. Activity is
echoed to stdout and errors to stderr.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from .utils import log_timestamp

_null_logger = logging.getLogger("boxmirror.run.null")
_null_logger.propagate = False
_null_logger.addHandler(logging.NullHandler())


class IsoFormatter(logging.Formatter):
    """Formats records as ``[2024-01-02T03:04:05.678Z] message``."""

    def __init__(self) -> None:
        super().__init__("[%(asctime)s] %(message)s")

    def formatTime(self, record, datefmt=None):  # noqa: N802
        moment = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _BelowLevel(logging.Filter):
    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


class RunLog:
    """Explicit logger handed to every component of a run."""

    def __init__(
        self,
        logger: logging.Logger,
        activity_path: Optional[Path] = None,
        error_path: Optional[Path] = None,
    ):
        self.logger = logger
        self.activity_path = activity_path
        self.error_path = error_path

    def info(self, message: str) -> None:
        self.logger.info(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    @classmethod
    def null(cls) -> RunLog:
        """Return a RunLog that discards everything."""
        return cls(_null_logger)

    @classmethod
    @contextmanager
    def open(
        cls,
        log_dir: Path,
        timestamp: Optional[str] = None,
        echo: bool = True,
    ) -> Iterator[RunLog]:
        """Open the log files for a run and close them when the run ends.

        Args:
            log_dir: Directory for the log files (created if missing)
            timestamp: Suffix for the file names (defaults to now, UTC)
            echo: Whether to echo lines to stdout/stderr

        Yields:
            RunLog writing to the run's files
        """
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = timestamp or log_timestamp()
        activity_path = log_dir / f"logs_{timestamp}.txt"
        error_path = log_dir / f"errors_{timestamp}.txt"

        logger = logging.getLogger(f"boxmirror.run.{timestamp}")
        logger.setLevel(logging.INFO)
        logger.propagate = False

        formatter = IsoFormatter()
        activity_handler = logging.FileHandler(
            activity_path, mode="a", encoding="utf-8"
        )
        activity_handler.setLevel(logging.INFO)
        activity_handler.setFormatter(formatter)

        # delay=True: the error file only appears once something fails
        error_handler = logging.FileHandler(
            error_path, mode="a", encoding="utf-8", delay=True
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)

        handlers: list[logging.Handler] = [activity_handler, error_handler]
        if echo:
            stdout_handler = RichHandler(
                console=Console(file=sys.stdout),
                show_path=False,
                markup=False,
            )
            stdout_handler.setLevel(logging.INFO)
            stdout_handler.addFilter(_BelowLevel(logging.ERROR))
            stderr_handler = RichHandler(
                console=Console(stderr=True),
                show_path=False,
                markup=False,
            )
            stderr_handler.setLevel(logging.ERROR)
            handlers.extend([stdout_handler, stderr_handler])

        for handler in handlers:
            logger.addHandler(handler)

        try:
            yield cls(logger, activity_path=activity_path, error_path=error_path)
        finally:
            for handler in handlers:
                handler.flush()
                handler.close()
                logger.removeHandler(handler)
