"""
Append-only audit log for batch runs.

This module is responsible for:
- Creating the log file (and its parent directories) at startup
- Appending one line per entry: [<timestamp>] [<LEVEL>] <message>
- Mirroring entries to the console: INFO/SUCCESS to stdout,
  WARNING/ERROR to stderr
- Reporting, but never raising, write failures after startup
"""

import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, TextIO, Union

from .errors import SetupError

logger = logging.getLogger(__name__)

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")


class LogLevel(Enum):
    """Audit entry levels, mapped onto logging levels."""
    INFO = logging.INFO
    SUCCESS = SUCCESS
    WARNING = logging.WARNING
    ERROR = logging.ERROR


class AuditFormatter(logging.Formatter):
    """Formats records as ``[<ISO-8601 ms, with offset>] [<LEVEL>] <message>``."""

    def __init__(self):
        super().__init__("[%(asctime)s] [%(levelname)s] %(message)s")

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created).astimezone()
        return stamp.isoformat(timespec="milliseconds")

    def format(self, record):
        # One entry per line: embedded line breaks are folded into " | ".
        return " | ".join(super().format(record).splitlines())


class _LevelRangeFilter(logging.Filter):
    """Passes records whose level is in [low, high)."""

    def __init__(self, low: int, high: int):
        super().__init__()
        self.low = low
        self.high = high

    def filter(self, record):
        return self.low <= record.levelno < self.high


class _AuditFileHandler(logging.FileHandler):
    """FileHandler that counts failed writes instead of losing them silently."""

    def __init__(self, filename):
        super().__init__(filename, mode="a", encoding="utf-8")
        self.failures = 0

    def handleError(self, record):
        self.failures += 1
        super().handleError(record)


class AuditLog:
    """
    Audit log bound to one file for the lifetime of a run.

    Use ``AuditLog.open(path)`` to create it; it can be used as a context
    manager to close the file when the run ends.
    """

    def __init__(
        self,
        path: Union[str, Path],
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ):
        """
        Create the parent directory and open the log file for appending.

        Args:
            path: Log file path
            stdout: Stream for INFO/SUCCESS entries (defaults to sys.stdout)
            stderr: Stream for WARNING/ERROR entries (defaults to sys.stderr)

        Raises:
            SetupError: If the directory cannot be created or the file opened
        """
        self.path = Path(path)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handler = _AuditFileHandler(self.path)
        except OSError as e:
            raise SetupError(f"Cannot open log file '{self.path}': {e}") from e

        formatter = AuditFormatter()
        self._file_handler.setFormatter(formatter)

        out_handler = logging.StreamHandler(stdout if stdout is not None else sys.stdout)
        out_handler.addFilter(_LevelRangeFilter(logging.INFO, logging.WARNING))
        out_handler.setFormatter(formatter)

        err_handler = logging.StreamHandler(stderr if stderr is not None else sys.stderr)
        err_handler.addFilter(_LevelRangeFilter(logging.WARNING, logging.CRITICAL + 1))
        err_handler.setFormatter(formatter)

        # Unregistered: private to this instance.
        self._logger = logging.Logger(f"{__name__}.{self.path.name}", logging.INFO)
        self._logger.propagate = False
        for handler in (self._file_handler, out_handler, err_handler):
            self._logger.addHandler(handler)

        logger.debug(f"Audit log opened: {self.path}")

    @classmethod
    def open(cls, path: Union[str, Path], **kwargs) -> "AuditLog":
        return cls(path, **kwargs)

    @property
    def write_failures(self) -> int:
        """Number of entries that could not be written to the file."""
        return self._file_handler.failures

    def record(self, message: str, level: LogLevel = LogLevel.INFO) -> bool:
        """
        Append one entry and mirror it to the console.

        Returns:
            True if the entry reached the log file, False if the write failed
        """
        before = self._file_handler.failures
        self._logger.log(level.value, message)
        return self._file_handler.failures == before

    def info(self, message: str) -> bool:
        return self.record(message, LogLevel.INFO)

    def success(self, message: str) -> bool:
        return self.record(message, LogLevel.SUCCESS)

    def warning(self, message: str) -> bool:
        return self.record(message, LogLevel.WARNING)

    def error(self, message: str) -> bool:
        return self.record(message, LogLevel.ERROR)

    def close(self) -> None:
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            if handler is self._file_handler:
                handler.close()
            else:
                handler.flush()

    def __enter__(self) -> "AuditLog":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def record(
    message: str,
    level: LogLevel,
    path: Union[str, Path],
) -> bool:
    """
    Append a single entry to the log at ``path``.

    Opens the file (creating parent directories), writes the entry, mirrors
    it to the console and closes the file again.

    Raises:
        SetupError: If the log file cannot be opened
    """
    with AuditLog.open(path) as audit:
        return audit.record(message, level)
