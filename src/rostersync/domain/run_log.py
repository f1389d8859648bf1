"""Per-run capture of log records for the completion report."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

PACKAGE_LOGGER = "rostersync"


@dataclass(frozen=True, slots=True)
class LogEntry:
    timestamp: datetime
    level: str
    logger: str
    message: str


class RunLog(logging.Handler):
    """Collect records emitted while one sync run is attached.

    Only records at or above ``level`` are kept; ``limit`` bounds memory for
    very large runs by dropping the oldest entries.
    """

    def __init__(self, level: int = logging.INFO, *, limit: int = 5000) -> None:
        super().__init__(level)
        self._limit = limit
        self._entries: list[LogEntry] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except Exception:  # noqa: BLE001
            self.handleError(record)
            return
        self._entries.append(
            LogEntry(
                timestamp=datetime.fromtimestamp(record.created, UTC),
                level=record.levelname,
                logger=record.name,
                message=message,
            )
        )
        if len(self._entries) > self._limit:
            del self._entries[: len(self._entries) - self._limit]

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        return tuple(self._entries)

    def at_least(self, level: int) -> tuple[LogEntry, ...]:
        return tuple(
            entry for entry in self._entries if logging.getLevelNamesMapping()[entry.level] >= level
        )

    @contextmanager
    def attached(self, logger_name: str = PACKAGE_LOGGER) -> Iterator[RunLog]:
        """Capture ``logger_name`` and its children, lowering its level to ours if needed."""
        logger = logging.getLogger(logger_name)
        previous_level = logger.level
        if logger.getEffectiveLevel() > self.level:
            logger.setLevel(self.level)
        logger.addHandler(self)
        try:
            yield self
        finally:
            logger.removeHandler(self)
            logger.setLevel(previous_level)
