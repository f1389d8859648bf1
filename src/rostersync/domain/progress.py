"""Resumable progress of a mutating phase.

A ledger records every identity key a phase has already processed, whether
the write succeeded or not, so that a restarted process never touches the
same identity twice. Ledgers are persisted through a
:class:`~rostersync.domain.ports.LedgerStore`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from rostersync.domain.model import Phase

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from rostersync.domain.ports import LedgerStore

log = getLogger(__name__)

SAVE_EVERY = 10


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Keyed(Protocol):
    @property
    def key(self) -> str: ...


@dataclass(frozen=True, slots=True)
class ProgressCounters:
    created: int = 0
    deleted: int = 0
    errors: int = 0


@dataclass(slots=True)
class ProgressLedger:
    phase: Phase
    started_at: datetime
    updated_at: datetime
    processed: list[str] = field(default_factory=list[str])
    counters: ProgressCounters = field(default_factory=ProgressCounters)

    def record(self, key: str, *, success: bool) -> None:
        self.processed.append(key)
        if not success:
            self.counters = replace(self.counters, errors=self.counters.errors + 1)
        elif self.phase is Phase.CREATE:
            self.counters = replace(self.counters, created=self.counters.created + 1)
        else:
            self.counters = replace(self.counters, deleted=self.counters.deleted + 1)


class ProgressTracker:
    """In-memory view of the current phase ledger backed by a store."""

    def __init__(
        self,
        store: LedgerStore,
        *,
        save_every: int = SAVE_EVERY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._save_every = save_every
        self._clock = clock
        self._ledger: ProgressLedger | None = None
        self._seen: set[str] = set()

    @property
    def ledger(self) -> ProgressLedger | None:
        return self._ledger

    @property
    def processed_count(self) -> int:
        return len(self._ledger.processed) if self._ledger else 0

    def init(self, phase: Phase) -> None:
        now = self._clock()
        self._ledger = ProgressLedger(phase=phase, started_at=now, updated_at=now)
        self._seen = set()
        self._store.save(self._ledger)
        log.debug("Initialised progress ledger for %s", phase)

    def load(self, phase: Phase) -> bool:
        """Restore the persisted ledger of ``phase``; return whether one existed."""

        ledger = self._store.load(phase)
        if ledger is None:
            return False
        self._ledger = ledger
        self._seen = set(ledger.processed)
        log.info("Found saved %s progress (%s records processed)", phase, len(ledger.processed))
        return True

    def is_processed(self, key: str) -> bool:
        return key in self._seen

    def filter_unprocessed[TItem: Keyed](self, items: Iterable[TItem]) -> list[TItem]:
        return [item for item in items if item.key not in self._seen]

    def add_processed(self, key: str, *, success: bool) -> None:
        ledger = self._require_ledger()
        ledger.record(key, success=success)
        self._seen.add(key)
        if len(ledger.processed) % self._save_every == 0:
            self.save()

    def save(self) -> None:
        ledger = self._require_ledger()
        ledger.updated_at = self._clock()
        self._store.save(ledger)

    def clear(self) -> None:
        if self._ledger is not None:
            self._store.delete(self._ledger.phase)
            log.debug("Cleared %s progress", self._ledger.phase)
        self._ledger = None
        self._seen = set()

    def stats(self) -> ProgressCounters:
        return self._ledger.counters if self._ledger else ProgressCounters()

    def _require_ledger(self) -> ProgressLedger:
        if self._ledger is None:
            raise RuntimeError("Progress tracker has no active phase; call init() or load()")
        return self._ledger
