"""Port for persisting resumable progress between process runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rostersync.domain.model import Phase
    from rostersync.domain.progress import ProgressLedger


@runtime_checkable
class LedgerStore(Protocol):
    """Durable storage with one ledger per phase."""

    def load(self, phase: Phase) -> ProgressLedger | None: ...

    def save(self, ledger: ProgressLedger) -> None: ...

    def delete(self, phase: Phase) -> None: ...
