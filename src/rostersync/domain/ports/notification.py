"""Port for reporting run progress to people."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rostersync.domain.model import TargetCounts
    from rostersync.domain.roster_sync import SyncStatistics


@runtime_checkable
class Notifier(Protocol):
    """Fire-and-forget reporting. Failures never abort a run."""

    async def report_started(self, source_count: int, target_counts: TargetCounts) -> None: ...

    async def report_completed(self, statistics: SyncStatistics) -> None: ...

    async def report_error(self, error: BaseException, context: str) -> None: ...
