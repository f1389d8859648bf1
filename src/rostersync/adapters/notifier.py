"""Notifier that writes run reports to the log."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rostersync.domain.model import TargetCounts
    from rostersync.domain.ports import Notifier
    from rostersync.domain.roster_sync import SyncStatistics

log = getLogger(__name__)


def _counts(counts: TargetCounts | None) -> str:
    if counts is None:
        return "n/a"
    return (
        f"identities={counts.identities}, units={counts.units}, "
        f"sub_units={counts.sub_units}, total={counts.total}"
    )


class LoggingNotifier:
    """Default notifier when no chat or e-mail channel is wired in."""

    async def report_started(self, source_count: int, target_counts: TargetCounts) -> None:
        log.info(
            "Sync started: %s roster records; target %s", source_count, _counts(target_counts)
        )

    async def report_completed(self, statistics: SyncStatistics) -> None:
        mode = "dry run" if statistics.dry_run else "applied"
        log.info(
            "Sync completed (%s) in %.1fs: created=%s, soft_deleted=%s, mismatches=%s, "
            "unchanged=%s, errors=%s",
            mode,
            statistics.duration.total_seconds(),
            statistics.created,
            statistics.soft_deleted,
            statistics.mismatches,
            statistics.unchanged,
            statistics.errors,
        )
        log.info("Target before: %s", _counts(statistics.counts_before))
        log.info("Target after: %s", _counts(statistics.counts_after))
        log.info("Delta: %s", _counts(statistics.delta))
        for unit, report in statistics.by_unit.items():
            if report.has_issues:
                log.info(
                    "  %s: roster=%s target=%s missing=%s orphaned=%s mismatched=%s",
                    unit,
                    report.source_count,
                    report.target_count,
                    len(report.missing),
                    len(report.orphaned),
                    len(report.mismatched),
                )

    async def report_error(self, error: BaseException, context: str) -> None:
        log.error("Sync error during %s: %s: %s", context, type(error).__name__, error)


if TYPE_CHECKING:
    _notifier_check: type[Notifier] = LoggingNotifier
