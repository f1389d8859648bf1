"""Run coordinator: one reconciliation of the roster against the target.

Steps:
1) snapshot both directories and report the start
2) load and validate reference data
3) compare and build the plan
4) create phase, then log unit mismatches (never written), then soft-delete phase
5) count the target again and report the completion
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from rostersync.domain.execution import BatchExecutor
from rostersync.domain.model import ItemStatus, Phase, PhaseState, TargetCounts
from rostersync.domain.provisioning import IdentityProvisioner, SoftDeleter
from rostersync.domain.reconciliation import UnitResolver, build_plan, compare_records
from rostersync.domain.reference import load_reference_data
from rostersync.domain.run_log import RunLog

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from rostersync.common.retry import Sleep
    from rostersync.config import OrganizationConfig, SyncConfig
    from rostersync.domain.execution import PhaseResult
    from rostersync.domain.model import TargetRecord
    from rostersync.domain.ports import Notifier, SourceDirectory, TargetDirectory, TargetReader
    from rostersync.domain.progress import ProgressTracker
    from rostersync.domain.reconciliation import ComparisonReport, UnitReport
    from rostersync.domain.run_log import LogEntry

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _never_stop() -> bool:
    return False


@dataclass(frozen=True, slots=True)
class CreatedRow:
    email: str
    given_name: str
    family_name: str
    unit: str
    group: str | None
    title: str | None
    target_id: str | None = None


@dataclass(frozen=True, slots=True)
class SoftDeletedRow:
    email: str
    given_name: str
    family_name: str
    unit: str | None
    sub_unit: str | None
    position: str | None
    category: str | None


@dataclass(frozen=True, slots=True)
class MismatchRow:
    email: str
    name: str
    expected_unit: str
    actual_unit: str | None
    title: str | None


@dataclass(slots=True)
class SyncStatistics:
    """Everything a completion report needs. Always returned, even on failure."""

    started_at: datetime
    dry_run: bool
    finished_at: datetime | None = None
    source_count: int = 0
    counts_before: TargetCounts | None = None
    counts_after: TargetCounts | None = None
    matched: int = 0
    unchanged: int = 0
    ignored: int = 0
    created: int = 0
    soft_deleted: int = 0
    mismatches: int = 0
    errors: int = 0
    validation_errors: int = 0
    cancelled: bool = False
    fatal_error: str | None = None
    phases: dict[Phase, PhaseResult] = field(default_factory=dict[Phase, "PhaseResult"])
    by_unit: dict[str, UnitReport] = field(default_factory=dict[str, "UnitReport"])
    created_rows: list[CreatedRow] = field(default_factory=list["CreatedRow"])
    soft_deleted_rows: list[SoftDeletedRow] = field(default_factory=list["SoftDeletedRow"])
    mismatch_rows: list[MismatchRow] = field(default_factory=list["MismatchRow"])
    log_entries: tuple[LogEntry, ...] = ()

    @property
    def duration(self) -> timedelta:
        if self.finished_at is None:
            return timedelta(0)
        return self.finished_at - self.started_at

    @property
    def delta(self) -> TargetCounts | None:
        if self.counts_before is None or self.counts_after is None:
            return None
        return self.counts_before.delta(self.counts_after)

    @property
    def succeeded(self) -> bool:
        return self.fatal_error is None and self.errors == 0 and not self.cancelled


async def count_target(
    target: TargetReader, identities: list[TargetRecord] | None = None
) -> TargetCounts:
    """Row counts of the target; ``identities`` avoids refetching a known snapshot."""

    if identities is None:
        identities = await target.fetch_all()
    units = await target.fetch_units()
    sub_units = await target.fetch_sub_units()
    return TargetCounts(identities=len(identities), units=len(units), sub_units=len(sub_units))


async def sync_roster(  # noqa: PLR0913
    *,
    source: SourceDirectory,
    target: TargetDirectory,
    organization: OrganizationConfig,
    settings: SyncConfig,
    tracker: ProgressTracker,
    notifier: Notifier | None = None,
    sleep: Sleep = asyncio.sleep,
    should_stop: Callable[[], bool] = _never_stop,
    clock: Callable[[], datetime] = _utcnow,
) -> SyncStatistics:
    """Reconcile once and return the run statistics.

    Fatal errors (configuration, reference data, failed snapshot reads) are
    caught here, counted, reported through ``notifier`` and recorded in
    ``fatal_error``; they never escape.
    """

    statistics = SyncStatistics(started_at=clock(), dry_run=settings.dry_run)
    run_log = RunLog()
    mode = "DRY RUN (no changes are applied)" if settings.dry_run else "APPLY (changes are written)"

    with run_log.attached():
        log.info("Roster sync started: %s", mode)
        try:
            await _run(
                statistics,
                source=source,
                target=target,
                organization=organization,
                settings=settings,
                tracker=tracker,
                notifier=notifier,
                sleep=sleep,
                should_stop=should_stop,
            )
        except Exception as exc:  # noqa: BLE001
            statistics.errors += 1
            statistics.fatal_error = f"{type(exc).__name__}: {exc}"
            log.exception("Roster sync failed")
            if notifier is not None:
                await _notify(notifier.report_error(exc, "roster sync"), "error")
        statistics.finished_at = clock()
        log.info(
            "Roster sync finished in %.1fs: created=%s, soft_deleted=%s, mismatches=%s, "
            "unchanged=%s, errors=%s",
            statistics.duration.total_seconds(),
            statistics.created,
            statistics.soft_deleted,
            statistics.mismatches,
            statistics.unchanged,
            statistics.errors,
        )

    statistics.log_entries = run_log.entries
    if notifier is not None and statistics.fatal_error is None:
        await _notify(notifier.report_completed(statistics), "completion")
    return statistics


async def _run(  # noqa: PLR0913
    statistics: SyncStatistics,
    *,
    source: SourceDirectory,
    target: TargetDirectory,
    organization: OrganizationConfig,
    settings: SyncConfig,
    tracker: ProgressTracker,
    notifier: Notifier | None,
    sleep: Sleep,
    should_stop: Callable[[], bool],
) -> None:
    source_records = await source.fetch_all()
    target_records = await target.fetch_all()
    statistics.source_count = len(source_records)
    statistics.counts_before = await count_target(target, target_records)
    if notifier is not None:
        await _notify(
            notifier.report_started(statistics.source_count, statistics.counts_before), "start"
        )

    reference = await load_reference_data(target, organization)

    report = compare_records(
        source_records,
        target_records,
        resolve_unit=UnitResolver.from_config(organization),
        units=organization.reported_units,
    )
    _record_comparison(statistics, report)
    plan = build_plan(
        report, leave_unit=organization.leave_unit, retired_unit=organization.retired_unit
    )

    executor = BatchExecutor(settings, tracker, sleep=sleep, should_stop=should_stop)

    provisioner = IdentityProvisioner(target, reference, organization.defaults)
    created = await executor.run(Phase.CREATE, plan.creates, provisioner)
    _record_phase(statistics, created)

    _log_mismatches(statistics)

    if created.state is PhaseState.CANCELLED:
        statistics.cancelled = True
        log.warning("Skipping the soft-delete phase after cancellation")
    else:
        deleter = SoftDeleter(target, reference)
        deleted = await executor.run(Phase.SOFT_DELETE, plan.soft_deletes, deleter)
        _record_phase(statistics, deleted)
        statistics.cancelled = deleted.state is PhaseState.CANCELLED

    if settings.dry_run:
        statistics.counts_after = statistics.counts_before
    else:
        statistics.counts_after = await count_target(target)


def _record_comparison(statistics: SyncStatistics, report: ComparisonReport) -> None:
    statistics.matched = report.matched
    statistics.unchanged = report.unchanged
    statistics.ignored = report.ignored
    statistics.mismatches = len(report.mismatched)
    statistics.by_unit = report.by_unit
    statistics.mismatch_rows = [
        MismatchRow(
            email=mismatch.record.email,
            name=mismatch.record.full_name,
            expected_unit=mismatch.expected_unit,
            actual_unit=mismatch.actual_unit,
            title=mismatch.record.title,
        )
        for mismatch in report.mismatched
    ]


def _record_phase(statistics: SyncStatistics, result: PhaseResult) -> None:
    statistics.phases[result.phase] = result
    statistics.errors += result.errors
    statistics.validation_errors += result.validation_errors
    # Dry runs list every planned item, real runs only the applied ones.
    reportable = {ItemStatus.CREATED, ItemStatus.SOFT_DELETED, ItemStatus.DRY_RUN}
    for outcome in result.outcomes:
        if outcome.status not in reportable:
            continue
        item = outcome.item
        if result.phase is Phase.CREATE and item.source is not None:
            statistics.created_rows.append(
                CreatedRow(
                    email=item.source.email,
                    given_name=item.source.given_name,
                    family_name=item.source.family_name,
                    unit=item.unit or "",
                    group=item.source.group,
                    title=item.source.title,
                    target_id=outcome.target_id,
                )
            )
        elif result.phase is Phase.SOFT_DELETE and item.target is not None:
            statistics.soft_deleted_rows.append(
                SoftDeletedRow(
                    email=item.target.email,
                    given_name=item.target.given_name,
                    family_name=item.target.family_name,
                    unit=item.target.unit_name,
                    sub_unit=item.target.sub_unit_name,
                    position=item.target.position_name,
                    category=item.target.category_name,
                )
            )
    if result.phase is Phase.CREATE:
        statistics.created += result.succeeded
    else:
        statistics.soft_deleted += result.succeeded


def _log_mismatches(statistics: SyncStatistics) -> None:
    if not statistics.mismatch_rows:
        log.info("No unit mismatches found")
        return
    log.warning(
        "Found %s unit mismatches; they are reported only and never written",
        len(statistics.mismatch_rows),
    )
    for row in statistics.mismatch_rows:
        log.warning(
            "Unit mismatch: %s (%s) roster expects %r, target has %r; title %r",
            row.email,
            row.name,
            row.expected_unit,
            row.actual_unit,
            row.title,
        )


async def _notify(call: Awaitable[None], what: str) -> None:
    try:
        await call
    except Exception:  # noqa: BLE001
        log.warning("Notifier failed to deliver the %s report", what, exc_info=True)
