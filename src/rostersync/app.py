"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from rostersync.adapters.notifier import LoggingNotifier
from rostersync.adapters.retrying import RetryingSourceDirectory, RetryingTargetDirectory
from rostersync.adapters.sqlalchemy import SqlAlchemyLedgerStore
from rostersync.adapters.supabase import SupabaseDirectory
from rostersync.adapters.worksection import WorksectionDirectory
from rostersync.config import (
    get_ledger_storage_config,
    get_organization_config,
    get_supabase_config,
    get_sync_config,
    get_worksection_config,
)
from rostersync.domain.model import Phase
from rostersync.domain.progress import ProgressTracker
from rostersync.domain.reconciliation import UnitResolver, compare_records
from rostersync.domain.roster_sync import sync_roster

if TYPE_CHECKING:
    from collections.abc import Callable

    from rostersync.common.retry import RetryPolicy
    from rostersync.config import OrganizationConfig, SyncConfig
    from rostersync.domain.ports import Notifier, SourceDirectory, TargetDirectory
    from rostersync.domain.progress import ProgressLedger
    from rostersync.domain.reconciliation import ComparisonReport
    from rostersync.domain.roster_sync import SyncStatistics

log = getLogger(__name__)


def _never_stop() -> bool:
    return False


def build_source(policy: RetryPolicy) -> SourceDirectory:
    roster = WorksectionDirectory(config=get_worksection_config())
    return RetryingSourceDirectory(roster, policy=policy)


def build_target(policy: RetryPolicy) -> TargetDirectory:
    store = SupabaseDirectory(config=get_supabase_config())
    return RetryingTargetDirectory(store, policy=policy)


def build_ledger_store() -> SqlAlchemyLedgerStore:
    return SqlAlchemyLedgerStore.create(database_uri=get_ledger_storage_config().database_uri())


async def _close_built(
    given_source: SourceDirectory | None,
    source: SourceDirectory,
    given_target: TargetDirectory | None,
    target: TargetDirectory,
) -> None:
    """Close the directories this module built; callers own the ones they pass in."""
    if given_source is None:
        await source.aclose()
    if given_target is None:
        await target.aclose()


def run_roster_sync(  # noqa: PLR0913
    *,
    settings: SyncConfig | None = None,
    organization: OrganizationConfig | None = None,
    source: SourceDirectory | None = None,
    target: TargetDirectory | None = None,
    store: SqlAlchemyLedgerStore | None = None,
    notifier: Notifier | None = None,
    should_stop: Callable[[], bool] = _never_stop,
) -> SyncStatistics:
    """Reconcile the roster into the target using the configured adapters."""

    effective_settings = settings or get_sync_config()
    effective_organization = organization or get_organization_config()
    effective_source = source or build_source(effective_settings.retry)
    effective_target = target or build_target(effective_settings.retry)
    effective_store = store or build_ledger_store()

    log.info(
        "Starting roster sync: dry_run=%s, batch_size=%s, batch_delay=%ss, continue_on_error=%s",
        effective_settings.dry_run,
        effective_settings.batch_size,
        effective_settings.batch_delay_seconds,
        effective_settings.continue_on_error,
    )

    async def _sync() -> SyncStatistics:
        try:
            return await sync_roster(
                source=effective_source,
                target=effective_target,
                organization=effective_organization,
                settings=effective_settings,
                tracker=ProgressTracker(effective_store),
                notifier=notifier or LoggingNotifier(),
                should_stop=should_stop,
            )
        finally:
            await _close_built(source, effective_source, target, effective_target)

    try:
        return asyncio.run(_sync())
    finally:
        if store is None:
            effective_store.dispose()


def compare_roster(
    *,
    settings: SyncConfig | None = None,
    organization: OrganizationConfig | None = None,
    source: SourceDirectory | None = None,
    target: TargetDirectory | None = None,
) -> ComparisonReport:
    """Classify both directories without touching reference data or the ledger."""

    effective_settings = settings or get_sync_config()
    effective_organization = organization or get_organization_config()
    effective_source = source or build_source(effective_settings.retry)
    effective_target = target or build_target(effective_settings.retry)

    async def _compare() -> ComparisonReport:
        try:
            source_records = await effective_source.fetch_all()
            target_records = await effective_target.fetch_all()
        finally:
            await _close_built(source, effective_source, target, effective_target)
        return compare_records(
            source_records,
            target_records,
            resolve_unit=UnitResolver.from_config(effective_organization),
            units=effective_organization.reported_units,
        )

    return asyncio.run(_compare())


def list_progress(*, store: SqlAlchemyLedgerStore | None = None) -> list[ProgressLedger]:
    effective_store = store or build_ledger_store()
    try:
        return effective_store.load_all()
    finally:
        if store is None:
            effective_store.dispose()


def clear_progress(
    *, phase: Phase | None = None, store: SqlAlchemyLedgerStore | None = None
) -> list[Phase]:
    """Drop saved ledgers so that the next run starts from scratch."""

    effective_store = store or build_ledger_store()
    phases = [phase] if phase is not None else list(Phase)
    cleared: list[Phase] = []
    try:
        for current in phases:
            if effective_store.load(current) is None:
                continue
            effective_store.delete(current)
            cleared.append(current)
            log.info("Cleared saved %s progress", current)
    finally:
        if store is None:
            effective_store.dispose()
    return cleared
