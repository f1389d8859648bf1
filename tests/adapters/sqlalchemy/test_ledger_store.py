from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import inspect

from rostersync.adapters.sqlalchemy import SqlAlchemyLedgerStore
from rostersync.domain.model import Phase
from rostersync.domain.progress import ProgressCounters, ProgressLedger, ProgressTracker

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

STARTED = datetime(2024, 5, 1, 9, 0, tzinfo=UTC)


def _ledger(phase: Phase = Phase.CREATE, *keys: str) -> ProgressLedger:
    return ProgressLedger(
        phase=phase,
        started_at=STARTED,
        updated_at=STARTED + timedelta(minutes=5),
        processed=list(keys),
        counters=ProgressCounters(created=len(keys), errors=1),
    )


def test_create_builds_the_progress_table(sqlite_engine: Engine) -> None:
    SqlAlchemyLedgerStore.create(engine=sqlite_engine)

    assert "sync_progress" in inspect(sqlite_engine).get_table_names()


def test_create_requires_engine_or_uri() -> None:
    with pytest.raises(ValueError, match="engine or a database URI"):
        SqlAlchemyLedgerStore.create()


def test_save_and_load_round_trip(sqlite_ledger_store: SqlAlchemyLedgerStore) -> None:
    sqlite_ledger_store.save(_ledger(Phase.CREATE, "a@example.com", "b@example.com"))

    loaded = sqlite_ledger_store.load(Phase.CREATE)

    assert loaded is not None
    assert loaded.processed == ["a@example.com", "b@example.com"]
    assert loaded.counters == ProgressCounters(created=2, errors=1)
    assert loaded.started_at == STARTED
    assert loaded.started_at.tzinfo is not None
    assert sqlite_ledger_store.load(Phase.SOFT_DELETE) is None


def test_save_replaces_previous_ledger_of_phase(
    sqlite_ledger_store: SqlAlchemyLedgerStore,
) -> None:
    sqlite_ledger_store.save(_ledger(Phase.CREATE, "a@example.com"))
    sqlite_ledger_store.save(_ledger(Phase.CREATE, "a@example.com", "c@example.com"))
    sqlite_ledger_store.save(_ledger(Phase.SOFT_DELETE, "z@example.com"))

    ledgers = sqlite_ledger_store.load_all()

    assert {ledger.phase for ledger in ledgers} == {Phase.CREATE, Phase.SOFT_DELETE}
    create = sqlite_ledger_store.load(Phase.CREATE)
    assert create is not None
    assert create.processed == ["a@example.com", "c@example.com"]


def test_delete_removes_only_that_phase(sqlite_ledger_store: SqlAlchemyLedgerStore) -> None:
    sqlite_ledger_store.save(_ledger(Phase.CREATE))
    sqlite_ledger_store.save(_ledger(Phase.SOFT_DELETE))

    sqlite_ledger_store.delete(Phase.CREATE)

    assert sqlite_ledger_store.load(Phase.CREATE) is None
    assert sqlite_ledger_store.load(Phase.SOFT_DELETE) is not None


def test_progress_survives_a_new_process(tmp_path: Path) -> None:
    uri = f"sqlite+pysqlite:///{tmp_path / 'progress.db'}"
    first = SqlAlchemyLedgerStore.create(database_uri=uri)
    tracker = ProgressTracker(first)
    tracker.init(Phase.SOFT_DELETE)
    tracker.add_processed("gone@example.com", success=True)
    tracker.save()
    first.dispose()

    second = SqlAlchemyLedgerStore.create(database_uri=uri)
    try:
        resumed = ProgressTracker(second)
        assert resumed.load(Phase.SOFT_DELETE)
        assert resumed.is_processed("gone@example.com")
        assert resumed.stats() == ProgressCounters(deleted=1)
    finally:
        second.dispose()
