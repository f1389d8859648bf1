from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from rostersync.adapters.sqlalchemy import SqlAlchemyLedgerStore
from rostersync.config import OrganizationConfig, SyncConfig
from rostersync.domain.progress import ProgressTracker
from tests.helpers.directories import FakeSourceDirectory, FakeTargetDirectory, make_organization
from tests.helpers.runtime import InMemoryLedgerStore, RecordingNotifier, RecordingSleep

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "ROSTERSYNC_DRY_RUN",
        "ROSTERSYNC_BATCH_SIZE",
        "ROSTERSYNC_BATCH_DELAY",
        "ROSTERSYNC_CONTINUE_ON_ERROR",
        "ROSTERSYNC_MAX_RETRIES",
        "ROSTERSYNC_RETRY_BASE_DELAY",
        "ROSTERSYNC_RETRY_MAX_DELAY",
        "ROSTERSYNC_DEBUG",
        "ROSTERSYNC_DATA_DIR",
        "DATABASE_URI",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def organization() -> OrganizationConfig:
    return make_organization()


@pytest.fixture
def source_directory() -> FakeSourceDirectory:
    return FakeSourceDirectory()


@pytest.fixture
def target_directory(organization: OrganizationConfig) -> FakeTargetDirectory:
    return FakeTargetDirectory(organization)


@pytest.fixture
def ledger_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def tracker(ledger_store: InMemoryLedgerStore) -> ProgressTracker:
    return ProgressTracker(ledger_store)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def apply_settings() -> SyncConfig:
    return SyncConfig(dry_run=False, batch_size=10, batch_delay_seconds=1.0)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_ledger_store(sqlite_engine: Engine) -> SqlAlchemyLedgerStore:
    return SqlAlchemyLedgerStore.create(engine=sqlite_engine)
