from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from rostersync.config import OrganizationConfig, SyncConfig
from rostersync.domain.errors import RemoteError
from rostersync.domain.execution import BatchExecutor, ShutdownSignal
from rostersync.domain.model import ItemStatus, Phase, PhaseState
from rostersync.domain.progress import ProgressTracker
from rostersync.domain.provisioning import IdentityProvisioner
from rostersync.domain.reconciliation import ActionKind, PlanItem
from rostersync.domain.reference import load_reference_data
from tests.helpers.directories import FakeTargetDirectory, source
from tests.helpers.runtime import InMemoryLedgerStore, RecordingSleep


@pytest.fixture
def provisioner(
    target_directory: FakeTargetDirectory, organization: OrganizationConfig
) -> IdentityProvisioner:
    reference = asyncio.run(load_reference_data(target_directory, organization))
    return IdentityProvisioner(target_directory, reference, organization.defaults)


def _items(count: int, *, invalid: int | None = None) -> list[PlanItem]:
    items: list[PlanItem] = []
    for number in range(1, count + 1):
        email = f"user{number:02d}" if number == invalid else f"user{number:02d}@example.com"
        items.append(PlanItem(kind=ActionKind.CREATE, unit="Design", source=source(email)))
    return items


def _run(executor: BatchExecutor, items: list[PlanItem], action: IdentityProvisioner):  # noqa: ANN202
    return asyncio.run(executor.run(Phase.CREATE, items, action))


def test_validation_errors_do_not_halt_and_batches_are_paced(
    apply_settings: SyncConfig,
    tracker: ProgressTracker,
    ledger_store: InMemoryLedgerStore,
    recording_sleep: RecordingSleep,
    provisioner: IdentityProvisioner,
) -> None:
    executor = BatchExecutor(apply_settings, tracker, sleep=recording_sleep)

    result = _run(executor, _items(25, invalid=7), provisioner)

    assert result.state is PhaseState.COMPLETED
    assert result.succeeded == 24
    assert result.validation_errors == 1
    assert result.failed == 0
    assert recording_sleep.delays == [1.0, 1.0]
    assert ledger_store.load(Phase.CREATE) is None
    assert result.outcomes[6].status is ItemStatus.VALIDATION_ERROR


def test_failure_stops_the_phase_and_keeps_progress(
    apply_settings: SyncConfig,
    tracker: ProgressTracker,
    ledger_store: InMemoryLedgerStore,
    recording_sleep: RecordingSleep,
    provisioner: IdentityProvisioner,
    target_directory: FakeTargetDirectory,
) -> None:
    target_directory.fail_create_for["user03@example.com"] = RemoteError("HTTP 500")
    executor = BatchExecutor(apply_settings, tracker, sleep=recording_sleep)

    result = _run(executor, _items(5), provisioner)

    assert result.state is PhaseState.STOPPED_ON_ERROR
    assert result.halted
    assert result.succeeded == 2
    assert result.failed == 1
    saved = ledger_store.load(Phase.CREATE)
    assert saved is not None
    assert saved.processed == [
        "user01@example.com",
        "user02@example.com",
        "user03@example.com",
    ]
    assert saved.counters.errors == 1


def test_resume_skips_processed_items(
    apply_settings: SyncConfig,
    ledger_store: InMemoryLedgerStore,
    recording_sleep: RecordingSleep,
    provisioner: IdentityProvisioner,
    target_directory: FakeTargetDirectory,
) -> None:
    target_directory.fail_create_for["user03@example.com"] = RemoteError("HTTP 500")
    items = _items(5)
    _run(BatchExecutor(apply_settings, ProgressTracker(ledger_store)), items, provisioner)
    del target_directory.fail_create_for["user03@example.com"]

    result = _run(
        BatchExecutor(apply_settings, ProgressTracker(ledger_store), sleep=recording_sleep),
        items,
        provisioner,
    )

    assert result.state is PhaseState.COMPLETED
    assert result.resumed == 3
    assert result.succeeded == 2
    # the failed item is never retried
    assert target_directory.by_email("user03@example.com") is None
    assert target_directory.calls_to("create_account").count("user03@example.com") == 1
    assert ledger_store.load(Phase.CREATE) is None


def test_continue_on_error_processes_every_item(
    apply_settings: SyncConfig,
    tracker: ProgressTracker,
    ledger_store: InMemoryLedgerStore,
    provisioner: IdentityProvisioner,
    target_directory: FakeTargetDirectory,
) -> None:
    target_directory.fail_create_for["user03@example.com"] = RemoteError("HTTP 500")
    settings = replace(apply_settings, continue_on_error=True)

    result = _run(BatchExecutor(settings, tracker, sleep=RecordingSleep()), _items(5), provisioner)

    assert result.state is PhaseState.COMPLETED
    assert result.succeeded == 4
    assert result.failed == 1
    assert result.errors == 1
    assert ledger_store.load(Phase.CREATE) is None


def test_rollback_failure_is_recorded_as_failed_item(
    apply_settings: SyncConfig,
    tracker: ProgressTracker,
    provisioner: IdentityProvisioner,
    target_directory: FakeTargetDirectory,
) -> None:
    target_directory.failures["write_profile"].append(RemoteError("profile rejected"))
    target_directory.failures["delete_account"].append(RemoteError("admin api down"))

    result = _run(BatchExecutor(apply_settings, tracker), _items(3), provisioner)

    assert result.state is PhaseState.STOPPED_ON_ERROR
    assert result.outcomes[0].status is ItemStatus.ROLLBACK_FAILED
    assert result.outcomes[0].target_id == "new-1"


def test_shutdown_request_cancels_between_items(
    apply_settings: SyncConfig,
    tracker: ProgressTracker,
    ledger_store: InMemoryLedgerStore,
    provisioner: IdentityProvisioner,
    target_directory: FakeTargetDirectory,
) -> None:
    shutdown = ShutdownSignal()

    def should_stop() -> bool:
        if len(target_directory.calls_to("create_account")) >= 2:
            shutdown.request("test")
        return shutdown()

    executor = BatchExecutor(apply_settings, tracker, should_stop=should_stop)

    result = _run(executor, _items(5), provisioner)

    assert result.state is PhaseState.CANCELLED
    assert result.succeeded == 2
    assert shutdown.reason == "test"
    saved = ledger_store.load(Phase.CREATE)
    assert saved is not None
    assert len(saved.processed) == 2


def test_unexpected_error_fails_the_item_and_halts(
    apply_settings: SyncConfig,
    tracker: ProgressTracker,
    ledger_store: InMemoryLedgerStore,
    provisioner: IdentityProvisioner,
    target_directory: FakeTargetDirectory,
) -> None:
    target_directory.fail_create_for["user02@example.com"] = KeyError("bug")

    result = _run(BatchExecutor(apply_settings, tracker), _items(3), provisioner)

    assert result.state is PhaseState.STOPPED_ON_ERROR
    assert result.succeeded == 1
    assert result.failed == 1
    assert result.outcomes[1].status is ItemStatus.FAILED
    assert result.outcomes[1].error == "KeyError: 'bug'"
    saved = ledger_store.load(Phase.CREATE)
    assert saved is not None
    assert saved.processed == ["user01@example.com", "user02@example.com"]


def test_unexpected_error_with_continue_on_error_keeps_going(
    apply_settings: SyncConfig,
    tracker: ProgressTracker,
    provisioner: IdentityProvisioner,
    target_directory: FakeTargetDirectory,
) -> None:
    # a 2xx answer without a parsable body surfaces as a plain ValueError here
    target_directory.fail_create_for["user02@example.com"] = ValueError("Expecting value")
    settings = replace(apply_settings, continue_on_error=True)

    result = _run(BatchExecutor(settings, tracker), _items(3), provisioner)

    assert result.state is PhaseState.COMPLETED
    assert result.succeeded == 2
    assert result.failed == 1
    assert target_directory.by_email("user03@example.com") is not None


class _Interrupted(BaseException):
    pass


def test_interrupts_propagate_after_saving_progress(
    apply_settings: SyncConfig,
    tracker: ProgressTracker,
    ledger_store: InMemoryLedgerStore,
    provisioner: IdentityProvisioner,
    target_directory: FakeTargetDirectory,
) -> None:
    target_directory.fail_create_for["user02@example.com"] = _Interrupted()

    with pytest.raises(_Interrupted):
        _run(BatchExecutor(apply_settings, tracker), _items(3), provisioner)

    saved = ledger_store.load(Phase.CREATE)
    assert saved is not None
    assert saved.processed == ["user01@example.com"]



def test_dry_run_validates_without_writing(
    tracker: ProgressTracker,
    ledger_store: InMemoryLedgerStore,
    provisioner: IdentityProvisioner,
    target_directory: FakeTargetDirectory,
) -> None:
    executor = BatchExecutor(SyncConfig(dry_run=True), tracker)

    result = _run(executor, _items(3, invalid=2), provisioner)

    assert result.state is PhaseState.COMPLETED
    assert result.succeeded == 0
    assert [o.status for o in result.outcomes] == [ItemStatus.DRY_RUN] * 3
    assert result.outcomes[1].error is not None
    assert target_directory.calls_to("create_account") == []
    assert ledger_store.saves == 0


def test_empty_phase_completes_without_sleeping(
    apply_settings: SyncConfig,
    tracker: ProgressTracker,
    ledger_store: InMemoryLedgerStore,
    recording_sleep: RecordingSleep,
    provisioner: IdentityProvisioner,
) -> None:
    result = _run(BatchExecutor(apply_settings, tracker, sleep=recording_sleep), [], provisioner)

    assert result.state is PhaseState.COMPLETED
    assert recording_sleep.delays == []
    assert ledger_store.load(Phase.CREATE) is None
