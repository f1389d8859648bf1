from __future__ import annotations

import asyncio

import pytest

from rostersync.adapters.retrying import RetryingSourceDirectory, RetryingTargetDirectory
from rostersync.common.retry import RetryPolicy
from rostersync.domain.errors import RemoteError
from rostersync.domain.ports import ProfileAssignment
from tests.helpers.directories import FakeSourceDirectory, FakeTargetDirectory, source, target
from tests.helpers.runtime import RecordingSleep

POLICY = RetryPolicy(max_retries=3, base_delay=1.0, max_delay=10.0)


def test_source_reads_are_retried() -> None:
    inner = FakeSourceDirectory([source("ann@example.com")])
    inner.failures.extend([RemoteError("timeout"), RemoteError("timeout")])
    sleep = RecordingSleep()

    records = asyncio.run(RetryingSourceDirectory(inner, policy=POLICY, sleep=sleep).fetch_all())

    assert [record.email for record in records] == ["ann@example.com"]
    assert inner.calls == 3
    assert sleep.delays == [1.0, 2.0]


def test_target_reads_give_up_after_max_retries() -> None:
    inner = FakeTargetDirectory()
    inner.failures["fetch_units"].extend(RemoteError("down") for _ in range(3))
    directory = RetryingTargetDirectory(inner, policy=POLICY, sleep=RecordingSleep())

    with pytest.raises(RemoteError) as exc:
        asyncio.run(directory.fetch_units())

    assert exc.value.attempts == 3
    assert exc.value.operation == "load units"


def test_target_writes_are_sent_once() -> None:
    inner = FakeTargetDirectory()
    inner.failures["create_account"].append(RemoteError("HTTP 500"))
    sleep = RecordingSleep()
    directory = RetryingTargetDirectory(inner, policy=POLICY, sleep=sleep)
    profile = ProfileAssignment(
        division_id="div-1",
        unit_id="unit-design",
        sub_unit_id="team-design-general",
        position_id="pos-default",
        category_id="cat-default",
        work_format="Office",
        employment_rate=1.0,
        salary=0.0,
        is_hourly=True,
    )

    with pytest.raises(RemoteError):
        asyncio.run(directory.create_account(source("ann@example.com"), profile))

    assert inner.calls_to("create_account") == ["ann@example.com"]
    assert sleep.delays == []


def test_reassign_unit_passes_through() -> None:
    orphan = target("gone@example.com", "Engineering")
    inner = FakeTargetDirectory(records=[orphan])
    directory = RetryingTargetDirectory(inner)

    asyncio.run(directory.reassign_unit(orphan.target_id, "unit-retired", "team-retired"))

    assert inner.records[orphan.target_id].unit_name == "Retired"
    assert inner.calls_to("reassign_unit") == [orphan.target_id]
