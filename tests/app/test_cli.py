from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from rostersync.domain.model import Phase
from rostersync.domain.reconciliation import ComparisonReport, MissingRecord, UnitReport
from rostersync.domain.roster_sync import SyncStatistics
from rostersync.ui import cli as cli_module
from tests.helpers.directories import source

if TYPE_CHECKING:
    from collections.abc import Callable

    from rostersync.config import SyncConfig


def _statistics(**overrides: object) -> SyncStatistics:
    statistics = SyncStatistics(started_at=datetime(2024, 5, 1, tzinfo=UTC), dry_run=True)
    for name, value in overrides.items():
        setattr(statistics, name, value)
    return statistics


def _fake_sync(
    captured: dict[str, object], statistics: SyncStatistics
) -> Callable[..., SyncStatistics]:
    def fake_sync(**kwargs: object) -> SyncStatistics:
        captured.update(kwargs)
        return statistics

    return fake_sync


def _exit_code(argv: list[str]) -> int | str | None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(argv)
    return excinfo.value.code


def test_sync_defaults_to_configured_dry_run(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}
    monkeypatch.setattr(cli_module, "run_roster_sync", _fake_sync(captured, _statistics()))

    assert _exit_code(["sync"]) == 0

    settings: SyncConfig = captured["settings"]  # type: ignore[assignment]
    assert settings.dry_run is True
    assert callable(captured["should_stop"])


def test_sync_flags_override_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}
    monkeypatch.setattr(cli_module, "run_roster_sync", _fake_sync(captured, _statistics()))

    code = _exit_code(
        ["sync", "--apply", "--batch-size", "5", "--batch-delay", "0.25", "--continue-on-error"]
    )

    settings: SyncConfig = captured["settings"]  # type: ignore[assignment]
    assert code == 0
    assert settings.dry_run is False
    assert settings.batch_size == 5
    assert settings.batch_delay_seconds == 0.25
    assert settings.continue_on_error is True


def test_apply_and_dry_run_are_mutually_exclusive() -> None:
    assert _exit_code(["sync", "--apply", "--dry-run"]) == 2


@pytest.mark.parametrize(
    "overrides",
    [
        {"fatal_error": "ReferenceDataError: missing reference data"},
        {"cancelled": True},
        {"errors": 2},
    ],
)
def test_unsuccessful_runs_exit_with_one(
    monkeypatch: pytest.MonkeyPatch, overrides: dict[str, object]
) -> None:
    monkeypatch.setattr(cli_module, "run_roster_sync", _fake_sync({}, _statistics(**overrides)))

    assert _exit_code(["sync"]) == 1


def test_invalid_settings_exit_with_two(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "run_roster_sync", _fake_sync({}, _statistics()))

    assert _exit_code(["sync", "--batch-size", "0"]) == 2


def test_unexpected_errors_exit_with_one(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_sync(**_: object) -> SyncStatistics:
        raise RuntimeError("database is locked")

    monkeypatch.setattr(cli_module, "run_roster_sync", broken_sync)

    assert _exit_code(["sync"]) == 1


def test_compare_logs_report(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    missing = MissingRecord(record=source("cid@example.com", given_name="Cid"), unit="Design")
    report = ComparisonReport(
        source_total=1,
        missing=[missing],
        by_unit={"Design": UnitReport(unit="Design", source_count=1, missing=[missing])},
    )
    monkeypatch.setattr(cli_module, "compare_roster", lambda: report)
    caplog.set_level(logging.INFO, logger="rostersync")

    assert _exit_code(["compare"]) == 0

    assert "roster=1 target=0 matched=0" in caplog.text
    assert "+ cid@example.com (Cid Example)" in caplog.text


def test_progress_clear_passes_phase(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_clear(**kwargs: object) -> list[Phase]:
        captured.update(kwargs)
        return [Phase.CREATE]

    monkeypatch.setattr(cli_module, "clear_progress", fake_clear)

    assert _exit_code(["progress", "clear", "--phase", "create"]) == 0
    assert captured == {"phase": Phase.CREATE}


def test_progress_show_lists_ledgers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "list_progress", list)

    assert _exit_code(["progress", "show"]) == 0
