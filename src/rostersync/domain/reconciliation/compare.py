"""Keyed comparison of the roster against the target directory.

Both snapshots are indexed by lower-cased email, and every list in the
report is ordered by that key, so the report does not depend on the order
in which either directory returned its records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from rostersync.domain.model import Classification

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from rostersync.domain.model import SourceRecord, TargetRecord

log = getLogger(__name__)

type ResolveUnit = Callable[[SourceRecord], str | None]


@dataclass(frozen=True, slots=True)
class MissingRecord:
    """Roster entry with no identity in the target."""

    record: SourceRecord
    unit: str

    @property
    def key(self) -> str:
        return self.record.key


@dataclass(frozen=True, slots=True)
class UnitMismatch:
    """Identity present on both sides whose target unit differs from the roster."""

    record: SourceRecord
    target: TargetRecord
    expected_unit: str
    actual_unit: str | None

    @property
    def key(self) -> str:
        return self.record.key


@dataclass(slots=True)
class UnitReport:
    unit: str
    source_count: int = 0
    target_count: int = 0
    missing: list[MissingRecord] = field(default_factory=list["MissingRecord"])
    orphaned: list[TargetRecord] = field(default_factory=list["TargetRecord"])
    mismatched: list[UnitMismatch] = field(default_factory=list["UnitMismatch"])

    @property
    def has_issues(self) -> bool:
        return bool(self.missing or self.orphaned or self.mismatched)


@dataclass(slots=True)
class ComparisonReport:
    source_total: int = 0
    target_total: int = 0
    ignored: int = 0
    matched_keys: list[str] = field(default_factory=list[str])
    missing: list[MissingRecord] = field(default_factory=list["MissingRecord"])
    orphaned: list[TargetRecord] = field(default_factory=list["TargetRecord"])
    mismatched: list[UnitMismatch] = field(default_factory=list["UnitMismatch"])
    by_unit: dict[str, UnitReport] = field(default_factory=dict[str, "UnitReport"])

    @property
    def matched(self) -> int:
        """Identities present on both sides, mismatched or not."""

        return len(self.matched_keys)

    @property
    def unchanged(self) -> int:
        """Matched identities whose unit agrees with the roster."""

        return self.matched - len(self.mismatched)

    def classifications(self) -> dict[str, frozenset[Classification]]:
        """Every classified identity key with the states that hold for it.

        A unit mismatch is reported together with ``MATCHED``.
        """

        states: dict[str, set[Classification]] = {}
        for missing in self.missing:
            states.setdefault(missing.key, set()).add(Classification.MISSING_IN_TARGET)
        for orphan in self.orphaned:
            states.setdefault(orphan.key, set()).add(Classification.ORPHANED_IN_TARGET)
        for mismatch in self.mismatched:
            states.setdefault(mismatch.key, set()).add(Classification.UNIT_MISMATCH)
        for key in self.matched_keys:
            states.setdefault(key, set()).add(Classification.MATCHED)
        return {key: frozenset(value) for key, value in sorted(states.items())}


def _index[TRecord: (SourceRecord, TargetRecord)](
    records: Iterable[TRecord], *, side: str
) -> dict[str, TRecord]:
    index: dict[str, TRecord] = {}
    for record in records:
        key = record.key
        if not key:
            log.warning("Skipping %s record without email", side)
            continue
        if key in index:
            log.warning("Duplicate %s email %s; keeping the first occurrence", side, key)
            continue
        index[key] = record
    return dict(sorted(index.items()))


def compare_records(
    source: Iterable[SourceRecord],
    target: Iterable[TargetRecord],
    *,
    resolve_unit: ResolveUnit,
    units: Iterable[str],
) -> ComparisonReport:
    """Classify every identity of both snapshots.

    ``units`` are the unit names that get a per-unit report; target records
    in any other unit are outside the reconciliation and are not counted.
    Roster entries whose unit does not resolve are ignored entirely.
    """

    source_index = _index(source, side="source")
    target_index = _index(target, side="target")

    report = ComparisonReport(
        source_total=len(source_index),
        target_total=len(target_index),
        by_unit={unit: UnitReport(unit=unit) for unit in sorted(set(units))},
    )

    for key, record in source_index.items():
        expected = resolve_unit(record)
        if expected is None or expected not in report.by_unit:
            report.ignored += 1
            continue
        bucket = report.by_unit[expected]
        bucket.source_count += 1

        existing = target_index.get(key)
        if existing is None:
            missing = MissingRecord(record=record, unit=expected)
            report.missing.append(missing)
            bucket.missing.append(missing)
            continue

        report.matched_keys.append(key)
        if existing.unit_name != expected:
            mismatch = UnitMismatch(
                record=record,
                target=existing,
                expected_unit=expected,
                actual_unit=existing.unit_name,
            )
            report.mismatched.append(mismatch)
            bucket.mismatched.append(mismatch)

    for key, existing in target_index.items():
        if existing.unit_name is None or existing.unit_name not in report.by_unit:
            continue
        bucket = report.by_unit[existing.unit_name]
        bucket.target_count += 1
        if key not in source_index:
            report.orphaned.append(existing)
            bucket.orphaned.append(existing)

    log.info(
        "Compared %s roster and %s target records: matched=%s, missing=%s, orphaned=%s, "
        "mismatched=%s, ignored=%s",
        report.source_total,
        report.target_total,
        report.matched,
        len(report.missing),
        len(report.orphaned),
        len(report.mismatched),
        report.ignored,
    )
    return report
