"""Action plan derived from a comparison report.

The plan only ever creates or soft-deletes. Unit mismatches stay in the
report for a human to review and never become plan items.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rostersync.domain.model import SourceRecord, TargetRecord

    from .compare import ComparisonReport, MissingRecord

log = getLogger(__name__)


class ActionKind(StrEnum):
    CREATE = "create"
    SOFT_DELETE = "soft_delete"


@dataclass(frozen=True, slots=True, kw_only=True)
class PlanItem:
    """One write against the target.

    Create items reference the roster entry, soft-delete items the target
    identity. ``unit`` is the unit the roster expects for a create and the
    unit being vacated for a soft delete.
    """

    kind: ActionKind
    unit: str | None
    source: SourceRecord | None = None
    target: TargetRecord | None = None

    def __post_init__(self) -> None:
        if self.kind is ActionKind.CREATE and self.source is None:
            raise ValueError("Create items need a source record")
        if self.kind is ActionKind.SOFT_DELETE and self.target is None:
            raise ValueError("Soft-delete items need a target record")

    @property
    def record(self) -> SourceRecord | TargetRecord:
        record = self.source if self.kind is ActionKind.CREATE else self.target
        if record is None:
            raise ValueError(f"{self.kind} item has no record")
        return record

    @property
    def key(self) -> str:
        return self.record.key

    @property
    def email(self) -> str:
        return self.record.email

    def describe(self) -> str:
        if self.kind is ActionKind.CREATE:
            return f"create {self.email} -> {self.unit}"
        return f"soft-delete {self.email} (from {self.unit})"


@dataclass(slots=True)
class ActionPlan:
    creates: list[PlanItem] = field(default_factory=list["PlanItem"])
    soft_deletes: list[PlanItem] = field(default_factory=list["PlanItem"])
    held_missing: list[MissingRecord] = field(default_factory=list["MissingRecord"])
    held_orphaned: list[TargetRecord] = field(default_factory=list["TargetRecord"])

    @property
    def is_empty(self) -> bool:
        return not (self.creates or self.soft_deletes)


def build_plan(report: ComparisonReport, *, leave_unit: str, retired_unit: str) -> ActionPlan:
    """Turn missing identities into creates and orphans into soft deletes.

    Records of ``leave_unit`` are administratively frozen: they are kept in
    ``held_missing``/``held_orphaned`` for reporting and never acted on. No
    create may target ``retired_unit``.
    """

    plan = ActionPlan()

    for missing in report.missing:
        if missing.unit == leave_unit:
            plan.held_missing.append(missing)
            continue
        if missing.unit == retired_unit:
            log.warning("Refusing to create %s in the retired unit", missing.record.email)
            plan.held_missing.append(missing)
            continue
        plan.creates.append(
            PlanItem(kind=ActionKind.CREATE, unit=missing.unit, source=missing.record)
        )

    for orphan in report.orphaned:
        if orphan.unit_name == leave_unit:
            plan.held_orphaned.append(orphan)
            continue
        plan.soft_deletes.append(
            PlanItem(kind=ActionKind.SOFT_DELETE, unit=orphan.unit_name, target=orphan)
        )

    if plan.held_missing or plan.held_orphaned:
        log.info(
            "Holding %s missing and %s orphaned records of %r (report only)",
            len(plan.held_missing),
            len(plan.held_orphaned),
            leave_unit,
        )
    log.info(
        "Planned %s creates and %s soft deletes; %s unit mismatches are report-only",
        len(plan.creates),
        len(plan.soft_deletes),
        len(report.mismatched),
    )
    return plan
