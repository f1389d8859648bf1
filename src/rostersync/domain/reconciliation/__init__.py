"""Reconciliation core: classify identities and plan the writes.

Flow:
1) resolve each roster entry to a unit (``units``)
2) compare both snapshots by identity key (``compare``)
3) derive creates and soft deletes, holding frozen records back (``plan``)
"""

from __future__ import annotations

from .compare import (
    ComparisonReport,
    MissingRecord,
    UnitMismatch,
    UnitReport,
    compare_records,
)
from .plan import ActionKind, ActionPlan, PlanItem, build_plan
from .units import UnitResolver

__all__ = [
    "ActionKind",
    "ActionPlan",
    "ComparisonReport",
    "MissingRecord",
    "PlanItem",
    "UnitMismatch",
    "UnitReport",
    "UnitResolver",
    "build_plan",
    "compare_records",
]
