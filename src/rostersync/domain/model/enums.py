"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Classification(StrEnum):
    """Outcome of comparing one identity across the roster and the target."""

    MATCHED = "matched"
    MISSING_IN_TARGET = "missing_in_target"
    ORPHANED_IN_TARGET = "orphaned_in_target"
    UNIT_MISMATCH = "unit_mismatch"


class Phase(StrEnum):
    """Mutating phases of a sync run, in execution order."""

    CREATE = "create"
    SOFT_DELETE = "soft_delete"


class PhaseState(StrEnum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    STOPPED_ON_ERROR = "stopped_on_error"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class ItemStatus(StrEnum):
    """Terminal status of one applied plan item."""

    CREATED = "created"
    SOFT_DELETED = "soft_deleted"
    VALIDATION_ERROR = "validation_error"
    FAILED = "failed"
    ROLLBACK_FAILED = "rollback_failed"
    DRY_RUN = "dry_run"
