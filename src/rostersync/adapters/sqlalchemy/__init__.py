"""SQLAlchemy persistence for local run state."""

from __future__ import annotations

from .ledger import SqlAlchemyLedgerStore
from .tables import metadata, sync_progress_table

__all__ = ["SqlAlchemyLedgerStore", "metadata", "sync_progress_table"]
