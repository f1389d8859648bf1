"""Domain port definitions for adapters."""

from __future__ import annotations

from .directories import ProfileAssignment, SourceDirectory, TargetDirectory, TargetReader
from .notification import Notifier
from .progress import LedgerStore

__all__ = [
    "LedgerStore",
    "Notifier",
    "ProfileAssignment",
    "SourceDirectory",
    "TargetDirectory",
    "TargetReader",
]
