"""SQLAlchemy Core metadata for local run state."""

from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, Enum, Integer, MetaData, Table

from rostersync.domain.model import Phase

metadata = MetaData()

sync_progress_table = Table(
    "sync_progress",
    metadata,
    Column("phase", Enum(Phase, native_enum=False, length=32), primary_key=True),
    Column("started_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Column("processed", JSON, nullable=False, default=list),
    Column("created", Integer, nullable=False, default=0),
    Column("deleted", Integer, nullable=False, default=0),
    Column("errors", Integer, nullable=False, default=0),
)
