"""Progress ledgers persisted in the local SQLite database."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, delete, insert, select
from sqlalchemy.orm import Session, sessionmaker

from rostersync.domain.progress import ProgressCounters, ProgressLedger

from .tables import metadata, sync_progress_table

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from rostersync.domain.model import Phase
    from rostersync.domain.ports import LedgerStore

log = getLogger(__name__)


def _aware(value: datetime) -> datetime:
    # SQLite drops the offset; everything is stored in UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _to_row(ledger: ProgressLedger) -> dict[str, Any]:
    return {
        "phase": ledger.phase,
        "started_at": ledger.started_at,
        "updated_at": ledger.updated_at,
        "processed": list(ledger.processed),
        "created": ledger.counters.created,
        "deleted": ledger.counters.deleted,
        "errors": ledger.counters.errors,
    }


def _from_row(row: Any) -> ProgressLedger:
    return ProgressLedger(
        phase=row.phase,
        started_at=_aware(row.started_at),
        updated_at=_aware(row.updated_at),
        processed=[str(key) for key in row.processed or []],
        counters=ProgressCounters(created=row.created, deleted=row.deleted, errors=row.errors),
    )


class SqlAlchemyLedgerStore:
    """One ``sync_progress`` row per phase. Absence means nothing to resume."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=engine, expire_on_commit=False
        )

    @classmethod
    def create(
        cls, *, database_uri: str | None = None, engine: Engine | None = None
    ) -> SqlAlchemyLedgerStore:
        """Build a store and make sure its table exists."""

        if engine is None:
            if database_uri is None:
                raise ValueError("Pass either an engine or a database URI")
            engine = create_engine(database_uri)
        metadata.create_all(engine, checkfirst=True)
        return cls(engine)

    def load(self, phase: Phase) -> ProgressLedger | None:
        stmt = select(sync_progress_table).where(sync_progress_table.c.phase == phase)
        with self._session_factory() as session:
            row = session.execute(stmt).one_or_none()
        return _from_row(row) if row is not None else None

    def load_all(self) -> list[ProgressLedger]:
        stmt = select(sync_progress_table).order_by(sync_progress_table.c.started_at)
        with self._session_factory() as session:
            return [_from_row(row) for row in session.execute(stmt)]

    def save(self, ledger: ProgressLedger) -> None:
        with self._session_factory() as session, session.begin():
            session.execute(
                delete(sync_progress_table).where(sync_progress_table.c.phase == ledger.phase)
            )
            session.execute(insert(sync_progress_table).values(**_to_row(ledger)))
        log.debug("Saved %s progress (%s processed)", ledger.phase, len(ledger.processed))

    def delete(self, phase: Phase) -> None:
        with self._session_factory() as session, session.begin():
            session.execute(
                delete(sync_progress_table).where(sync_progress_table.c.phase == phase)
            )

    def dispose(self) -> None:
        self.engine.dispose()


if TYPE_CHECKING:
    _store_check: type[LedgerStore] = SqlAlchemyLedgerStore
