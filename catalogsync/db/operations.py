"""
Database write and read operations.

Upserts for the replicated catalog and the sync run ledger rows.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Table, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from catalogsync.models.db import CardDB, CardSetDB, SyncRunDB
from catalogsync.parsers.catalog import CardRow, SetRow

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# --- Catalog Operations ---


async def _upsert(session: AsyncSession, table: Table, rows: Sequence[dict[str, Any]]) -> int:
    """
    Insert rows, fully overwriting any row whose id already exists.

    Duplicate ids within the batch collapse to the last occurrence, since a
    single statement may not touch the same row twice.
    """
    if not rows:
        return 0

    dialect = session.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        raise NotImplementedError(f"Upsert not supported for dialect '{dialect}'")

    by_id = {row["id"]: row for row in rows}
    values = list(by_id.values())

    stmt = insert(table).values(values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.id],
        set_={col.name: stmt.excluded[col.name] for col in table.columns if col.name != "id"},
    )
    await session.execute(stmt)
    return len(values)


async def upsert_sets(session: AsyncSession, rows: Sequence[SetRow]) -> int:
    """
    Upsert set rows keyed by id.

    Returns the number of rows written. An empty batch is a no-op.
    """
    return await _upsert(session, CardSetDB.__table__, rows)  # type: ignore[arg-type]


async def upsert_cards(session: AsyncSession, rows: Sequence[CardRow]) -> int:
    """
    Upsert card rows keyed by id.

    set_id is written as given; it is not checked against the sets table.
    """
    return await _upsert(session, CardDB.__table__, rows)  # type: ignore[arg-type]


async def get_card_set(session: AsyncSession, set_id: str) -> CardSetDB | None:
    """Get a set by upstream id."""
    return await session.get(CardSetDB, set_id)


async def get_card(session: AsyncSession, card_id: str) -> CardDB | None:
    """Get a card by upstream id."""
    return await session.get(CardDB, card_id)


# --- Sync Run Operations ---


async def create_sync_run(session: AsyncSession, job: str, started_at: datetime) -> SyncRunDB:
    """Insert an open run record."""
    run = SyncRunDB(job=job, started_at=started_at)
    session.add(run)
    await session.flush()
    return run


async def close_sync_run(
    session: AsyncSession,
    run_id: int,
    ok: bool,
    notes: dict[str, Any],
    finished_at: datetime | None = None,
) -> bool:
    """
    Close an open run record.

    Returns True if the record was closed, False if it does not exist or
    was already closed. A closed record is never changed again.
    """
    result = await session.execute(
        update(SyncRunDB)
        .where(SyncRunDB.id == run_id, SyncRunDB.finished_at.is_(None))
        .values(ok=ok, notes=notes, finished_at=finished_at or datetime.now(UTC))
    )
    # rowcount is available on UPDATE results; type stubs incomplete for async
    return int(result.rowcount) == 1  # type: ignore[attr-defined]


async def record_finished_run(
    session: AsyncSession,
    job: str,
    started_at: datetime,
    ok: bool,
    notes: dict[str, Any],
) -> SyncRunDB:
    """Insert a run record that is already closed."""
    run = SyncRunDB(
        job=job,
        started_at=started_at,
        finished_at=datetime.now(UTC),
        ok=ok,
        notes=notes,
    )
    session.add(run)
    await session.flush()
    return run


async def get_sync_run(session: AsyncSession, run_id: int) -> SyncRunDB | None:
    """Get a run record by id."""
    return await session.get(SyncRunDB, run_id)


async def get_latest_open_run(session: AsyncSession, job: str) -> SyncRunDB | None:
    """Most recently started run of a job that has not been closed yet."""
    result = await session.execute(
        select(SyncRunDB)
        .where(SyncRunDB.job == job, SyncRunDB.finished_at.is_(None))
        .order_by(SyncRunDB.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_sync_runs(session: AsyncSession, limit: int = 20) -> list[SyncRunDB]:
    """Most recent run records first."""
    result = await session.execute(
        select(SyncRunDB).order_by(SyncRunDB.id.desc()).limit(limit)
    )
    return list(result.scalars().all())
