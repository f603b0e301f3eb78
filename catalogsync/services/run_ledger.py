"""
Sync run ledger.

Records one row per logical sync run in sync_runs. The ledger is an
observability side channel: a failed ledger write is logged and ignored,
and never changes the outcome of the run it describes.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalogsync.db.operations import (
    close_sync_run,
    create_sync_run,
    get_latest_open_run,
    get_sync_run,
    record_finished_run,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunHandle:
    """An open run. run_id is None when the opening write failed."""

    job: str
    run_id: int | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class RunLedger:
    """
    Writes run records, each in its own short transaction.

    Separate transactions keep a rolled-back sync step from taking its own
    failure record down with it.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def begin(self, job: str) -> RunHandle:
        """Open a run record; captures the start time."""
        started_at = datetime.now(UTC)
        try:
            async with self._session_factory() as session, session.begin():
                run = await create_sync_run(session, job, started_at)
                run_id = run.id
        except (SQLAlchemyError, OSError):
            logger.exception("Could not open ledger record for %s", job)
            return RunHandle(job=job, started_at=started_at)

        logger.info("Opened sync run %d (%s)", run_id, job)
        return RunHandle(job=job, run_id=run_id, started_at=started_at)

    async def resume(self, job: str, run_id: int) -> RunHandle:
        """
        Handle for a run opened by an earlier call.

        A run that is already closed (a retry after a failed step) or unknown
        is not reopened; a fresh run is opened instead.
        """
        try:
            async with self._session_factory() as session:
                run = await get_sync_run(session, run_id)
                is_open = run is not None and run.finished_at is None
                started_at = run.started_at if is_open else None
        except (SQLAlchemyError, OSError):
            logger.exception("Could not look up sync run %d", run_id)
            return RunHandle(job=job, run_id=run_id)

        if not is_open:
            logger.info("Sync run %d is closed or unknown; opening a new run", run_id)
            return await self.begin(job)
        return RunHandle(job=job, run_id=run_id, started_at=started_at)

    async def adopt(self, job: str) -> RunHandle:
        """
        Handle for the newest open run of a job.

        Used when a caller resumes without a run id. Without an open run the
        handle has no id, and complete() writes an already-closed record.
        """
        started_at = datetime.now(UTC)
        try:
            async with self._session_factory() as session:
                run = await get_latest_open_run(session, job)
                run_id = run.id if run else None
        except (SQLAlchemyError, OSError):
            logger.exception("Could not look up open runs for %s", job)
            return RunHandle(job=job, started_at=started_at)

        return RunHandle(job=job, run_id=run_id, started_at=started_at)

    async def complete(self, handle: RunHandle, ok: bool, notes: dict[str, Any]) -> bool:
        """
        Close a run with its outcome.

        If the run was closed in the meantime, a separate closed record is
        written so the outcome is not lost.

        Returns True if a terminal record was written. Never raises on
        database errors.
        """
        try:
            async with self._session_factory() as session, session.begin():
                if handle.run_id is None:
                    await record_finished_run(session, handle.job, handle.started_at, ok, notes)
                    closed = True
                else:
                    closed = await close_sync_run(session, handle.run_id, ok, notes)
                    if not closed:
                        logger.warning(
                            "Sync run %d was already closed or does not exist; recording separately",
                            handle.run_id,
                        )
                        await record_finished_run(
                            session, handle.job, handle.started_at, ok, notes
                        )
                        closed = True
        except (SQLAlchemyError, OSError):
            logger.exception("Could not close ledger record for %s", handle.job)
            return False

        return closed
