"""
Catalog sync orchestrator.

Drives the sets -> cards(1..n) -> done state machine. Two drivers share the
same per-step code:

- run_all(): loops through every step itself (no compute-time ceiling)
- run_step(): performs exactly one step and returns the cursor the caller
  must send back to continue (hard per-call time limit)

Nothing is retried here. A failed step is recorded in the ledger and raised
as SyncFailed; the caller decides whether to resend the same cursor, which
is safe because every write is an idempotent upsert.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalogsync.clients.catalog import CatalogClient
from catalogsync.config import settings
from catalogsync.db.operations import upsert_cards, upsert_sets
from catalogsync.models.sync import StepOutcome, SyncCursor, SyncStep, SyncSummary
from catalogsync.parsers.catalog import map_card, map_set
from catalogsync.services.run_ledger import RunHandle, RunLedger

logger = logging.getLogger(__name__)

_MAX_ERROR_LENGTH = 300

RowT = TypeVar("RowT")


class SyncFailed(Exception):
    """A sync step failed; already recorded in the ledger."""

    def __init__(self, message: str, run_id: int | None = None, step: SyncStep | None = None):
        super().__init__(message)
        self.message = message
        self.run_id = run_id
        self.step = step


def describe_error(exc: BaseException) -> str:
    """
    Short, single-line description of a failure.

    Database errors carry the SQL statement and parameters on later lines;
    only the first line is kept.
    """
    text = str(exc).strip()
    first_line = text.splitlines()[0] if text else type(exc).__name__
    return first_line[:_MAX_ERROR_LENGTH]


def _map_records(
    records: Sequence[Any],
    mapper: Callable[[dict[str, Any], datetime], RowT],
    kind: str,
) -> list[RowT]:
    """Map upstream records, skipping ones that cannot be keyed."""
    synced_at = datetime.now(UTC)
    rows = []
    for record in records:
        if not isinstance(record, dict) or not record.get("id"):
            logger.warning("Skipping %s record without id", kind)
            continue
        rows.append(mapper(record, synced_at))
    return rows


class CatalogSyncOrchestrator:
    """
    Runs catalog sync steps against one client and one database.

    Args:
        client: Upstream catalog reader
        session_factory: Sessions for catalog writes
        ledger: Run ledger; defaults to one on the same database
        job_name: Job tag for run records
    """

    def __init__(
        self,
        client: CatalogClient,
        session_factory: async_sessionmaker[AsyncSession],
        ledger: RunLedger | None = None,
        job_name: str | None = None,
    ) -> None:
        self._client = client
        self._session_factory = session_factory
        self._ledger = ledger or RunLedger(session_factory)
        self.job_name = job_name or settings.sync_job_name

    async def run_all(self, page_size: int | None = None) -> SyncSummary:
        """
        Run every step until done.

        Raises:
            SyncFailed: If any step fails
        """
        cursor = SyncCursor(step=SyncStep.SETS, page_size=page_size or settings.cards_page_size)
        while True:
            outcome = await self.run_step(cursor)
            if outcome.next_cursor is None:
                return SyncSummary(
                    run_id=outcome.run_id,
                    sets_upserted=outcome.sets_upserted,
                    cards_upserted=outcome.cards_upserted,
                )
            cursor = outcome.next_cursor

    async def run_step(self, cursor: SyncCursor) -> StepOutcome:
        """
        Run the single step described by a cursor.

        The sets step opens a ledger run when the cursor carries none. A
        cards page without a run id continues the newest open run of the
        job, if any. The run is closed when this step finishes the sync or
        fails.

        Raises:
            SyncFailed: If the fetch or the write fails
        """
        handle = await self._open_run(cursor)

        try:
            if cursor.step is SyncStep.SETS:
                upserted = await self._sync_sets()
                has_more = True
                next_page = 1
            else:
                upserted, fetched = await self._sync_cards_page(cursor.page, cursor.page_size)
                # A short page is the last page
                has_more = fetched >= cursor.page_size
                next_page = cursor.page + 1
        except Exception as e:
            message = describe_error(e)
            logger.error("Sync step %s failed: %s", _describe_step(cursor), message)
            await self._ledger.complete(
                handle,
                ok=False,
                notes={"error": message, "step": cursor.step.value, "page": cursor.page},
            )
            raise SyncFailed(message, run_id=handle.run_id, step=cursor.step) from e

        progressed = cursor.advance(SyncStep.CARDS, next_page, upserted, run_id=handle.run_id)

        if not has_more:
            logger.info(
                "Sync complete: %d sets, %d cards",
                progressed.sets_upserted,
                progressed.cards_upserted,
            )
            await self._ledger.complete(
                handle,
                ok=True,
                notes={"sets": progressed.sets_upserted, "cards": progressed.cards_upserted},
            )

        return StepOutcome(
            cursor=cursor,
            upserted=upserted,
            run_id=handle.run_id,
            sets_upserted=progressed.sets_upserted,
            cards_upserted=progressed.cards_upserted,
            next_cursor=progressed if has_more else None,
        )

    async def _open_run(self, cursor: SyncCursor) -> RunHandle:
        if cursor.run_id is not None:
            return await self._ledger.resume(self.job_name, cursor.run_id)
        if cursor.step is SyncStep.SETS:
            return await self._ledger.begin(self.job_name)
        # Only the sets step opens a run; a cards page never leaves one open
        return await self._ledger.adopt(self.job_name)

    async def _sync_sets(self) -> int:
        logger.info("Fetching sets...")
        records = await self._client.fetch_sets()
        rows = _map_records(records, map_set, "set")

        async with self._session_factory() as session, session.begin():
            count = await upsert_sets(session, rows)

        logger.info("Upserted %d sets", count)
        return count

    async def _sync_cards_page(self, page: int, page_size: int) -> tuple[int, int]:
        """Returns (rows upserted, records fetched)."""
        logger.info("Fetching cards page %d (size %d)...", page, page_size)
        records = await self._client.fetch_cards_page(page, page_size)
        rows = _map_records(records, map_card, "card")

        async with self._session_factory() as session, session.begin():
            count = await upsert_cards(session, rows)

        logger.info("Upserted %d cards from page %d", count, page)
        return count, len(records)


def _describe_step(cursor: SyncCursor) -> str:
    if cursor.step is SyncStep.SETS:
        return "sets"
    return f"cards(page={cursor.page})"
