"""
Full catalog sync.

Runs every step (sets, then all card pages) in one process against the
configured database. For hosts without a tight per-call time limit.
"""

import argparse
import asyncio
import logging

from catalogsync.clients.catalog import CatalogClient
from catalogsync.config import MAX_PAGE_SIZE, settings
from catalogsync.db.database import build_engine, build_session_factory, init_db
from catalogsync.models.sync import SyncSummary
from catalogsync.services.sync_orchestrator import CatalogSyncOrchestrator, SyncFailed

logger = logging.getLogger(__name__)


async def run_sync(page_size: int | None = None, database_url: str | None = None) -> SyncSummary:
    """
    Sync the whole catalog.

    Args:
        page_size: Cards per page (defaults to settings.cards_page_size)
        database_url: Override the configured database

    Returns:
        Final counts for the run

    Raises:
        SyncFailed: If any step fails
    """
    engine = build_engine(database_url)
    try:
        await init_db(engine)
        session_factory = build_session_factory(engine)
        async with CatalogClient() as client:
            orchestrator = CatalogSyncOrchestrator(client, session_factory)
            summary = await orchestrator.run_all(page_size=page_size)
    finally:
        await engine.dispose()

    logger.info(
        "Catalog sync complete. Sets: %d, cards: %d",
        summary.sets_upserted,
        summary.cards_upserted,
    )
    return summary


def page_size_arg(value: str) -> int:
    size = int(value)
    if not 1 <= size <= MAX_PAGE_SIZE:
        raise argparse.ArgumentTypeError(f"page size must be between 1 and {MAX_PAGE_SIZE}")
    return size


def main() -> None:
    """CLI entry point for running a full sync."""
    parser = argparse.ArgumentParser(description="Sync the card catalog into the database")
    parser.add_argument(
        "--page-size",
        type=page_size_arg,
        default=settings.cards_page_size,
        help=f"Cards per page (default: {settings.cards_page_size})",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        asyncio.run(run_sync(page_size=args.page_size))
    except SyncFailed as e:
        logger.error("Catalog sync failed: %s", e.message)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
