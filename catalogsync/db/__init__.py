from catalogsync.db.database import (
    build_engine,
    build_session_factory,
    get_session,
    get_session_factory,
    init_db,
)
from catalogsync.db.operations import (
    close_sync_run,
    create_sync_run,
    get_card,
    get_card_set,
    get_latest_open_run,
    get_sync_run,
    list_sync_runs,
    record_finished_run,
    upsert_cards,
    upsert_sets,
)

__all__ = [
    "build_engine",
    "build_session_factory",
    "close_sync_run",
    "create_sync_run",
    "get_card",
    "get_card_set",
    "get_latest_open_run",
    "get_session",
    "get_session_factory",
    "get_sync_run",
    "init_db",
    "list_sync_runs",
    "record_finished_run",
    "upsert_cards",
    "upsert_sets",
]
