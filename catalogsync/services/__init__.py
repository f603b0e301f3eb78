from catalogsync.services.run_ledger import RunHandle, RunLedger
from catalogsync.services.sync_orchestrator import CatalogSyncOrchestrator, SyncFailed

__all__ = [
    "CatalogSyncOrchestrator",
    "RunHandle",
    "RunLedger",
    "SyncFailed",
]
