from catalogsync.api.health import router as health_router
from catalogsync.api.sync import router as sync_router

__all__ = [
    "health_router",
    "sync_router",
]
