from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalogsync.api import health_router, sync_router
from catalogsync.config import settings
from catalogsync.db.database import build_engine, build_session_factory, init_db


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Owns the database engine for the lifetime of the process."""
    engine = build_engine()
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    await init_db(engine)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("catalogsync"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(sync_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "x-sync-token"],
)
