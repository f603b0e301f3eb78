"""
Sync trigger endpoints.

POST /api/sync with no body (or no step) runs the whole sync in one call.
With {"step": ..., "page": ..., "pageSize": ...} it runs exactly one step
and returns the cursor to send next, for hosts with a short per-request
time limit.
"""

import logging
import secrets
from collections.abc import AsyncGenerator
from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalogsync.clients.catalog import CatalogClient
from catalogsync.config import MAX_PAGE_SIZE, settings
from catalogsync.db.database import get_session, get_session_factory
from catalogsync.db.operations import list_sync_runs
from catalogsync.models.sync import StepOutcome, SyncCursor, SyncStep
from catalogsync.services.sync_orchestrator import CatalogSyncOrchestrator, SyncFailed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["sync"])


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SyncRequest(CamelModel):
    """Request body for the sync trigger."""

    step: SyncStep | None = Field(
        default=None,
        description="Step to run. Omit to run the whole sync in this call.",
    )
    page: int = Field(default=1, ge=1, description="1-based card page")
    page_size: int | None = Field(
        default=None,
        ge=1,
        le=MAX_PAGE_SIZE,
        description="Cards per page",
    )
    run_id: int | None = Field(
        default=None,
        description="Run id returned by the previous call",
    )
    sets_upserted: int = Field(default=0, ge=0)
    cards_upserted: int = Field(default=0, ge=0)

    def to_cursor(self) -> SyncCursor:
        if self.step is None:
            raise ValueError("Request has no step")
        return SyncCursor(
            step=self.step,
            page=self.page,
            page_size=self.page_size or settings.cards_page_size,
            run_id=self.run_id,
            sets_upserted=self.sets_upserted,
            cards_upserted=self.cards_upserted,
        )


class CursorResponse(CamelModel):
    """Cursor to send back as the next request body."""

    step: SyncStep
    page: int
    page_size: int
    run_id: int | None = None
    sets_upserted: int = 0
    cards_upserted: int = 0

    @classmethod
    def from_cursor(cls, cursor: SyncCursor) -> "CursorResponse":
        return cls(
            step=cursor.step,
            page=cursor.page,
            page_size=cursor.page_size,
            run_id=cursor.run_id,
            sets_upserted=cursor.sets_upserted,
            cards_upserted=cursor.cards_upserted,
        )


class SyncStepResponse(CamelModel):
    """Result of a single step."""

    step: SyncStep
    page: int
    page_size: int
    upserted: int
    sets_upserted: int
    cards_upserted: int
    has_more: bool
    next_page: int | None = None
    next: CursorResponse | None = None
    run_id: int | None = None

    @classmethod
    def from_outcome(cls, outcome: StepOutcome) -> "SyncStepResponse":
        return cls(
            step=outcome.cursor.step,
            page=outcome.cursor.page,
            page_size=outcome.cursor.page_size,
            upserted=outcome.upserted,
            sets_upserted=outcome.sets_upserted,
            cards_upserted=outcome.cards_upserted,
            has_more=outcome.has_more,
            next_page=outcome.next_page,
            next=CursorResponse.from_cursor(outcome.next_cursor) if outcome.next_cursor else None,
            run_id=outcome.run_id,
        )


class SyncRunAllResponse(CamelModel):
    """Final counts of a whole sync."""

    sets_upserted: int
    cards_upserted: int
    run_id: int | None = None


class SyncRunResponse(CamelModel):
    """A ledger record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    job: str
    started_at: datetime
    finished_at: datetime | None = None
    ok: bool | None = None
    notes: dict[str, Any] | None = None


async def require_sync_token(
    x_sync_token: Annotated[str | None, Header()] = None,
) -> None:
    """
    Check the shared sync secret.

    No check when no secret is configured.
    """
    expected = settings.sync_token
    if not expected:
        return
    if x_sync_token is None or not secrets.compare_digest(
        x_sync_token.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("Rejected sync request: missing or invalid x-sync-token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def get_catalog_client() -> AsyncGenerator[CatalogClient, None]:
    """Request-scoped upstream client."""
    async with CatalogClient() as client:
        yield client


def get_orchestrator(
    client: Annotated[CatalogClient, Depends(get_catalog_client)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> CatalogSyncOrchestrator:
    return CatalogSyncOrchestrator(client, session_factory)


@router.options("/sync", status_code=status.HTTP_204_NO_CONTENT)
async def sync_preflight() -> Response:
    """Cross-origin preflight. Never gated by the sync secret."""
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/sync",
    response_model=None,
    responses={
        401: {"description": "Missing or invalid x-sync-token"},
        500: {"description": "Sync step failed"},
    },
    dependencies=[Depends(require_sync_token)],
)
async def trigger_sync(
    orchestrator: Annotated[CatalogSyncOrchestrator, Depends(get_orchestrator)],
    body: SyncRequest | None = None,
) -> SyncRunAllResponse | SyncStepResponse | JSONResponse:
    """
    Run the catalog sync.

    Without a step, runs every step and returns final counts. With a step,
    runs that step only and returns hasMore plus the next cursor.
    Failures return 500 with {"error": message}.
    """
    try:
        if body is None or body.step is None:
            page_size = body.page_size if body else None
            summary = await orchestrator.run_all(page_size=page_size)
            return SyncRunAllResponse(
                sets_upserted=summary.sets_upserted,
                cards_upserted=summary.cards_upserted,
                run_id=summary.run_id,
            )

        outcome = await orchestrator.run_step(body.to_cursor())
        return SyncStepResponse.from_outcome(outcome)

    except SyncFailed as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": e.message, "runId": e.run_id},
        )


@router.get(
    "/sync/runs",
    response_model=list[SyncRunResponse],
    dependencies=[Depends(require_sync_token)],
)
async def get_sync_runs(
    session: Annotated[AsyncSession, Depends(get_session)],
    limit: int = Query(default=20, ge=1, le=100),
) -> list[SyncRunResponse]:
    """Recent sync runs, newest first."""
    runs = await list_sync_runs(session, limit=limit)
    return [SyncRunResponse.model_validate(run) for run in runs]
