"""
Step-by-step sync through the HTTP endpoint.

For deployments where each request has a hard time limit: posts the sets
step, then one card page per request, sending back the cursor each response
returns until hasMore is false. A failed request stops the sync; rerunning
is safe because every write is an upsert.
"""

import argparse
import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from catalogsync.config import MAX_PAGE_SIZE, settings
from catalogsync.jobs.sync_catalog import page_size_arg

logger = logging.getLogger(__name__)


class RemoteSyncError(Exception):
    """Raised when the sync endpoint rejects or fails a step."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class RemoteSyncResult:
    """Totals reported by the final step."""

    run_id: int | None
    sets_upserted: int
    cards_upserted: int
    calls: int


async def _post_step(
    client: httpx.AsyncClient, endpoint: str, body: dict[str, Any], headers: dict[str, str]
) -> dict[str, Any]:
    try:
        response = await client.post(endpoint, json=body, headers=headers)
    except httpx.RequestError as e:
        raise RemoteSyncError(f"Sync request failed: {e}") from e

    if not response.is_success:
        text = response.text
        raise RemoteSyncError(
            text or f"Sync failed with status {response.status_code}",
            status_code=response.status_code,
        )

    data: dict[str, Any] = response.json()
    return data


async def run_remote_sync(
    endpoint: str,
    page_size: int | None = None,
    token: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> RemoteSyncResult:
    """
    Drive a sync one step per request.

    Args:
        endpoint: URL of POST /api/sync
        page_size: Cards per page (defaults to settings.cards_page_size)
        token: Shared sync secret (defaults to settings.sync_token)
        client: Optional httpx client for connection reuse

    Returns:
        Totals from the final step

    Raises:
        RemoteSyncError: On the first failed request
    """
    headers = {"Content-Type": "application/json"}
    token = settings.sync_token if token is None else token
    if token:
        headers["x-sync-token"] = token

    body: dict[str, Any] = {
        "step": "sets",
        "pageSize": page_size or settings.cards_page_size,
    }

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.http_timeout)
    calls = 0
    try:
        while True:
            data = await _post_step(http, endpoint, body, headers)
            calls += 1
            logger.info(
                "Step %s page %s: upserted %s",
                data.get("step"),
                data.get("page"),
                data.get("upserted"),
            )
            if not data.get("hasMore") or not data.get("next"):
                return RemoteSyncResult(
                    run_id=data.get("runId"),
                    sets_upserted=int(data.get("setsUpserted", 0)),
                    cards_upserted=int(data.get("cardsUpserted", 0)),
                    calls=calls,
                )
            body = data["next"]
    finally:
        if owns_client:
            await http.aclose()


def main() -> None:
    """CLI entry point for a step-by-step sync."""
    parser = argparse.ArgumentParser(description="Sync the card catalog through the HTTP endpoint")
    parser.add_argument(
        "--endpoint",
        default="http://localhost:8000/api/sync",
        help="Sync endpoint URL (default: http://localhost:8000/api/sync)",
    )
    parser.add_argument(
        "--page-size",
        type=page_size_arg,
        default=settings.cards_page_size,
        help=f"Cards per page, at most {MAX_PAGE_SIZE} (default: {settings.cards_page_size})",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        result = asyncio.run(run_remote_sync(args.endpoint, page_size=args.page_size))
    except RemoteSyncError as e:
        logger.error("Remote sync failed: %s", e)
        raise SystemExit(1) from e

    logger.info(
        "Remote sync complete in %d calls. Sets: %d, cards: %d",
        result.calls,
        result.sets_upserted,
        result.cards_upserted,
    )


if __name__ == "__main__":
    main()
