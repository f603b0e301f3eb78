"""
Pokémon TCG catalog API client.

Reads sets and card pages. Each call issues exactly one request and never
retries; a failed call raises CatalogFetchError and the caller decides
whether to try again.
"""

import logging
from types import TracebackType
from typing import Any

import httpx

from catalogsync.config import MAX_PAGE_SIZE, settings

logger = logging.getLogger(__name__)

USER_AGENT = "CatalogSync/1.0"

# Longest response body kept on a CatalogFetchError
_MAX_ERROR_BODY = 500


class CatalogFetchError(Exception):
    """Raised when the catalog API call fails or returns a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class CatalogClient:
    """
    Async reader for the upstream catalog.

    Usage:
        async with CatalogClient() as client:
            sets = await client.fetch_sets()
            cards = await client.fetch_cards_page(1, 250)
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.catalog_api_url).rstrip("/")
        key = settings.pokemon_tcg_api_key if api_key is None else api_key

        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if key:
            headers["X-Api-Key"] = key

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            headers=headers,
            timeout=timeout or settings.http_timeout,
            follow_redirects=True,
        )
        if http_client is not None:
            self._client.headers.update(headers)

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_sets(self) -> list[dict[str, Any]]:
        """
        Fetch every set in one request at the upstream maximum page size.

        Returns:
            Raw set records

        Raises:
            CatalogFetchError: If the request fails
        """
        return await self._get_list("/sets", {"pageSize": MAX_PAGE_SIZE}, what="sets")

    async def fetch_cards_page(self, page: int, page_size: int) -> list[dict[str, Any]]:
        """
        Fetch one page of cards.

        A page shorter than page_size is the last one.

        Args:
            page: 1-based page number
            page_size: Cards per page

        Returns:
            Raw card records

        Raises:
            CatalogFetchError: If the request fails
        """
        return await self._get_list(
            "/cards",
            {"page": page, "pageSize": page_size},
            what=f"cards page {page}",
        )

    async def _get_list(
        self, path: str, params: dict[str, int], what: str
    ) -> list[dict[str, Any]]:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.get(url, params=params)
        except httpx.RequestError as e:
            raise CatalogFetchError(f"Failed to fetch {what}: {e}") from e

        if not response.is_success:
            body = response.text[:_MAX_ERROR_BODY]
            raise CatalogFetchError(
                f"Failed to fetch {what}: HTTP {response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise CatalogFetchError(
                f"Failed to fetch {what}: invalid JSON",
                status_code=response.status_code,
                body=response.text[:_MAX_ERROR_BODY],
            ) from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            return []

        logger.debug("Fetched %d records for %s", len(data), what)
        return data
