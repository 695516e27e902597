"""
Notion Client

Thin async wrapper over the three Notion REST endpoints the note store needs:
create page, update page properties, and query a database.

Design:
    - One shared httpx.AsyncClient per NotionClient (connection pooling).
    - Every failure surfaces as TransportError carrying the Notion error
      code and message; no retries (retry policy belongs to the caller).
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import Request

from saa_notes.core.config import settings
from saa_notes.core.exceptions import TransportError, redact

logger = logging.getLogger(__name__)


class NotionClient:
    """
    Async Notion API client implementing the NoteStoreClient surface.

    Usage::

        async with NotionClient() as client:
            page = await client.create_page(database_id, properties)
            print(page["id"])
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        notion_version: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Notion integration token (default from config).
            base_url: API root URL (default from config).
            notion_version: Value of the Notion-Version header (default from config).
            timeout: Request timeout in seconds (default from config).
            transport: Optional httpx transport, used by tests to stub Notion.

        Raises:
            ValueError: If no API key is available.
        """
        api_key = api_key or settings.NOTION_API_KEY
        if not api_key:
            raise ValueError("NOTION_API_KEY is required")

        self._http = httpx.AsyncClient(
            base_url=base_url or settings.NOTION_API_BASE_URL,
            timeout=timeout or settings.NOTION_TIMEOUT,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Notion-Version": notion_version or settings.NOTION_VERSION,
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    async def __aenter__(self) -> NotionClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._http.aclose()

    # ------------------------------------------------------------------
    # NoteStoreClient surface
    # ------------------------------------------------------------------

    async def create_page(
        self, database_id: str, properties: dict[str, Any]
    ) -> dict[str, Any]:
        """Create a page in ``database_id``. Returns the Notion page object."""
        payload = {"parent": {"database_id": database_id}, "properties": properties}
        return await self._request("create_page", "POST", "/pages", payload)

    async def update_page(
        self, page_id: str, properties: dict[str, Any]
    ) -> dict[str, Any]:
        """Overwrite the given properties of an existing page."""
        return await self._request(
            "update_page", "PATCH", f"/pages/{page_id}", {"properties": properties}
        )

    async def query_database(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        start_cursor: str | None = None,
        page_size: int = 100,
    ) -> dict[str, Any]:
        """
        Query one page of results from a database.

        Returns:
            Notion list object with ``results``, ``has_more`` and ``next_cursor``.
        """
        payload: dict[str, Any] = {"page_size": page_size}
        if filter is not None:
            payload["filter"] = filter
        if start_cursor is not None:
            payload["start_cursor"] = start_cursor
        return await self._request(
            "query_database", "POST", f"/databases/{database_id}/query", payload
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Send one request and decode the JSON body.

        Raises:
            TransportError: On connection failure, timeout or non-2xx status.
        """
        try:
            response = await self._http.request(method, path, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            code, message = self._parse_error(e.response)
            logger.error(
                "Notion %s failed (status=%d, code=%s): %s",
                operation,
                e.response.status_code,
                code,
                message,
            )
            raise TransportError(
                message,
                status_code=e.response.status_code,
                code=code,
                operation=operation,
            ) from e
        except httpx.HTTPError as e:
            logger.error("Notion %s unreachable (%s): %s", operation, type(e).__name__, e)
            raise TransportError(
                redact(f"Notion API unreachable: {e}"),
                code=type(e).__name__,
                operation=operation,
            ) from e

        return response.json()

    @staticmethod
    def _parse_error(response: httpx.Response) -> tuple[str, str]:
        """Extract (code, message) from a Notion error object."""
        try:
            body = response.json()
        except ValueError:
            return "http_error", redact(response.text or response.reason_phrase)
        if not isinstance(body, dict):
            return "http_error", redact(str(body))
        return (
            str(body.get("code", "http_error")),
            redact(str(body.get("message", response.reason_phrase))),
        )


def get_notion_client(request: Request) -> NotionClient:
    """
    FastAPI dependency returning the client created in the app lifespan.

    The client is shared across requests; httpx.AsyncClient is safe for
    concurrent use.
    """
    return request.app.state.notion_client
