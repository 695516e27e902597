"""
Note Store Client Protocol

The narrow document-store surface the repositories depend on: create a page,
update a page, query a database one page of results at a time. NotionClient
implements it over HTTP; tests substitute an in-memory fake.
"""

from typing import Any, Protocol


class NoteStoreClient(Protocol):
    """
    Structural type for the external store client.

    Implementations raise TransportError on any network, auth or API failure.
    """

    async def create_page(
        self, database_id: str, properties: dict[str, Any]
    ) -> dict[str, Any]:
        """Create a page under ``database_id``; the result carries its ``id``."""
        ...

    async def update_page(
        self, page_id: str, properties: dict[str, Any]
    ) -> dict[str, Any]:
        """Overwrite ``properties`` on an existing page."""
        ...

    async def query_database(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        start_cursor: str | None = None,
        page_size: int = 100,
    ) -> dict[str, Any]:
        """Return ``{"results": [...], "has_more": bool, "next_cursor": str | None}``."""
        ...
