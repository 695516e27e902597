"""
Existing-Note Matching

Finds the Notion page that already holds a given question, so that repeated
submissions update one page instead of creating duplicates.

The identity key is a strategy object: today a question-text prefix, later
possibly a content hash or an explicit external id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from saa_notes.core.config import settings
from saa_notes.core.exceptions import TransportError
from saa_notes.repositories.base import NoteStoreClient
from saa_notes.repositories.properties import QUESTION_TEXT

logger = logging.getLogger(__name__)


class MatchStrategy(Protocol):
    """Derives a lookup key from a question and the store filter for it."""

    def search_key(self, question_text: str) -> str: ...

    def build_filter(self, key: str) -> dict[str, Any]: ...


@dataclass(frozen=True)
class PrefixMatchStrategy:
    """
    Match on the first ``prefix_length`` characters of the question text.

    Known limitation: two different questions sharing that prefix are
    treated as the same note, and editing the prefix creates a new page.
    """

    prefix_length: int = settings.MATCH_PREFIX_LENGTH

    def search_key(self, question_text: str) -> str:
        return question_text[: self.prefix_length]

    def build_filter(self, key: str) -> dict[str, Any]:
        return {"property": QUESTION_TEXT, "title": {"contains": key}}


class MatchResolver:
    """
    Best-effort lookup of an existing page for a question.

    Store failures are logged and reported as "no match": creating a
    duplicate page is preferred over blocking the write.
    """

    def __init__(
        self,
        client: NoteStoreClient,
        database_id: str,
        strategy: MatchStrategy | None = None,
    ) -> None:
        self.client = client
        self.database_id = database_id
        self.strategy = strategy or PrefixMatchStrategy()

    async def find(self, question_text: str) -> str | None:
        """
        Return the id of the first page matching ``question_text``, or None.

        Args:
            question_text: Full question text of the note being saved.
        """
        key = self.strategy.search_key(question_text)
        if not key:
            return None

        try:
            response = await self.client.query_database(
                self.database_id,
                filter=self.strategy.build_filter(key),
                page_size=1,
            )
        except TransportError as e:
            logger.warning(
                "Existing-note lookup failed, treating as new (code=%s): %s",
                e.code,
                e.message,
            )
            return None

        results = response.get("results") or []
        if not results:
            return None

        page_id = results[0]["id"]
        logger.debug("Matched question %r to page %s", key, page_id)
        return page_id
