"""
Note Repository

Data access layer for explained exam-question notes stored in Notion.
Combines MatchResolver (find the existing page) with the property codec
(encode/decode) to provide upsert and full-scan retrieval.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Final

from pydantic import ValidationError

from saa_notes.core.config import settings
from saa_notes.core.exceptions import (
    NoteStoreError,
    NoteValidationError,
    SchemaMismatchError,
    TransportError,
)
from saa_notes.repositories.base import NoteStoreClient
from saa_notes.repositories.matching import MatchResolver
from saa_notes.repositories.properties import (
    PROPERTY_TYPES,
    REQUIRED_PROPERTIES,
    decode_note,
    encode_note,
)
from saa_notes.schemas.notes import StoredNote, StructuredNote

logger = logging.getLogger(__name__)

# Notion's wording when a payload or filter names an unknown property
_MISSING_PROPERTY_PATTERNS: Final = (
    re.compile(r"([^.]+?) is not a property that exists"),
    re.compile(r"Could not find property with name or id: ([^.\n]+)"),
)

_TYPE_LABELS: Final = {
    "title": "title",
    "rich_text": "text",
    "number": "number",
    "multi_select": "multi-select",
}


def missing_properties(message: str) -> list[str]:
    """Names of the properties a Notion error message reports as missing."""
    names: list[str] = []
    for pattern in _MISSING_PROPERTY_PATTERNS:
        names.extend(match.strip() for match in pattern.findall(message))
    return [name for name in dict.fromkeys(names) if name]


class NoteRepository:
    """
    Repository for StructuredNote pages in one Notion database.

    Key guarantees:
        - ``upsert``: validates before any network call; one page per
          question prefix when callers do not race each other.
        - ``list_all``: a page that cannot be decoded is skipped with a
          warning, never failing the whole scan.

    Not guaranteed: two concurrent upserts of a new question may both
    create a page (Notion offers no transaction to prevent it).
    """

    def __init__(
        self,
        client: NoteStoreClient,
        database_id: str | None = None,
        resolver: MatchResolver | None = None,
        page_size: int | None = None,
    ) -> None:
        self.client = client
        self.database_id = database_id or settings.NOTION_DATABASE_ID
        self.resolver = resolver or MatchResolver(client, self.database_id)
        self.page_size = page_size or settings.NOTE_PAGE_SIZE

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    async def upsert(self, note: StructuredNote | dict[str, Any]) -> str:
        """
        Create the note's page, or overwrite the page already holding it.

        Args:
            note: Note to persist (a dict is validated into a StructuredNote).

        Returns:
            Notion page id, identical across repeated calls for one question.

        Raises:
            NoteValidationError: Note breaks a data-model invariant.
            SchemaMismatchError: Database lacks an expected property.
            TransportError: Any other Notion failure.
        """
        note = self._validate(note)
        page_id = await self.resolver.find(note.question_text)
        properties = encode_note(note)
        context = {
            "question_length": len(note.question_text),
            "choice_count": len(note.choices),
        }

        try:
            if page_id is not None:
                await self.client.update_page(page_id, properties)
                logger.info("Updated note page %s (%d choices)", page_id, len(note.choices))
                return page_id

            page = await self.client.create_page(self.database_id, properties)
        except TransportError as e:
            operation = "update_page" if page_id is not None else "create_page"
            raise self._translate(e, operation, context) from e

        logger.info("Created note page %s (%d choices)", page["id"], len(note.choices))
        return page["id"]

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    async def list_records(self) -> list[StoredNote]:
        """
        Scan the whole database, one query page at a time.

        Pages are requested sequentially; each cursor comes from the
        previous response. Query results carry every database property, so
        a required property absent from a page means the database lacks it;
        that is logged once per scan.
        """
        records: list[StoredNote] = []
        cursor: str | None = None
        fetched = 0
        skipped = 0
        absent: set[str] = set()

        while True:
            try:
                response = await self.client.query_database(
                    self.database_id,
                    start_cursor=cursor,
                    page_size=self.page_size,
                )
            except TransportError as e:
                raise self._translate(
                    e,
                    "query_database",
                    {"pages_fetched": fetched, "notes_decoded": len(records)},
                ) from e

            for page in response.get("results") or []:
                fetched += 1
                properties = page.get("properties") or {}
                absent.update(n for n in REQUIRED_PROPERTIES if n not in properties)
                note = decode_note(properties)
                if note is None:
                    skipped += 1
                    logger.warning("Skipping undecodable note page %s", page.get("id"))
                    continue
                records.append(StoredNote(id=page["id"], note=note))

            cursor = response.get("next_cursor")
            if not response.get("has_more") or not cursor:
                break

        if absent:
            logger.warning(
                "Notion database %s lacks required properties: %s",
                self.database_id,
                ", ".join(
                    f"{name} ({_TYPE_LABELS[PROPERTY_TYPES[name]]})"
                    for name in REQUIRED_PROPERTIES
                    if name in absent
                ),
            )

        logger.info("Loaded %d notes (%d pages skipped)", len(records), skipped)
        return records

    async def list_all(self) -> list[StructuredNote]:
        """Every decodable note in the database."""
        return [record.note for record in await self.list_records()]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(note: StructuredNote | dict[str, Any]) -> StructuredNote:
        try:
            return StructuredNote.model_validate(note)
        except ValidationError as e:
            raise NoteValidationError(
                f"Note failed validation with {e.error_count()} error(s)",
                {"errors": [error["msg"] for error in e.errors()]},
            ) from e

    def _translate(
        self,
        error: TransportError,
        operation: str,
        context: dict[str, Any],
    ) -> NoteStoreError:
        """Turn a store failure into a schema hint or a contextualized TransportError."""
        missing = missing_properties(error.message)
        if missing:
            expected = {
                name: _TYPE_LABELS[PROPERTY_TYPES[name]]
                for name in missing
                if name in PROPERTY_TYPES
            }
            logger.error(
                "Notion database %s is missing properties: %s",
                self.database_id,
                ", ".join(missing),
            )
            return SchemaMismatchError(missing, self.database_id, expected)

        return TransportError(
            f"Notion {operation} failed for database {self.database_id}: {error.message}",
            status_code=error.status_code,
            code=error.code,
            operation=operation,
            details={"database_id": self.database_id, **context},
        )


# ============================================================================
# Function-based API (builds a repository around the given client)
# Provides a simpler import pattern: `from repositories import notes as repo`
# ============================================================================


async def upsert(client: NoteStoreClient, note: StructuredNote) -> str:
    """Create or update a note; returns its page id."""
    return await NoteRepository(client).upsert(note)


async def list_all(client: NoteStoreClient) -> list[StructuredNote]:
    """Get every decodable note."""
    return await NoteRepository(client).list_all()


async def list_records(client: NoteStoreClient) -> list[StoredNote]:
    """Get every decodable note with its page id."""
    return await NoteRepository(client).list_records()
