"""
Note Store Exceptions

Error taxonomy for the Notion persistence layer. Every error carries a
human-readable message plus a ``details`` dict safe to return to API clients
(no credentials are ever placed in either).
"""

from collections.abc import Iterable
from typing import Any

from saa_notes.core.config import settings


class NoteStoreError(Exception):
    """
    Base exception for the note store.

    Attributes:
        message: Human-readable diagnostic.
        details: Additional machine-readable context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error payloads."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class NoteValidationError(NoteStoreError):
    """A note violates a data-model invariant; raised before any network call."""


class TransportError(NoteStoreError):
    """
    Network, auth or rate-limit failure reported by Notion.

    Attributes:
        status_code: HTTP status, None when no response was received.
        code: Notion error code (``validation_error``, ``rate_limited``...)
            or the httpx exception class name.
        operation: Store operation that failed (``create_page``...).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.status_code = status_code
        self.code = code
        self.operation = operation
        merged = {"status_code": status_code, "code": code, "operation": operation}
        merged.update(details or {})
        super().__init__(message, merged)


class SchemaMismatchError(NoteStoreError):
    """The destination database lacks one or more expected properties."""

    def __init__(
        self,
        missing_fields: Iterable[str],
        database_id: str,
        expected_types: dict[str, str] | None = None,
    ):
        self.missing_fields = sorted(set(missing_fields))
        self.database_id = database_id
        expected_types = expected_types or {}

        described = ", ".join(
            f"'{name}' ({expected_types[name]})" if name in expected_types else f"'{name}'"
            for name in self.missing_fields
        )
        message = (
            f"Notion database {database_id} is missing required properties: "
            f"{described}. Add each property to the database with exactly this "
            f"name and type, or verify that NOTION_DATABASE_ID points at the "
            f"intended database."
        )
        super().__init__(
            message,
            {"missing_fields": self.missing_fields, "database_id": database_id},
        )


def redact(text: str) -> str:
    """Remove the configured Notion API key from a diagnostic string."""
    key = settings.NOTION_API_KEY
    if key and key in text:
        return text.replace(key, "***")
    return text
