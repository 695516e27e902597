"""Repositories package."""

from saa_notes.repositories.base import NoteStoreClient
from saa_notes.repositories.matching import MatchResolver, PrefixMatchStrategy
from saa_notes.repositories.notes import NoteRepository

__all__ = [
    "MatchResolver",
    "NoteRepository",
    "NoteStoreClient",
    "PrefixMatchStrategy",
]
