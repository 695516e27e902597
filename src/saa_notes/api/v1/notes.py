"""
Notes API Router

REST endpoints for saving explained exam-question notes to Notion and
reading them back. The orchestration layer posts the finished note; this
router only persists and retrieves.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from saa_notes.core.exceptions import (
    NoteValidationError,
    SchemaMismatchError,
    TransportError,
)
from saa_notes.core.notion import NotionClient, get_notion_client
from saa_notes.repositories.notes import NoteRepository
from saa_notes.schemas.notes import NoteUpsertResponse, StoredNote, StructuredNote

router = APIRouter()


def get_note_repository(
    client: NotionClient = Depends(get_notion_client),
) -> NoteRepository:
    """FastAPI dependency providing a repository bound to the shared client."""
    return NoteRepository(client)


@router.post("/", response_model=NoteUpsertResponse)
async def upsert_note(
    note: StructuredNote,
    repo: NoteRepository = Depends(get_note_repository),
):
    """
    Save a note, updating the existing page for the same question if any.

    Raises:
        HTTPException 422: Note breaks a data-model invariant.
        HTTPException 500: Notion database is missing expected properties.
        HTTPException 502: Notion is unreachable or rejected the request.
    """
    try:
        page_id = await repo.upsert(note)
    except NoteValidationError as e:
        raise HTTPException(status_code=422, detail=e.to_dict()) from e
    except SchemaMismatchError as e:
        # Misconfigured destination, not a client mistake
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.to_dict()
        ) from e
    except TransportError as e:
        # 502 Bad Gateway: upstream Notion failure
        raise HTTPException(status_code=502, detail=e.to_dict()) from e

    return NoteUpsertResponse(id=page_id)


@router.get("/", response_model=list[StoredNote])
async def read_notes(repo: NoteRepository = Depends(get_note_repository)):
    """List every stored note; pages that cannot be decoded are left out."""
    try:
        return await repo.list_records()
    except SchemaMismatchError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.to_dict()
        ) from e
    except TransportError as e:
        raise HTTPException(status_code=502, detail=e.to_dict()) from e
