"""Note endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from noteapp.api.v1.dependencies import get_current_user, get_note_service
from noteapp.services.note_service import NoteService
from noteapp.services.exceptions import NoteNotFoundError, AuthorizationError
from noteapp.schemas.note import NoteCreate, NoteResponse
from noteapp.schemas.user import MessageResponse
from noteapp.models.user import User

router = APIRouter()


@router.get(
    "",
    response_model=list[NoteResponse],
    summary="List notes",
    description="List all notes owned by the current user.",
)
def list_notes(
    current_user: User = Depends(get_current_user),
    note_service: NoteService = Depends(get_note_service),
) -> list[NoteResponse]:
    """List notes."""
    notes = note_service.list_notes(current_user.id)
    return [NoteResponse.model_validate(note) for note in notes]


@router.post(
    "",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a note",
    description="Create a note with a non-empty title and content.",
)
def create_note(
    data: NoteCreate,
    current_user: User = Depends(get_current_user),
    note_service: NoteService = Depends(get_note_service),
) -> NoteResponse:
    """Create a note."""
    note = note_service.create_note(current_user.id, data)
    return NoteResponse.model_validate(note)


@router.delete(
    "/{note_id}",
    response_model=MessageResponse,
    summary="Delete a note",
    description="Delete one of the current user's notes.",
)
def delete_note(
    note_id: UUID,
    current_user: User = Depends(get_current_user),
    note_service: NoteService = Depends(get_note_service),
) -> MessageResponse:
    """Delete a note."""
    try:
        note_service.delete_note(current_user.id, note_id)
        return MessageResponse(message="Note removed")

    except NoteNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Note not found",
        )
    except AuthorizationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
        )
