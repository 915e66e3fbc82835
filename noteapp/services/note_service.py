"""Note service for per-user note management."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from noteapp.models.note import Note
from noteapp.schemas.note import NoteCreate
from noteapp.services.exceptions import NoteNotFoundError, AuthorizationError

logger = logging.getLogger(__name__)


class NoteService:
    """Service for creating, listing and deleting a user's notes."""

    def __init__(self, db: Session):
        """
        Initialize the note service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def list_notes(self, user_id: UUID) -> list[Note]:
        """All notes owned by ``user_id``, oldest first."""
        return (
            self.db.query(Note)
            .filter(Note.user_id == user_id)
            .order_by(Note.created_at.asc())
            .all()
        )

    def create_note(self, user_id: UUID, data: NoteCreate) -> Note:
        """
        Create a note owned by ``user_id``.

        Args:
            user_id: Owner user ID
            data: Validated title and content

        Returns:
            Created Note instance
        """
        note = Note(user_id=user_id, title=data.title, content=data.content)

        self.db.add(note)
        self.db.commit()
        self.db.refresh(note)

        logger.info(f"Created note {note.id} for user {user_id}")
        return note

    def delete_note(self, user_id: UUID, note_id: UUID) -> None:
        """
        Delete a note after checking ownership.

        Raises:
            NoteNotFoundError: If the note doesn't exist
            AuthorizationError: If the note belongs to another user
        """
        note = self.db.query(Note).filter(Note.id == note_id).first()

        if not note:
            raise NoteNotFoundError(note_id)

        if note.user_id != user_id:
            logger.warning(f"User {user_id} tried to delete note {note_id} owned by {note.user_id}")
            raise AuthorizationError("User not authorized")

        self.db.delete(note)
        self.db.commit()

        logger.info(f"Deleted note {note_id} for user {user_id}")
