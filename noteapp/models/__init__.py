"""Database models."""

from noteapp.models.user import User
from noteapp.models.note import Note

__all__ = ["User", "Note"]
