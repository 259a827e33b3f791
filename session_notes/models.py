"""Pydantic models for session notes."""

from collections.abc import Mapping
from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field

DEFAULT_EMOJI = "👋🏼"
NEW_NOTE_SLUG_PREFIX = "new-note-"


class Note(BaseModel):
    """A single note owned by a session."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    slug: str = Field(..., min_length=1, description="URL-safe identifier")
    title: str = Field(default="", description="Note title")
    content: str = Field(default="", description="Note content")
    created_at: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="ISO-8601 creation timestamp",
    )
    session_id: str = Field(..., description="Owning session")
    public: bool = Field(default=False, description="Readable by every session")
    category: str = Field(default="today", description="Free-form label")
    emoji: str = Field(default=DEFAULT_EMOJI)


class NoteFile(BaseModel):
    """Container for all notes, used for JSON serialization."""

    notes: list[Note] = Field(default_factory=list)


def note_field(note, name: str, default=None):
    """Read a field from a Note or a plain mapping row.

    Missing keys and ``None`` values fall back to *default*.
    """
    if isinstance(note, Mapping):
        value = note.get(name)
    else:
        value = getattr(note, name, None)
    return default if value is None else value
