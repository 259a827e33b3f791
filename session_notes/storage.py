"""JSON file-based note store for local use."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .models import Note, NoteFile

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_PATH = Path("notes_data.json")


class DuplicateNoteError(ValueError):
    """A note with the same id or slug already exists."""


class NoteFileStorage:
    """Manages note persistence using a local JSON file."""

    def __init__(self, storage_path: Path = DEFAULT_STORAGE_PATH) -> None:
        self._path = storage_path
        self._store = NoteFile()
        self._load()

    def _load(self) -> None:
        """Load notes from disk. Creates file if missing."""
        if self._path.exists():
            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
                self._store = NoteFile.model_validate(raw)
                logger.info(
                    "Loaded %d notes from %s", len(self._store.notes), self._path
                )
            except (json.JSONDecodeError, ValidationError) as exc:
                logger.error("Failed to load notes: %s — starting fresh", exc)
                self._store = NoteFile()
        else:
            logger.info("No storage file found at %s — starting fresh", self._path)
            self._persist()

    def _persist(self) -> None:
        """Write current state to disk."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            self._store.model_dump_json(indent=2),
            encoding="utf-8",
        )

    async def insert(self, note: Note) -> Optional[Exception]:
        """Persist a new note. Returns the error instead of raising it."""
        for existing in self._store.notes:
            if existing.id == note.id or existing.slug == note.slug:
                return DuplicateNoteError(f"Note {note.slug} already exists")

        self._store.notes.append(note)
        try:
            self._persist()
        except OSError as exc:
            self._store.notes.pop()
            return exc
        logger.info("Saved note %s — '%s'", note.id, note.slug)
        return None

    async def get_all(self) -> list[Note]:
        """Return every stored note."""
        return list(self._store.notes)

    async def get_public(self) -> list[Note]:
        """Return notes shared with every session."""
        return [n for n in self._store.notes if n.public]

    async def get_by_session(self, session_id: str) -> list[Note]:
        """Return notes owned by *session_id*."""
        return [n for n in self._store.notes if n.session_id == session_id]

    @property
    def count(self) -> int:
        """Number of stored notes."""
        return len(self._store.notes)
