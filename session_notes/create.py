"""Note creation workflow.

Builds a fresh private note, persists it, then hands control back to the
caller through callbacks. A failed insert is logged and nothing else
happens.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Awaitable, Callable, Optional, Protocol
from uuid import uuid4

from session_notes.config import settings
from session_notes.metrics import NOTES_CREATED
from session_notes.models import NEW_NOTE_SLUG_PREFIX, Note

logger = logging.getLogger(__name__)

CREATED_MESSAGE = "Private note created"


class NoteCreationError(Exception):
    """A store reported a non-exception error value for an insert."""


class NoteStore(Protocol):
    """Persistence operations the core relies on."""

    async def insert(self, note: Note) -> Optional[Exception]: ...

    async def get_all(self) -> list[Note]: ...

    async def get_public(self) -> list[Note]: ...

    async def get_by_session(self, session_id: str) -> list[Note]: ...


class Navigator(Protocol):
    """Pushes paths; may also expose ``refresh()``."""

    def push(self, path: str) -> Any: ...


def build_note(session_id: Optional[str]) -> Note:
    """Create an unsaved note owned by *session_id* (or a fresh session)."""
    note_id = str(uuid4())
    return Note(
        id=note_id,
        slug=f"{NEW_NOTE_SLUG_PREFIX}{note_id}",
        title="",
        content="",
        public=False,
        session_id=session_id or str(uuid4()),
        category="today",
        emoji=settings.default_emoji,
        created_at=datetime.now(UTC).isoformat(),
    )


def note_path(slug: str) -> str:
    """Detail page path for a note."""
    return f"{settings.note_path_prefix.rstrip('/')}/{slug}"


async def create_note(
    session_id: Optional[str],
    navigator: Navigator,
    on_pinned: Callable[[str], Any],
    on_refresh: Callable[[], Awaitable[Any]],
    on_select: Callable[[Optional[str]], Any],
    is_mobile: bool,
    *,
    store: NoteStore,
    notify: Optional[Callable[[str], Any]] = None,
) -> Optional[Note]:
    """Create and persist a new note, then pin, refresh and open it.

    Returns the saved note, or None when anything went wrong. Errors are
    logged, never raised.
    """
    try:
        note = build_note(session_id)
        error = await store.insert(note)
        if error:
            raise error if isinstance(error, Exception) else NoteCreationError(error)

        on_pinned(note.slug)
        await on_refresh()
        if is_mobile:
            navigator.push(note_path(note.slug))
        else:
            on_select(note.slug)
            refresh = getattr(navigator, "refresh", None)
            if callable(refresh):
                refresh()
    except Exception as e:
        logger.error("Error creating note: %s", e)
        NOTES_CREATED.labels(status="error").inc()
        return None

    NOTES_CREATED.labels(status="success").inc()
    logger.info("Created note %s for session %s", note.id, note.session_id)
    if notify is not None:
        notify(CREATED_MESSAGE)
    return note
