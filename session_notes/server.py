"""
Session Notes MCP Server

Exposes tools for searching, browsing, and creating session-scoped notes
via the Model Context Protocol.  Runs with SSE transport on the configured
host and port.
"""

import logging
import time
from datetime import UTC, datetime
from typing import Optional

from mcp.server.fastmcp import FastMCP

from session_notes import grouping, search
from session_notes.config import settings
from session_notes.create import CREATED_MESSAGE
from session_notes.create import create_note as run_create_note
from session_notes.database import NoteDatabase
from session_notes.metrics import SEARCH_REQUESTS, VIEW_DURATION
from session_notes.models import Note
from session_notes.storage import NoteFileStorage

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# MCP server + store
# ---------------------------------------------------------------------------
mcp = FastMCP("session-notes", host=settings.host, port=settings.port)

_store: NoteFileStorage | NoteDatabase | None = None
# In-process pin cache: slugs pinned on creation, per owning session.
# Not persisted; the least recently pinned session is dropped past the cap.
MAX_PINNED_SESSIONS = 1000
_pinned: dict[str, set[str]] = {}


async def get_store() -> NoteFileStorage | NoteDatabase:
    """Return the configured store, connecting on first use."""
    global _store
    if _store is None:
        if settings.store_backend == "postgres":
            db = NoteDatabase(settings.database_url)
            await db.init()
            _store = db
        else:
            _store = NoteFileStorage(settings.storage_path)
        logger.info("Using %s note store", settings.store_backend)
    return _store


async def _session_view(session_id: str) -> list[Note]:
    """Own notes followed by public notes, without duplicates."""
    store = await get_store()
    seen: set[str] = set()
    notes: list[Note] = []
    for note in [*await store.get_by_session(session_id), *await store.get_public()]:
        if note.id not in seen:
            seen.add(note.id)
            notes.append(note)
    return notes


def _remember_pins(session_id: str, slugs: list[str]) -> None:
    """Add *slugs* to the session's pins, evicting the oldest sessions."""
    pins = _pinned.pop(session_id, set())
    pins.update(slugs)
    _pinned[session_id] = pins
    while len(_pinned) > MAX_PINNED_SESSIONS:
        _pinned.pop(next(iter(_pinned)))


class ToolNavigator:
    """Records navigation requested by the creation workflow."""

    def __init__(self) -> None:
        self.paths: list[str] = []
        self.refreshes = 0

    def push(self, path: str) -> None:
        self.paths.append(path)

    def refresh(self) -> None:
        self.refreshes += 1


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def search_notes(query: str, session_id: str) -> dict:
    """Search notes by keyword (substring match on title and content).

    Use this tool when the user wants to find notes related to a specific
    topic or keyword. Only the session's own notes and public notes are
    searched. An empty query returns nothing.

    Args:
        query: The search string to match against note titles and content.
        session_id: Session of the user performing the search.

    Returns:
        Dictionary with matching notes and their count.
    """
    start = time.perf_counter()
    store = await get_store()
    results = search.search_notes(await store.get_all(), query, session_id)
    VIEW_DURATION.labels(view="search").observe(time.perf_counter() - start)
    SEARCH_REQUESTS.labels(empty_query=str(query == "").lower()).inc()
    logger.info("Tool search_notes invoked — query='%s', found=%d", query, len(results))
    return {
        "count": len(results),
        "notes": [n.model_dump() for n in results],
    }


@mcp.tool()
async def list_notes(session_id: str, pinned: Optional[list[str]] = None) -> dict:
    """List a session's notes grouped by recency, newest first.

    Use this tool when the user wants to browse their notes. Notes are
    grouped into pinned, public, today, yesterday, last 7 days, last 30
    days, and older.

    Args:
        session_id: Session whose notes (plus public notes) are listed.
        pinned: Optional slugs to show in the pinned group.

    Returns:
        Dictionary with the total count and the notes per group.
    """
    start = time.perf_counter()
    notes = await _session_view(session_id)
    pinned_slugs = set(pinned or []) | _pinned.get(session_id, set())
    groups = grouping.group_notes_by_category(notes, pinned_slugs, now=settings.now())
    grouping.sort_grouped_notes(groups)
    VIEW_DURATION.labels(view="list").observe(time.perf_counter() - start)
    logger.info("Tool list_notes invoked — session=%s, found=%d", session_id, len(notes))
    return {
        "count": len(notes),
        "groups": {
            name: [n.model_dump() for n in members] for name, members in groups.items()
        },
    }


@mcp.tool()
async def get_public_notes() -> dict:
    """Retrieve every note shared publicly.

    Returns:
        Dictionary with the public notes and their count.
    """
    store = await get_store()
    notes = await store.get_public()
    logger.info("Tool get_public_notes invoked — found=%d", len(notes))
    return {
        "count": len(notes),
        "notes": [n.model_dump() for n in notes],
    }


@mcp.tool()
async def create_note(session_id: Optional[str] = None, is_mobile: bool = False) -> dict:
    """Create a new, empty private note and pin it.

    Use this tool when the user wants to start a new note. A session id is
    generated when none is given.

    Args:
        session_id: Owning session, if known.
        is_mobile: Whether the caller navigates to a detail page instead of
            selecting the note in place.

    Returns:
        Dictionary with the new note's id, slug, and where to open it, or
        an error message.
    """
    store = await get_store()
    navigator = ToolNavigator()
    pinned: list[str] = []
    selected: list[Optional[str]] = []

    async def refresh() -> None:
        logger.debug("Refresh requested after note creation")

    note = await run_create_note(
        session_id,
        navigator,
        pinned.append,
        refresh,
        selected.append,
        is_mobile,
        store=store,
    )
    if note is None:
        return {"error": "Error creating note"}

    _remember_pins(note.session_id, pinned)
    logger.info("Tool create_note invoked — id=%s", note.id)
    response = {
        "note_id": note.id,
        "slug": note.slug,
        "session_id": note.session_id,
        "message": CREATED_MESSAGE,
    }
    if is_mobile:
        response["path"] = navigator.paths[-1]
    else:
        response["selected"] = selected[-1]
    return response


@mcp.tool()
async def health_check() -> dict:
    """Check whether the Session Notes server is healthy.

    Use this tool to verify the server is running and responsive.

    Returns:
        Dictionary with server status, store backend, note count, and timestamp.
    """
    logger.info("Tool health_check invoked")
    store = await get_store()
    return {
        "status": "healthy",
        "server": "session-notes",
        "backend": settings.store_backend,
        "total_notes": len(await store.get_all()),
        "timestamp": datetime.now(UTC).isoformat(),
    }


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
def main() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )
    logger.info("Starting Session Notes MCP server on port %d ...", settings.port)
    mcp.run(transport="sse")


if __name__ == "__main__":
    main()
