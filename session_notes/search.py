"""Session-scoped note search.

A viewer sees their own notes plus every public note. Matching is a plain
case-insensitive substring test on title and content; results keep the
input order.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from session_notes.models import note_field

logger = logging.getLogger(__name__)


def is_visible(note: Any, viewer_session_id: str) -> bool:
    """Whether *viewer_session_id* may read *note*."""
    return (
        note_field(note, "session_id") == viewer_session_id
        or note_field(note, "public", False) is True
    )


def matches(note: Any, query: str) -> bool:
    """Whether *query* appears in the note's title or content (case-insensitive)."""
    needle = query.casefold()
    title = str(note_field(note, "title", ""))
    content = str(note_field(note, "content", ""))
    return needle in title.casefold() or needle in content.casefold()


def search_notes(
    notes: Iterable[Any], query: str, viewer_session_id: str
) -> list[Any]:
    """Return the notes visible to the viewer that match *query*.

    An empty query returns no results rather than every note.
    """
    if query == "":
        return []

    results = [
        n for n in notes if is_visible(n, viewer_session_id) and matches(n, query)
    ]
    logger.debug(
        "search query='%s' session=%s found=%d", query, viewer_session_id, len(results)
    )
    return results
