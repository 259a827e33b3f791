"""PostgreSQL note store.

Uses SQLAlchemy async engine with asyncpg driver. PostgreSQL being
unavailable is handled gracefully — reads come back empty and inserts
report an error value.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from session_notes.models import Note

logger = logging.getLogger(__name__)

NOTE_COLUMNS = (
    "id",
    "slug",
    "title",
    "content",
    "public",
    "session_id",
    "category",
    "emoji",
    "created_at",
)

_CREATE_TABLE_STMTS = [
    """CREATE TABLE IF NOT EXISTS notes (
        id TEXT PRIMARY KEY,
        slug TEXT NOT NULL UNIQUE,
        title TEXT NOT NULL DEFAULT '',
        content TEXT NOT NULL DEFAULT '',
        public BOOLEAN NOT NULL DEFAULT FALSE,
        session_id TEXT NOT NULL,
        category TEXT,
        emoji TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )""",
    "CREATE INDEX IF NOT EXISTS idx_notes_session ON notes(session_id)",
    "CREATE INDEX IF NOT EXISTS idx_notes_public ON notes(public)",
]

_SELECT = f"SELECT {', '.join(NOTE_COLUMNS)} FROM notes"


class StoreUnavailableError(RuntimeError):
    """The database connection was never established or has been closed."""


def _row_to_note(row: Any) -> Note:
    """Build a Note from a result row in NOTE_COLUMNS order."""
    values = dict(zip(NOTE_COLUMNS, row))
    values["id"] = str(values["id"])
    created = values["created_at"]
    if isinstance(created, datetime):
        values["created_at"] = created.isoformat()
    return Note.model_validate({k: v for k, v in values.items() if v is not None})


class NoteDatabase:
    """Async PostgreSQL client for the notes table."""

    def __init__(self, database_url: str) -> None:
        self._url = database_url
        self._engine: Optional[AsyncEngine] = None

    @property
    def available(self) -> bool:
        """Whether the PostgreSQL connection is active."""
        return self._engine is not None

    async def init(self) -> None:
        """Create engine, connection pool, and tables.

        Non-fatal if PostgreSQL is unavailable.
        """
        try:
            self._engine = create_async_engine(self._url, pool_size=5, max_overflow=10)
            async with self._engine.begin() as conn:
                for stmt in _CREATE_TABLE_STMTS:
                    await conn.execute(text(stmt))
            logger.info("PostgreSQL connected — notes table ready")
        except Exception as e:
            logger.warning("PostgreSQL unavailable, note store disabled: %s", e)
            self._engine = None

    async def close(self) -> None:
        """Dispose of the engine and connection pool."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, note: Note) -> Optional[Exception]:
        """Insert one note. Returns the error instead of raising it."""
        if not self._engine:
            return StoreUnavailableError("PostgreSQL is not connected")

        try:
            async with self._engine.begin() as conn:
                await conn.execute(
                    text(
                        f"INSERT INTO notes ({', '.join(NOTE_COLUMNS)}) "
                        "VALUES (:id, :slug, :title, :content, :public, "
                        ":session_id, :category, :emoji, :created_at)"
                    ),
                    {
                        **note.model_dump(),
                        "created_at": datetime.fromisoformat(note.created_at),
                    },
                )
        except Exception as e:
            logger.warning("Failed to insert note %s: %s", note.id, e)
            return e
        return None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _fetch(
        self, where: str = "", params: dict[str, Any] | None = None
    ) -> list[Note]:
        if not self._engine:
            return []

        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(text(f"{_SELECT}{where}"), params or {})
                return [_row_to_note(row) for row in result.fetchall()]
        except Exception as e:
            logger.warning("Failed to read notes: %s", e)
            return []

    async def get_all(self) -> list[Note]:
        """Every note in the table, in no particular order."""
        return await self._fetch()

    async def get_public(self) -> list[Note]:
        """Notes shared with every session."""
        return await self._fetch(" WHERE public = :public", {"public": True})

    async def get_by_session(self, session_id: str) -> list[Note]:
        """Notes owned by *session_id*."""
        return await self._fetch(
            " WHERE session_id = :session_id", {"session_id": session_id}
        )
