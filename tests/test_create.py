"""Unit tests for session_notes.create — the note creation workflow."""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from session_notes.create import CREATED_MESSAGE, build_note, create_note, note_path
from session_notes.models import DEFAULT_EMOJI

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Callbacks:
    """Mocks for every collaborator the workflow talks to."""

    def __init__(self, insert_result=None) -> None:
        self.store = MagicMock()
        self.store.insert = AsyncMock(return_value=insert_result)
        self.navigator = MagicMock()
        self.on_pinned = MagicMock()
        self.on_refresh = AsyncMock(return_value=None)
        self.on_select = MagicMock()
        self.notify = MagicMock()

    async def run(self, session_id="test-session", is_mobile=False):
        return await create_note(
            session_id,
            self.navigator,
            self.on_pinned,
            self.on_refresh,
            self.on_select,
            is_mobile,
            store=self.store,
            notify=self.notify,
        )

    @property
    def inserted(self):
        return self.store.insert.await_args.args[0]


# ---------------------------------------------------------------------------
# build_note
# ---------------------------------------------------------------------------


class TestBuildNote:
    def test_defaults(self):
        note = build_note("s-1")
        assert note.title == ""
        assert note.content == ""
        assert note.public is False
        assert note.category == "today"
        assert note.emoji == DEFAULT_EMOJI
        assert note.session_id == "s-1"
        assert note.slug == f"new-note-{note.id}"

    def test_unique_ids(self):
        assert build_note("s").id != build_note("s").id

    @pytest.mark.parametrize("missing", [None, ""])
    def test_substitute_session(self, missing):
        note = build_note(missing)
        assert note.session_id
        assert build_note(missing).session_id != note.session_id

    def test_note_path(self):
        assert note_path("new-note-1") == "/notes/new-note-1"


# ---------------------------------------------------------------------------
# create_note
# ---------------------------------------------------------------------------


class TestCreateNote:
    @pytest.mark.asyncio
    async def test_success_desktop(self):
        cb = _Callbacks()
        note = await cb.run()

        assert note is not None
        cb.store.insert.assert_awaited_once()
        cb.on_pinned.assert_called_once_with(note.slug)
        cb.on_refresh.assert_awaited_once()
        cb.on_select.assert_called_once_with(note.slug)
        cb.navigator.refresh.assert_called_once_with()
        cb.navigator.push.assert_not_called()
        cb.notify.assert_called_once_with(CREATED_MESSAGE)

    @pytest.mark.asyncio
    async def test_inserted_record_matches_table(self):
        cb = _Callbacks()
        await cb.run()
        row = cb.inserted.model_dump()
        assert set(row) == {
            "id",
            "slug",
            "title",
            "content",
            "public",
            "session_id",
            "category",
            "emoji",
            "created_at",
        }
        assert re.fullmatch(r"[a-zA-Z0-9-]+", row["id"])
        assert re.fullmatch(r"new-note-[a-zA-Z0-9-]+", row["slug"])
        assert row["session_id"] == "test-session"

    @pytest.mark.asyncio
    async def test_created_at_is_call_time(self):
        cb = _Callbacks()
        before = datetime.now(UTC)
        await cb.run()
        after = datetime.now(UTC)
        created = datetime.fromisoformat(cb.inserted.created_at)
        assert before <= created <= after

    @pytest.mark.asyncio
    async def test_mobile_navigates_to_detail_page(self):
        cb = _Callbacks()
        note = await cb.run(is_mobile=True)

        cb.navigator.push.assert_called_once_with(f"/notes/{note.slug}")
        assert re.search(r"/notes/new-note-", cb.navigator.push.call_args.args[0])
        cb.on_select.assert_not_called()
        cb.navigator.refresh.assert_not_called()

    @pytest.mark.asyncio
    async def test_navigator_without_refresh(self):
        cb = _Callbacks()
        cb.navigator = MagicMock(spec=["push"])
        note = await cb.run()
        assert note is not None
        cb.on_select.assert_called_once_with(note.slug)

    @pytest.mark.asyncio
    async def test_null_session_still_creates(self):
        cb = _Callbacks()
        note = await cb.run(session_id=None)

        assert note is not None
        assert cb.inserted.session_id
        assert cb.on_select.call_args.args[0] == f"new-note-{note.id}"

    @pytest.mark.asyncio
    async def test_refresh_awaited_after_pin(self):
        order: list[str] = []
        cb = _Callbacks()
        cb.on_pinned.side_effect = lambda slug: order.append("pinned")

        async def refresh():
            order.append("refresh")

        cb.on_refresh = refresh
        cb.on_select.side_effect = lambda slug: order.append("select")
        await cb.run()
        assert order == ["pinned", "refresh", "select"]

    @pytest.mark.asyncio
    async def test_store_error_stops_workflow(self, caplog):
        error = RuntimeError("Database error")
        cb = _Callbacks(insert_result=error)

        with caplog.at_level(logging.ERROR, logger="session_notes.create"):
            note = await cb.run()

        assert note is None
        cb.on_pinned.assert_not_called()
        cb.on_refresh.assert_not_awaited()
        cb.on_select.assert_not_called()
        cb.navigator.push.assert_not_called()
        cb.navigator.refresh.assert_not_called()
        cb.notify.assert_not_called()
        assert "Error creating note: Database error" in caplog.text

    @pytest.mark.asyncio
    async def test_non_exception_error_value(self, caplog):
        cb = _Callbacks(insert_result={"message": "duplicate key"})

        with caplog.at_level(logging.ERROR, logger="session_notes.create"):
            note = await cb.run()

        assert note is None
        cb.on_pinned.assert_not_called()
        assert "Error creating note:" in caplog.text
        assert "duplicate key" in caplog.text

    @pytest.mark.asyncio
    async def test_raising_store_is_logged_not_raised(self, caplog):
        cb = _Callbacks()
        cb.store.insert = AsyncMock(side_effect=ConnectionError("refused"))

        with caplog.at_level(logging.ERROR, logger="session_notes.create"):
            note = await cb.run()

        assert note is None
        cb.on_pinned.assert_not_called()
        assert "Error creating note: refused" in caplog.text

    @pytest.mark.asyncio
    async def test_failing_refresh_is_logged(self, caplog):
        cb = _Callbacks()
        cb.on_refresh = AsyncMock(side_effect=RuntimeError("refetch failed"))

        with caplog.at_level(logging.ERROR, logger="session_notes.create"):
            note = await cb.run()

        assert note is None
        cb.on_pinned.assert_called_once()
        cb.on_select.assert_not_called()
        cb.notify.assert_not_called()
        assert "refetch failed" in caplog.text
