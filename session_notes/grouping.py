"""Time-bucketed grouping and ordering of notes for the browse view."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Iterable, MutableMapping, MutableSequence, Optional

from session_notes.models import note_field

logger = logging.getLogger(__name__)

PINNED = "pinned"
PUBLIC = "public"
TODAY = "today"
YESTERDAY = "yesterday"
LAST_7_DAYS = "7"
LAST_30_DAYS = "30"
OLDER = "older"

# Always present in a grouping result, even when empty
BASE_CATEGORIES = (PINNED, TODAY, YESTERDAY, LAST_7_DAYS, LAST_30_DAYS, OLDER)

_OLDEST = datetime.min.replace(tzinfo=UTC)


def parse_created_at(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Naive values are read as UTC. Returns None for missing or
    unparseable input.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _time_bucket(created: Optional[datetime], now: datetime) -> str:
    if created is None:
        return OLDER

    try:
        days_ago = (now.date() - created.astimezone(now.tzinfo).date()).days
    except (OverflowError, ValueError):
        return OLDER
    if days_ago == 0:
        return TODAY
    if days_ago == 1:
        return YESTERDAY
    if 2 <= days_ago <= 7:
        return LAST_7_DAYS
    if 8 <= days_ago <= 30:
        return LAST_30_DAYS
    return OLDER


def group_notes_by_category(
    notes: Iterable[Any],
    pinned_slugs: set[str] | frozenset[str],
    now: Optional[datetime] = None,
) -> dict[str, list[Any]]:
    """Partition notes into pinned, public, and recency buckets.

    Each note lands in the first bucket it qualifies for: pinned, then
    public, then today / yesterday / last 7 days / last 30 days / older,
    measured in calendar days of *now*'s timezone.
    """
    if now is None or now.tzinfo is None:
        now = (now or datetime.now()).astimezone()
    grouped: dict[str, list[Any]] = {name: [] for name in BASE_CATEGORIES}

    for note in notes:
        if note_field(note, "slug") in pinned_slugs:
            category = PINNED
        elif note_field(note, "public", False) is True:
            category = PUBLIC
        else:
            created = parse_created_at(note_field(note, "created_at"))
            category = _time_bucket(created, now)
        grouped.setdefault(category, []).append(note)

    return grouped


def _sort_key(note: Any) -> datetime:
    return parse_created_at(note_field(note, "created_at")) or _OLDEST


def sort_grouped_notes(
    grouped: MutableMapping[str, MutableSequence[Any]],
) -> None:
    """Order every bucket newest first, in place.

    Ties keep their relative order. Notes without a readable timestamp
    go last.
    """
    for category, notes in grouped.items():
        if not notes:
            continue
        notes[:] = sorted(notes, key=_sort_key, reverse=True)
        logger.debug("sorted %d notes in '%s'", len(notes), category)
