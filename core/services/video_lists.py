"""
Per-user bounded video lists (watch history, watch later).

Each list is a single row holding an ordered JSON array of entries, newest
first. The list-surgery functions here are pure; write_list() applies one of
them under optimistic concurrency using the row's version column.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Callable, Iterable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

import core.config as config
from core.errors import ConflictError
from core.services.shared import logger

T = TypeVar("T")

# Returned by a mutation that decided no write is needed.
UNCHANGED = None


def entry_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def stamp(value: datetime) -> str:
    return value.isoformat()


def find_entry(entries: list[dict], video_id: str) -> int:
    for index, entry in enumerate(entries):
        if entry.get("video") == video_id:
            return index
    return -1


def truncate(entries: list[dict], cap: int) -> list[dict]:
    """Drop the oldest entries past the cap."""
    return entries[:cap] if len(entries) > cap else entries


def upsert_to_front(
    entries: list[dict],
    video_id: str,
    fields: dict,
    *,
    cap: int,
    duplicate_error: Optional[str] = None,
) -> tuple[list[dict], bool]:
    """
    Put the entry for video_id at index 0, updating it in place if present.

    With duplicate_error set, an existing entry is a conflict instead of a
    move-to-front. Returns the new list and whether the video was already there.
    """
    index = find_entry(entries, video_id)
    if index >= 0:
        if duplicate_error is not None:
            raise ConflictError(duplicate_error)
        moved = {**entries[index], **fields}
        result = [moved] + entries[:index] + entries[index + 1:]
        existed = True
    else:
        result = [{"video": video_id, **fields}] + list(entries)
        existed = False
    return truncate(result, cap), existed


def remove_entries(entries: list[dict], video_ids: Iterable[str]) -> tuple[list[dict], int]:
    excluded = set(video_ids)
    kept = [entry for entry in entries if entry.get("video") not in excluded]
    return kept, len(entries) - len(kept)


def compute_progress(playback_timestamp, video_duration) -> int:
    """Percentage watched, clamped to [0, 100]; 0 when the duration is unknown."""
    if not video_duration or video_duration <= 0:
        return 0
    ratio = max(0.0, float(playback_timestamp or 0)) / float(video_duration) * 100
    return min(100, int(math.floor(ratio + 0.5)))


def load_entries(db, model, owner_attr: str, owner_id: str) -> list[dict]:
    doc = db.query(model).filter(getattr(model, owner_attr) == owner_id).first()
    return list(doc.videos or []) if doc is not None else []


def write_list(
    db,
    model,
    owner_attr: str,
    owner_id: str,
    mutation: Callable[[list[dict]], tuple[Optional[list[dict]], T]],
) -> T:
    """
    Read-modify-write the owner's list with compare-and-swap retries.

    mutation receives a private copy of the entries and returns
    (new_entries, result); new_entries of UNCHANGED skips the write. Errors
    raised by mutation propagate without writing. A concurrent writer bumps
    the version (or wins the first insert) and the whole cycle is retried.
    """
    owner_column = getattr(model, owner_attr)
    attempts = max(0, config.LIST_WRITE_MAX_RETRIES) + 1
    for attempt in range(1, attempts + 1):
        doc = db.query(model).filter(owner_column == owner_id).first()
        entries = [dict(entry) for entry in (doc.videos or [])] if doc is not None else []
        new_entries, result = mutation(entries)
        if new_entries is UNCHANGED:
            return result

        if doc is None:
            db.add(model(**{owner_attr: owner_id, "videos": new_entries}))
        else:
            doc.videos = new_entries
        try:
            db.commit()
            return result
        except (StaleDataError, IntegrityError) as exc:
            db.rollback()
            db.expire_all()
            logger.info(
                "List write conflict",
                extra={
                    "list": model.__tablename__,
                    "owner_id": owner_id,
                    "attempt": attempt,
                    "error": type(exc).__name__,
                },
            )
    raise ConflictError("List was modified concurrently, please retry")
