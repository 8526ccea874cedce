"""
Watch later: a per-user set of saved videos, newest first, with optional reminders.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import core.config as config
from core.entities import EntityRef
from core.errors import ForbiddenError, NotFoundError, ValidationIssue
from core.models import ActivityType, EntityKind, User, Video, WatchLaterList, utcnow
from core.pagination import offset_for, total_pages
from core.services.activity import ActivityRecorder
from core.services.shared import get_video_or_404, serialize_video, users_by_id
from core.services.video_lists import (
    UNCHANGED,
    entry_time,
    find_entry,
    load_entries,
    remove_entries,
    stamp,
    upsert_to_front,
    write_list,
)
from core.validators import (
    parse_datetime,
    validate_choice,
    validate_object_id,
    validate_object_ids,
    validate_optional_text,
    validate_page,
)

OWNER_ATTR = "owner_id"
SORT_OPTIONS = ("recent", "oldest", "title", "duration", "views")
FILTER_OPTIONS = ("all", "today", "week", "month")
DUPLICATE_MESSAGE = "Video is already in your watch later list"
MISSING_MESSAGE = "Video not found in watch later list"


def _serialize_entry(entry: dict, video: Video, owner: Optional[User]) -> dict:
    return {
        "video": serialize_video(video, owner),
        "addedAt": entry.get("added_at"),
        "remindAt": entry.get("remind_at"),
    }


def _joined_entries(db, entries: list[dict]) -> list[tuple[dict, Video, Optional[User]]]:
    """Entries paired with their video and owner, skipping videos that no longer exist."""
    if not entries:
        return []
    videos = {
        video.id: video
        for video in db.query(Video).filter(Video.id.in_([entry["video"] for entry in entries])).all()
    }
    owners = users_by_id(db, (video.owner_id for video in videos.values()))
    joined = []
    for entry in entries:
        video = videos.get(entry["video"])
        if video is not None:
            joined.append((entry, video, owners.get(video.owner_id)))
    return joined


def add_to_watch_later(db, user: User, video_id, *, recorder: ActivityRecorder) -> dict:
    video = get_video_or_404(db, video_id)
    if not video.is_published:
        raise ForbiddenError("Cannot add unpublished video to watch later")

    fields = {"added_at": stamp(utcnow()), "remind_at": None}

    def mutation(entries):
        updated, _ = upsert_to_front(
            entries,
            video.id,
            fields,
            cap=config.WATCH_LATER_MAX_ENTRIES,
            duplicate_error=DUPLICATE_MESSAGE,
        )
        return updated, {
            "video": _serialize_entry(updated[0], video, db.get(User, video.owner_id)),
            "totalVideos": len(updated),
        }

    result = write_list(db, WatchLaterList, OWNER_ATTR, user.id, mutation)
    recorder.record(
        user.id,
        ActivityType.watchlater_add,
        entity=EntityRef(kind=EntityKind.video, id=video.id),
        metadata={"title": video.title, "thumbnail": video.thumbnail},
    )
    return result


def _sort_key(sort_by: str):
    if sort_by == "title":
        return lambda item: (item[1].title or "").lower()
    if sort_by == "duration":
        return lambda item: -(item[1].duration or 0)
    if sort_by == "views":
        return lambda item: -(item[1].views or 0)
    return lambda item: item[0].get("added_at") or ""


def _window_start(filter_by: str):
    now = utcnow()
    if filter_by == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if filter_by == "week":
        return now - timedelta(days=7)
    if filter_by == "month":
        return now - timedelta(days=30)
    return None


def list_watch_later(
    db,
    user_id: str,
    *,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
    sort_by: str = "recent",
    filter_by: str = "all",
    search: Optional[str] = None,
) -> dict:
    """
    Search, time-window filter and sort over the joined list at read time.
    Stored order is never changed by reads.
    """
    page, limit = validate_page(page, limit, config.WATCH_LATER_PAGE_SIZE_MAX)
    validate_choice(sort_by, "sortBy", SORT_OPTIONS)
    validate_choice(filter_by, "filter", FILTER_OPTIONS)
    validate_optional_text(search, "search", config.MAX_SEARCH_LENGTH)
    search = search or ""
    needle = search.strip().lower()

    joined = _joined_entries(db, load_entries(db, WatchLaterList, OWNER_ATTR, user_id))

    if needle:
        joined = [
            item for item in joined
            if needle in (item[1].title or "").lower()
            or needle in (item[1].description or "").lower()
            or (item[2] is not None and needle in (item[2].user_name or "").lower())
        ]

    since = _window_start(filter_by)
    if since is not None:
        joined = [item for item in joined if (entry_time(item[0].get("added_at")) or since) >= since]

    if sort_by == "recent":
        joined.sort(key=_sort_key(sort_by), reverse=True)
    else:
        joined.sort(key=_sort_key(sort_by))

    total = len(joined)
    pages = total_pages(total, limit)
    start = offset_for(page, limit)
    return {
        "videos": [_serialize_entry(*item) for item in joined[start:start + limit]],
        "pagination": {
            "currentPage": page,
            "totalPages": pages,
            "totalVideos": total,
            "hasNextPage": page < pages,
            "hasPrevPage": page > 1,
            "videosPerPage": limit,
        },
        "filters": {"sortBy": sort_by, "filter": filter_by, "search": search},
    }


def remove_from_watch_later(db, user_id: str, video_id) -> dict:
    video_id = validate_object_id(video_id, "videoId", "video")

    def mutation(entries):
        if find_entry(entries, video_id) < 0:
            raise NotFoundError(MISSING_MESSAGE)
        kept, _ = remove_entries(entries, [video_id])
        return kept, {"removed": True, "totalVideos": len(kept)}

    return write_list(db, WatchLaterList, OWNER_ATTR, user_id, mutation)


def remove_many_from_watch_later(db, user_id: str, video_ids) -> dict:
    video_ids = validate_object_ids(video_ids, "videoIds", "video")

    def mutation(entries):
        kept, removed = remove_entries(entries, video_ids)
        return (kept if removed else UNCHANGED), {"removedCount": removed, "totalVideos": len(kept)}

    return write_list(db, WatchLaterList, OWNER_ATTR, user_id, mutation)


def clear_watch_later(db, user_id: str) -> dict:
    def mutation(entries):
        return ([] if entries else UNCHANGED), {"videos": [], "clearedCount": len(entries)}

    return write_list(db, WatchLaterList, OWNER_ATTR, user_id, mutation)


def watch_later_stats(db, user_id: str) -> dict:
    entries = load_entries(db, WatchLaterList, OWNER_ATTR, user_id)
    now = utcnow()
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)
    added = [value for value in (entry_time(entry.get("added_at")) for entry in entries) if value is not None]
    return {
        "totalVideos": len(entries),
        "oldestVideo": min(added).isoformat() if added else None,
        "newestVideo": max(added).isoformat() if added else None,
        "videosThisWeek": sum(1 for value in added if value >= week_ago),
        "videosThisMonth": sum(1 for value in added if value >= month_ago),
    }


def set_reminder(db, user_id: str, video_id, remind_at) -> dict:
    """Set or clear (remind_at=None) the reminder on one entry; the entry keeps its position."""
    video_id = validate_object_id(video_id, "videoId", "video")
    when = parse_datetime(remind_at, "remindAt")
    if when is not None and when <= utcnow():
        raise ValidationIssue("Reminder time must be in the future", field="remindAt", error_type="out_of_range")

    def mutation(entries):
        index = find_entry(entries, video_id)
        if index < 0:
            raise NotFoundError(MISSING_MESSAGE)
        entries[index]["remind_at"] = stamp(when) if when else None
        return entries, entries[index]

    entry = write_list(db, WatchLaterList, OWNER_ATTR, user_id, mutation)
    video = db.get(Video, video_id)
    if video is None:
        return {"video": {"video": {"id": video_id}, "addedAt": entry.get("added_at"), "remindAt": entry.get("remind_at")}}
    return {"video": _serialize_entry(entry, video, db.get(User, video.owner_id))}
