"""
Watch history: a recency log of watched videos with playback position.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from sqlalchemy import or_

import core.config as config
from core.entities import EntityRef
from core.errors import NotFoundError
from core.models import ActivityType, EntityKind, User, Video, WatchHistory, utcnow
from core.pagination import offset_for, page_summary
from core.services.activity import ActivityRecorder
from core.services.shared import get_video_or_404, serialize_video, text_matches, users_by_id
from core.services.video_lists import (
    UNCHANGED,
    compute_progress,
    entry_time,
    find_entry,
    load_entries,
    remove_entries,
    stamp,
    upsert_to_front,
    write_list,
)
from core.validators import (
    validate_non_negative,
    validate_object_id,
    validate_object_ids,
    validate_optional_text,
    validate_page,
)

OWNER_ATTR = "user_id"


def add_to_history(
    db,
    user: User,
    video_id,
    *,
    timestamp=0,
    duration=0,
    recorder: ActivityRecorder,
) -> dict:
    """Record a watch (or a new playback position) and move the video to the front."""
    video = get_video_or_404(db, video_id)
    playback = validate_non_negative(timestamp if timestamp is not None else 0, "timestamp")
    supplied = validate_non_negative(duration if duration is not None else 0, "duration")
    video_duration = supplied or float(video.duration or 0)

    fields = {
        "watched_at": stamp(utcnow()),
        "playback_timestamp": playback,
        "video_duration": video_duration,
    }

    def mutation(entries):
        updated, existed = upsert_to_front(entries, video.id, fields, cap=config.HISTORY_MAX_ENTRIES)
        return updated, existed

    rewatch = write_list(db, WatchHistory, OWNER_ATTR, user.id, mutation)

    recorder.record(
        user.id,
        ActivityType.video_watch,
        entity=EntityRef(kind=EntityKind.video, id=video.id),
        metadata={"title": video.title, "thumbnail": video.thumbnail, "timestamp": playback},
    )
    config.logger.debug(
        "History entry written",
        extra={"user_id": user.id, "video_id": video.id, "rewatch": rewatch},
    )
    return {"added": True, "playbackTimestamp": playback, "videoDuration": video_duration}


def get_history(
    db,
    user_id: str,
    *,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
    search: Optional[str] = None,
) -> dict:
    """Page of history in recency order, each video joined with progress."""
    page, limit = validate_page(page, limit, config.MAX_PAGE_SIZE)
    validate_optional_text(search, "search", config.MAX_SEARCH_LENGTH)
    search = (search or "").strip()

    entries = load_entries(db, WatchHistory, OWNER_ATTR, user_id)
    if not entries:
        return {"videos": [], "pagination": page_summary(total=0, page=page, limit=limit)}

    video_ids = [entry["video"] for entry in entries]
    query = db.query(Video.id).filter(Video.id.in_(video_ids))
    if search:
        query = query.filter(or_(text_matches(Video.title, search), text_matches(Video.description, search)))
    matching = {video_id for (video_id,) in query.all()}

    ordered = [entry for entry in entries if entry["video"] in matching]
    start = offset_for(page, limit)
    page_entries = ordered[start:start + limit]

    videos = {
        video.id: video
        for video in db.query(Video).filter(Video.id.in_([entry["video"] for entry in page_entries])).all()
    }
    owners = users_by_id(db, (video.owner_id for video in videos.values()))

    items = []
    for entry in page_entries:
        video = videos.get(entry["video"])
        if video is None:
            continue
        playback = entry.get("playback_timestamp") or 0
        video_duration = entry.get("video_duration") or 0
        item = serialize_video(video, owners.get(video.owner_id))
        item.update(
            {
                "watchedAt": entry.get("watched_at"),
                "playbackTimestamp": playback,
                "videoDuration": video_duration,
                "progress": compute_progress(playback, video_duration),
            }
        )
        items.append(item)

    return {"videos": items, "pagination": page_summary(total=len(ordered), page=page, limit=limit)}


def remove_from_history(db, user_id: str, video_id) -> dict:
    video_id = validate_object_id(video_id, "videoId", "video")

    def mutation(entries):
        if find_entry(entries, video_id) < 0:
            raise NotFoundError("Video not found in history")
        kept, _ = remove_entries(entries, [video_id])
        return kept, {"removed": True}

    return write_list(db, WatchHistory, OWNER_ATTR, user_id, mutation)


def remove_many_from_history(db, user_id: str, video_ids) -> dict:
    video_ids = validate_object_ids(video_ids, "videoIds", "video")

    def mutation(entries):
        kept, removed = remove_entries(entries, video_ids)
        return (kept if removed else UNCHANGED), {"removedCount": removed}

    return write_list(db, WatchHistory, OWNER_ATTR, user_id, mutation)


def clear_history(db, user_id: str) -> dict:
    def mutation(entries):
        return ([] if entries else UNCHANGED), {"cleared": True, "clearedCount": len(entries)}

    return write_list(db, WatchHistory, OWNER_ATTR, user_id, mutation)


def history_stats(db, user_id: str) -> dict:
    entries = load_entries(db, WatchHistory, OWNER_ATTR, user_id)
    now = utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_ago = today - timedelta(days=7)
    month_ago = today - timedelta(days=30)

    watched = [entry_time(entry.get("watched_at")) for entry in entries]
    watched = [value for value in watched if value is not None]
    return {
        "totalVideos": len(entries),
        "todayCount": sum(1 for value in watched if value >= today),
        "weekCount": sum(1 for value in watched if value >= week_ago),
        "monthCount": sum(1 for value in watched if value >= month_ago),
        "oldestWatch": entries[-1].get("watched_at") if entries else None,
        "newestWatch": entries[0].get("watched_at") if entries else None,
    }
