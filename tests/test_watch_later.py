import uuid
from datetime import timedelta

import pytest

import core.config as config
from core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationIssue
from core.models import Activity, Video, WatchLaterList, utcnow
from core.services import watch_later
from core.services.activity import NullActivityRecorder


@pytest.fixture
def saved(db_session, make_user, make_video):
    """A user with three saved videos from two channels, most recent last."""
    user = make_user("alice")
    cooks = make_user("cooks")
    coders = make_user("coders")
    videos = [
        make_video(cooks, "Bread at home", duration=600.0, views=10),
        make_video(coders, "async python", duration=1800.0, views=500),
        make_video(coders, "Zig for beginners", duration=300.0, views=50),
    ]
    for video in videos:
        watch_later.add_to_watch_later(db_session, user, video.id, recorder=NullActivityRecorder())
    return user, videos


def _titles(result):
    return [item["video"]["title"] for item in result["videos"]]


def test_add_returns_entry_and_records_activity(db_session, make_user, make_video, recorder):
    user = make_user("alice")
    video = make_video(make_user("owner"), "Watch me")

    result = watch_later.add_to_watch_later(db_session, user, video.id, recorder=recorder)

    assert result["totalVideos"] == 1
    assert result["video"]["video"]["id"] == video.id
    assert result["video"]["video"]["owner"]["userName"] == "owner"
    assert result["video"]["remindAt"] is None
    assert db_session.query(Activity).filter(Activity.type == "watchlater_add").count() == 1


def test_watch_later_is_capped(db_session, make_user, make_video, monkeypatch):
    monkeypatch.setattr(config, "WATCH_LATER_MAX_ENTRIES", 3)
    user = make_user("alice")
    owner = make_user("owner")
    videos = [make_video(owner, f"Video {index}") for index in range(4)]
    for video in videos:
        result = watch_later.add_to_watch_later(db_session, user, video.id, recorder=NullActivityRecorder())

    assert result["totalVideos"] == 3
    assert result["video"]["video"]["id"] == videos[-1].id
    doc = db_session.query(WatchLaterList).filter(WatchLaterList.owner_id == user.id).one()
    assert [entry["video"] for entry in doc.videos] == [video.id for video in reversed(videos[1:])]
    assert _titles(watch_later.list_watch_later(db_session, user.id)) == ["Video 3", "Video 2", "Video 1"]


def test_duplicate_add_conflicts_without_changing_list(db_session, saved):
    user, videos = saved

    with pytest.raises(ConflictError) as exc:
        watch_later.add_to_watch_later(db_session, user, videos[0].id, recorder=NullActivityRecorder())

    assert str(exc.value) == "Video is already in your watch later list"
    doc = db_session.query(WatchLaterList).filter(WatchLaterList.owner_id == user.id).one()
    assert [entry["video"] for entry in doc.videos] == [video.id for video in reversed(videos)]


def test_unpublished_video_is_forbidden(db_session, make_user, make_video):
    user = make_user("alice")
    draft = make_video(make_user("owner"), "Draft", is_published=False)

    with pytest.raises(ForbiddenError):
        watch_later.add_to_watch_later(db_session, user, draft.id, recorder=NullActivityRecorder())
    with pytest.raises(NotFoundError):
        watch_later.add_to_watch_later(db_session, user, str(uuid.uuid4()), recorder=NullActivityRecorder())


def test_list_sorts_without_reordering_storage(db_session, saved):
    user, videos = saved

    assert _titles(watch_later.list_watch_later(db_session, user.id)) == [
        "Zig for beginners",
        "async python",
        "Bread at home",
    ]
    assert _titles(watch_later.list_watch_later(db_session, user.id, sort_by="oldest"))[0] == "Bread at home"
    assert _titles(watch_later.list_watch_later(db_session, user.id, sort_by="title")) == [
        "async python",
        "Bread at home",
        "Zig for beginners",
    ]
    assert _titles(watch_later.list_watch_later(db_session, user.id, sort_by="duration"))[0] == "async python"
    assert _titles(watch_later.list_watch_later(db_session, user.id, sort_by="views"))[0] == "async python"

    doc = db_session.query(WatchLaterList).filter(WatchLaterList.owner_id == user.id).one()
    assert doc.videos[0]["video"] == videos[2].id


def test_list_search_matches_owner_user_name(db_session, saved):
    user, _ = saved

    result = watch_later.list_watch_later(db_session, user.id, search="CODERS")

    assert sorted(_titles(result)) == ["Zig for beginners", "async python"]
    assert result["filters"] == {"sortBy": "recent", "filter": "all", "search": "CODERS"}
    assert result["pagination"]["totalVideos"] == 2


def test_list_time_window_filter(db_session, make_user):
    user = make_user("alice")
    owner = make_user("owner")
    now = utcnow()

    fresh = Video(owner_id=owner.id, title="Fresh", duration=1.0)
    stale = Video(owner_id=owner.id, title="Stale", duration=1.0)
    db_session.add_all([fresh, stale])
    db_session.commit()
    db_session.add(
        WatchLaterList(
            owner_id=user.id,
            videos=[
                {"video": fresh.id, "added_at": (now - timedelta(days=2)).isoformat(), "remind_at": None},
                {"video": stale.id, "added_at": (now - timedelta(days=40)).isoformat(), "remind_at": None},
            ],
        )
    )
    db_session.commit()

    assert _titles(watch_later.list_watch_later(db_session, user.id, filter_by="week")) == ["Fresh"]
    assert _titles(watch_later.list_watch_later(db_session, user.id, filter_by="month")) == ["Fresh"]
    assert _titles(watch_later.list_watch_later(db_session, user.id, filter_by="all")) == ["Fresh", "Stale"]

    stats = watch_later.watch_later_stats(db_session, user.id)
    assert stats["totalVideos"] == 2
    assert stats["videosThisWeek"] == 1
    assert stats["videosThisMonth"] == 1


def test_list_validates_options(db_session, make_user):
    user = make_user("alice")

    with pytest.raises(ValidationIssue):
        watch_later.list_watch_later(db_session, user.id, limit=51)
    with pytest.raises(ValidationIssue):
        watch_later.list_watch_later(db_session, user.id, sort_by="random")
    with pytest.raises(ValidationIssue):
        watch_later.list_watch_later(db_session, user.id, filter_by="year")


def test_pagination_block(db_session, saved):
    user, _ = saved

    result = watch_later.list_watch_later(db_session, user.id, page=1, limit=2)

    assert result["pagination"] == {
        "currentPage": 1,
        "totalPages": 2,
        "totalVideos": 3,
        "hasNextPage": True,
        "hasPrevPage": False,
        "videosPerPage": 2,
    }


def test_remove_and_clear(db_session, saved):
    user, videos = saved

    assert watch_later.remove_from_watch_later(db_session, user.id, videos[0].id) == {"removed": True, "totalVideos": 2}
    with pytest.raises(NotFoundError) as exc:
        watch_later.remove_from_watch_later(db_session, user.id, videos[0].id)
    assert str(exc.value) == "Video not found in watch later list"

    result = watch_later.remove_many_from_watch_later(db_session, user.id, [videos[1].id, videos[0].id])
    assert result == {"removedCount": 1, "totalVideos": 1}

    assert watch_later.clear_watch_later(db_session, user.id) == {"videos": [], "clearedCount": 1}
    assert watch_later.clear_watch_later(db_session, user.id) == {"videos": [], "clearedCount": 0}


def test_reminder_set_and_cleared_in_place(db_session, saved):
    user, videos = saved
    remind_at = (utcnow() + timedelta(days=1)).replace(microsecond=0)

    result = watch_later.set_reminder(db_session, user.id, videos[0].id, remind_at.isoformat() + "Z")

    assert result["video"]["remindAt"] == remind_at.isoformat()
    doc = db_session.query(WatchLaterList).filter(WatchLaterList.owner_id == user.id).one()
    assert doc.videos[-1]["video"] == videos[0].id
    assert doc.videos[-1]["remind_at"] == remind_at.isoformat()

    cleared = watch_later.set_reminder(db_session, user.id, videos[0].id, None)
    assert cleared["video"]["remindAt"] is None


def test_reminder_rejects_past_and_missing(db_session, saved):
    user, videos = saved
    past = (utcnow() - timedelta(hours=1)).isoformat()

    with pytest.raises(ValidationIssue) as exc:
        watch_later.set_reminder(db_session, user.id, videos[0].id, past)
    assert str(exc.value) == "Reminder time must be in the future"

    future = (utcnow() + timedelta(hours=1)).isoformat()
    with pytest.raises(NotFoundError):
        watch_later.set_reminder(db_session, user.id, str(uuid.uuid4()), future)
    with pytest.raises(ValidationIssue):
        watch_later.set_reminder(db_session, user.id, videos[0].id, "tomorrow-ish")
