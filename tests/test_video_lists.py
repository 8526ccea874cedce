import uuid

import pytest

import core.config as config
from core.db import DB
from core.errors import ConflictError
from core.models import WatchHistory
from core.services.video_lists import (
    UNCHANGED,
    compute_progress,
    load_entries,
    remove_entries,
    truncate,
    upsert_to_front,
    write_list,
)


def _ids(entries):
    return [entry["video"] for entry in entries]


def test_upsert_moves_existing_entry_to_front():
    entries, _ = upsert_to_front([], "a", {"n": 1}, cap=10)
    entries, _ = upsert_to_front(entries, "b", {"n": 2}, cap=10)
    entries, existed = upsert_to_front(entries, "a", {"n": 3}, cap=10)

    assert existed is True
    assert _ids(entries) == ["a", "b"]
    assert entries[0]["n"] == 3


def test_upsert_caps_list_keeping_most_recent():
    entries = []
    for index in range(205):
        entries, _ = upsert_to_front(entries, f"v{index}", {}, cap=200)

    assert len(entries) == 200
    assert entries[0]["video"] == "v204"
    assert entries[-1]["video"] == "v5"


def test_upsert_duplicate_error_leaves_input_untouched():
    entries = [{"video": "a"}, {"video": "b"}]
    with pytest.raises(ConflictError):
        upsert_to_front(entries, "b", {}, cap=10, duplicate_error="already there")
    assert _ids(entries) == ["a", "b"]


def test_remove_entries_reports_count():
    kept, removed = remove_entries([{"video": "a"}, {"video": "b"}, {"video": "c"}], ["a", "c", "zzz"])
    assert _ids(kept) == ["b"]
    assert removed == 2


def test_truncate_keeps_short_lists():
    entries = [{"video": "a"}]
    assert truncate(entries, 5) is entries


@pytest.mark.parametrize(
    ("timestamp", "duration", "expected"),
    [
        (0, 0, 0),
        (30, None, 0),
        (0, 200, 0),
        (50, 100, 50),
        (1, 3, 33),
        (2, 3, 67),
        (100, 100, 100),
        (150, 100, 100),
    ],
)
def test_compute_progress(timestamp, duration, expected):
    assert compute_progress(timestamp, duration) == expected


def _write_concurrently(owner_id, video_id):
    other = DB.SessionLocal()
    try:
        doc = other.query(WatchHistory).filter(WatchHistory.user_id == owner_id).first()
        if doc is None:
            other.add(WatchHistory(user_id=owner_id, videos=[{"video": video_id}]))
        else:
            doc.videos = [{"video": video_id}] + list(doc.videos)
        other.commit()
    finally:
        other.close()


def test_write_list_retries_after_concurrent_update(db_session, make_user):
    user = make_user("alice")
    db_session.add(WatchHistory(user_id=user.id, videos=[{"video": "a"}]))
    db_session.commit()

    calls = []

    def mutation(entries):
        calls.append(_ids(entries))
        if len(calls) == 1:
            _write_concurrently(user.id, "b")
        return [{"video": "c"}] + entries, len(calls)

    attempts = write_list(db_session, WatchHistory, "user_id", user.id, mutation)

    assert attempts == 2
    assert calls == [["a"], ["b", "a"]]
    assert _ids(load_entries(db_session, WatchHistory, "user_id", user.id)) == ["c", "b", "a"]


def test_write_list_retries_lost_first_insert(db_session, make_user):
    user = make_user("bob")
    calls = []

    def mutation(entries):
        calls.append(_ids(entries))
        if len(calls) == 1:
            _write_concurrently(user.id, "first")
        return [{"video": "mine"}] + entries, None

    write_list(db_session, WatchHistory, "user_id", user.id, mutation)

    assert calls == [[], ["first"]]
    assert db_session.query(WatchHistory).filter(WatchHistory.user_id == user.id).count() == 1
    assert _ids(load_entries(db_session, WatchHistory, "user_id", user.id)) == ["mine", "first"]


def test_write_list_gives_up_after_retries(db_session, make_user, monkeypatch):
    monkeypatch.setattr(config, "LIST_WRITE_MAX_RETRIES", 1)
    user = make_user("carol")
    db_session.add(WatchHistory(user_id=user.id, videos=[]))
    db_session.commit()

    def mutation(entries):
        _write_concurrently(user.id, str(uuid.uuid4()))
        return [{"video": "lost"}] + entries, None

    with pytest.raises(ConflictError):
        write_list(db_session, WatchHistory, "user_id", user.id, mutation)

    assert "lost" not in _ids(load_entries(db_session, WatchHistory, "user_id", user.id))


def test_write_list_unchanged_skips_write(db_session, make_user):
    user = make_user("dave")

    result = write_list(db_session, WatchHistory, "user_id", user.id, lambda entries: (UNCHANGED, "noop"))

    assert result == "noop"
    assert db_session.query(WatchHistory).count() == 0
