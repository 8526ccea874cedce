import uuid
from datetime import timedelta

from app.auth import create_access_token
from core.models import utcnow

API = "/api/v1"


def test_follow_scenario_end_to_end(client, make_user, auth_headers):
    alice = make_user("alice")
    bob = make_user("bob")

    resp = client.post(f"{API}/follows/{bob.id}/toggle", headers=auth_headers(alice))
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["statusCode"] == 200
    assert body["data"] == {"isFollowing": True, "followersCount": 1}
    assert body["message"] == "Followed successfully"

    check = client.get(f"{API}/follows/check/{bob.id}", headers=auth_headers(alice))
    assert check.json()["data"] == {"isFollowing": True}

    followers = client.get(f"{API}/follows/followers", headers=auth_headers(bob)).json()["data"]
    assert [doc["userName"] for doc in followers["docs"]] == ["alice"]

    notes = client.get(f"{API}/notifications", headers=auth_headers(bob)).json()["data"]
    assert notes["unreadCount"] == 1
    assert notes["docs"][0]["type"] == "follow"
    assert notes["docs"][0]["sender"]["userName"] == "alice"

    count = client.get(f"{API}/notifications/unread-count", headers=auth_headers(bob)).json()["data"]
    assert count == {"count": 1}

    marked = client.patch(f"{API}/notifications/read-all", headers=auth_headers(bob)).json()["data"]
    assert marked == {"modifiedCount": 1}

    resp = client.post(f"{API}/follows/{bob.id}/toggle", headers=auth_headers(alice))
    assert resp.json()["data"] == {"isFollowing": False, "followersCount": 0}
    assert resp.json()["message"] == "Unfollowed successfully"


def test_error_envelope_shape(client, make_user, auth_headers):
    alice = make_user("alice")

    resp = client.post(f"{API}/follows/{alice.id}/toggle", headers=auth_headers(alice))
    assert resp.status_code == 400
    assert resp.json() == {
        "statusCode": 400,
        "message": "You cannot follow yourself",
        "errors": [{"field": "userId", "type": "self_relationship"}],
        "success": False,
    }

    resp = client.post(f"{API}/follows/not-an-id/toggle", headers=auth_headers(alice))
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid user ID"

    resp = client.post(f"{API}/follows/{uuid.uuid4()}/toggle", headers=auth_headers(alice))
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_requests_without_valid_token_are_rejected(client, make_user):
    alice = make_user("alice")

    missing = client.get(f"{API}/notifications")
    assert missing.status_code == 401
    assert missing.json()["message"] == "Unauthorized request"

    garbage = client.get(f"{API}/notifications", headers={"Authorization": "Bearer nope"})
    assert garbage.status_code == 401

    expired = create_access_token(alice.id, expires_in=-60)
    resp = client.get(f"{API}/notifications", headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Access token expired"


def test_token_accepted_from_cookie(client, make_user):
    alice = make_user("alice")
    client.cookies.set("accessToken", create_access_token(alice.id))

    resp = client.get(f"{API}/history")

    assert resp.status_code == 200
    assert resp.json()["message"] == "No history found"


def test_watch_later_routes(client, make_user, make_video, auth_headers):
    alice = make_user("alice")
    video = make_video(make_user("owner"), "Later")
    headers = auth_headers(alice)

    created = client.post(f"{API}/watchlater/{video.id}", headers=headers)
    assert created.status_code == 201
    assert created.json()["data"]["totalVideos"] == 1

    duplicate = client.post(f"{API}/watchlater/{video.id}", headers=headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "Video is already in your watch later list"

    stats = client.get(f"{API}/watchlater/stats", headers=headers)
    assert stats.status_code == 200
    assert stats.json()["data"]["totalVideos"] == 1

    remind_at = (utcnow() + timedelta(days=1)).isoformat()
    reminder = client.patch(f"{API}/watchlater/{video.id}/reminder", json={"remindAt": remind_at}, headers=headers)
    assert reminder.status_code == 200
    assert reminder.json()["message"] == "Reminder set successfully"

    listing = client.get(f"{API}/watchlater", params={"sortBy": "title", "limit": 10}, headers=headers)
    assert listing.json()["data"]["videos"][0]["remindAt"] is not None

    too_many = client.get(f"{API}/watchlater", params={"limit": 51}, headers=headers)
    assert too_many.status_code == 400

    cleared = client.delete(f"{API}/watchlater/clear", headers=headers)
    assert cleared.status_code == 200
    assert cleared.json()["data"] == {"videos": [], "clearedCount": 1}


def test_history_routes(client, make_user, make_video, auth_headers):
    alice = make_user("alice")
    video = make_video(make_user("owner"), "Seen", duration=120.0)
    headers = auth_headers(alice)

    added = client.post(f"{API}/history/add/{video.id}", json={"timestamp": 60}, headers=headers)
    assert added.status_code == 200
    assert added.json()["data"] == {"added": True, "playbackTimestamp": 60.0, "videoDuration": 120.0}

    no_body = client.post(f"{API}/history/add/{video.id}", headers=headers)
    assert no_body.status_code == 200

    listing = client.get(f"{API}/history", headers=headers).json()["data"]
    assert [item["id"] for item in listing["videos"]] == [video.id]

    stats = client.get(f"{API}/history/stats", headers=headers).json()["data"]
    assert stats["totalVideos"] == 1

    removed = client.post(f"{API}/history/remove", json={"videoIds": [video.id]}, headers=headers)
    assert removed.json()["data"] == {"removedCount": 1}

    missing_ids = client.post(f"{API}/history/remove", json={}, headers=headers)
    assert missing_ids.status_code == 400

    activity = client.get(f"{API}/activity", params={"type": "video_watch"}, headers=headers).json()["data"]
    assert activity["pagination"]["totalItems"] == 2
    assert activity["activities"][0]["message"] == 'Watched "Seen"'


def test_profile_and_feeds(client, make_user, make_tweet, auth_headers):
    alice = make_user("alice")
    bob = make_user("bob")
    make_tweet(bob, "hi from bob")
    client.post(f"{API}/follows/{bob.id}/toggle", headers=auth_headers(alice))

    anonymous = client.get(f"{API}/users/bob/profile")
    assert anonymous.status_code == 200
    assert anonymous.json()["data"]["isFollowing"] is False
    assert anonymous.json()["data"]["followersCount"] == 1

    viewer = client.get(f"{API}/users/bob/profile", headers=auth_headers(alice)).json()["data"]
    assert viewer["isFollowing"] is True

    feed = client.get(f"{API}/tweets/following", headers=auth_headers(alice)).json()["data"]
    assert [tweet["content"] for tweet in feed] == ["hi from bob"]

    assert client.get(f"{API}/tweets/following").status_code == 401
    assert client.get(f"{API}/users/nobody/profile").status_code == 404


def test_request_id_is_echoed(client):
    resp = client.get("/", headers={"x-request-id": "req-123"})
    assert resp.status_code == 200
    assert resp.headers["x-request-id"] == "req-123"
    assert resp.json()["service"] == "Streamify"

    minted = client.get("/")
    assert minted.headers["x-request-id"]
