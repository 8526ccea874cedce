from datetime import timedelta

import pytest

from core.errors import NotFoundError, ValidationIssue
from core.models import Comment, Follow, Like, Playlist, Subscription, utcnow
from core.services import views


def test_profile_counts_and_viewer_flags(db_session, make_user, make_video, make_tweet):
    channel = make_user("Channel", cover_image="https://cdn.example.com/cover.png")
    viewer = make_user("viewer")
    fan = make_user("fan")
    db_session.add_all([
        Follow(follower_id=viewer.id, followee_id=channel.id),
        Follow(follower_id=fan.id, followee_id=channel.id),
        Follow(follower_id=channel.id, followee_id=fan.id),
        Subscription(subscriber_id=fan.id, channel_id=channel.id),
        Playlist(owner_id=channel.id, name="Public"),
        Playlist(owner_id=channel.id, name="Private", is_public=False),
    ])
    db_session.commit()
    make_video(channel, "Published")
    make_video(channel, "Draft", is_published=False)
    make_tweet(channel, "hello")

    profile = views.user_profile(db_session, "channel", viewer.id)

    assert profile["userName"] == "Channel"
    assert profile["coverImage"] == "https://cdn.example.com/cover.png"
    assert profile["followersCount"] == 2
    assert profile["followingCount"] == 1
    assert profile["isFollowing"] is True
    assert profile["subscribersCount"] == 1
    assert profile["subscriptionsCount"] == 0
    assert profile["isSubscribed"] is False
    assert profile["videosCount"] == 1
    assert profile["tweetsCount"] == 1
    assert profile["playlistsCount"] == 1
    assert profile["isSelf"] is False

    anonymous = views.user_profile(db_session, "Channel")
    assert anonymous["isFollowing"] is False
    assert anonymous["isSubscribed"] is False


def test_profile_errors(db_session):
    with pytest.raises(ValidationIssue):
        views.user_profile(db_session, "  ")
    with pytest.raises(NotFoundError):
        views.user_profile(db_session, "nobody")


def test_latest_tweets_are_decorated(db_session, make_user, make_tweet):
    author = make_user("author")
    viewer = make_user("viewer")
    now = utcnow()
    older = make_tweet(author, "older", created_at=now - timedelta(minutes=5))
    newer = make_tweet(viewer, "newer", created_at=now)
    db_session.add_all([
        Follow(follower_id=viewer.id, followee_id=author.id),
        Like(liked_by_id=viewer.id, entity_type="Tweet", entity_id=older.id),
        Like(liked_by_id=author.id, entity_type="Tweet", entity_id=older.id),
        Comment(owner_id=author.id, entity_type="Tweet", entity_id=older.id, content="first"),
    ])
    db_session.commit()

    feed = views.latest_tweets(db_session, viewer.id)

    assert [tweet["id"] for tweet in feed] == [newer.id, older.id]
    decorated = feed[1]
    assert decorated["owner"]["userName"] == "author"
    assert decorated["likesCount"] == 2
    assert decorated["commentsCount"] == 1
    assert decorated["isLiked"] is True
    assert decorated["isFollowing"] is True
    assert feed[0]["likesCount"] == 0
    assert feed[0]["isFollowing"] is False

    anonymous = views.latest_tweets(db_session)
    assert all(not tweet["isLiked"] and not tweet["isFollowing"] for tweet in anonymous)


def test_following_tweets_only_include_followed_authors(db_session, make_user, make_tweet):
    viewer = make_user("viewer")
    followed = make_user("followed")
    stranger = make_user("stranger")
    db_session.add(Follow(follower_id=viewer.id, followee_id=followed.id))
    db_session.commit()
    mine = make_tweet(followed, "from a friend")
    make_tweet(stranger, "from a stranger")

    feed = views.following_tweets(db_session, viewer.id)

    assert [tweet["id"] for tweet in feed] == [mine.id]
    assert feed[0]["isFollowing"] is True
    assert views.following_tweets(db_session, stranger.id) == []
