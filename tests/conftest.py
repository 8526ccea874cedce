import os

os.environ.setdefault("DB_BACKEND", "sqlite")
os.environ.setdefault("ACTIVITY_PURGE_INTERVAL_SECONDS", "0")
os.environ.setdefault("STREAMIFY_AUTH_SECRET", "test-secret")

import pytest
from sqlalchemy import create_engine

from core.db import DB, bind_engine
from core.models import Base, Tweet, User, Video
from core.services.activity import DatabaseActivityRecorder
from core.services.notification_outbox import NotificationOutbox


@pytest.fixture
def server_db(tmp_path):
    db_path = tmp_path / "streamify.sqlite"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    previous_engine = DB.engine
    previous_session = DB.SessionLocal
    bind_engine(engine)
    try:
        yield engine
    finally:
        DB.engine = previous_engine
        DB.SessionLocal = previous_session
        engine.dispose()


@pytest.fixture
def db_session(server_db):
    db = DB.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_user(db_session):
    def _make(user_name: str, **fields) -> User:
        user = User(
            user_name=user_name,
            full_name=fields.pop("full_name", user_name.title()),
            email=fields.pop("email", f"{user_name}@example.com"),
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def make_video(db_session):
    def _make(owner: User, title: str = "Untitled", **fields) -> Video:
        fields.setdefault("duration", 100.0)
        video = Video(owner_id=owner.id, title=title, **fields)
        db_session.add(video)
        db_session.commit()
        return video

    return _make


@pytest.fixture
def make_tweet(db_session):
    def _make(owner: User, content: str, **fields) -> Tweet:
        tweet = Tweet(owner_id=owner.id, content=content, **fields)
        db_session.add(tweet)
        db_session.commit()
        return tweet

    return _make


@pytest.fixture
def recorder(server_db):
    return DatabaseActivityRecorder()


@pytest.fixture
def outbox(server_db):
    return NotificationOutbox()


@pytest.fixture
def client(server_db):
    from fastapi.testclient import TestClient

    from app.main import create_app

    return TestClient(create_app(use_lifespan=False))


@pytest.fixture
def auth_headers():
    from app.auth import create_access_token

    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
