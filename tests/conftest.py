"""
Shared fixtures: in-memory SQLite database, TestClient with get_db overridden,
and helpers to create users / auth headers.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import get_db
from app.main import app
from app.models.base import Base
from app.models.user import User
from app.routers import event_chat
from app.services.auth import create_access_token

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def published(monkeypatch):
    """Capture realtime chat publishes instead of talking to Redis."""
    calls = []

    async def fake_publish(event_id, message):
        calls.append((event_id, message))

    monkeypatch.setattr(event_chat, "publish_chat_message", fake_publish)
    return calls


@pytest.fixture
def client(db_session, published):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make(name="Runner", role="member", avatar=None):
        counter["n"] += 1
        user = User(
            email=f"user{counter['n']}@rct.tn",
            password_hash="not-a-real-hash",
            name=name,
            role=role,
            avatar=avatar,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


def auth(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


EVENT_PAYLOAD = {
    "title": "Sortie longue du dimanche",
    "description": "20 km au bord du lac",
    "date": "2026-11-01",
    "time": "07:30",
    "location": "Lac de Tunis",
}


@pytest.fixture
def create_event(client):
    def _create(creator, **overrides):
        payload = {**EVENT_PAYLOAD, **overrides}
        resp = client.post("/api/events", json=payload, headers=auth(creator))
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create
