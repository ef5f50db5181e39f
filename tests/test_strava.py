"""
Tests for Strava token handling and the OAuth callback (no network: Strava calls are faked)
"""

import asyncio
from urllib.parse import parse_qs, urlparse

from conftest import auth

from app.integrations import strava
from app.models.user import User
from app.services.strava_service import EXPIRY_BUFFER_SEC, get_valid_access_token

NOW = 1_800_000_000


def _connected_user(make_user, db_session, expires_at):
    user = make_user("Runner")
    user.strava_connected = True
    user.strava_id = "12345"
    user.strava_access_token = "old-access"
    user.strava_refresh_token = "old-refresh"
    user.strava_token_expires_at = expires_at
    db_session.commit()
    return user


def test_valid_token_is_reused(db_session, make_user, monkeypatch):
    user = _connected_user(make_user, db_session, NOW + EXPIRY_BUFFER_SEC + 60)

    async def fail_refresh(refresh_token):
        raise AssertionError("refresh should not be called")

    monkeypatch.setattr(strava, "refresh_access_token", fail_refresh)

    assert asyncio.run(get_valid_access_token(db_session, user, now=NOW)) == "old-access"


def test_token_close_to_expiry_is_refreshed(db_session, make_user, monkeypatch):
    user = _connected_user(make_user, db_session, NOW + 100)
    seen = []

    async def fake_refresh(refresh_token):
        seen.append(refresh_token)
        return {"access_token": "new-access", "refresh_token": "new-refresh", "expires_at": NOW + 21600}

    monkeypatch.setattr(strava, "refresh_access_token", fake_refresh)

    token = asyncio.run(get_valid_access_token(db_session, user, now=NOW))

    assert token == "new-access"
    assert seen == ["old-refresh"]
    db_session.expire_all()
    stored = db_session.get(User, user.id)
    assert stored.strava_refresh_token == "new-refresh"
    assert stored.strava_token_expires_at == NOW + 21600


def test_refresh_failure_returns_none(db_session, make_user, monkeypatch):
    user = _connected_user(make_user, db_session, NOW - 10)

    async def broken_refresh(refresh_token):
        raise strava.StravaError("Bad Request", 400)

    monkeypatch.setattr(strava, "refresh_access_token", broken_refresh)

    assert asyncio.run(get_valid_access_token(db_session, user, now=NOW)) is None


def test_no_token_returns_none(db_session, make_user):
    user = make_user("Runner")

    assert asyncio.run(get_valid_access_token(db_session, user, now=NOW)) is None


def test_authorize_url_carries_user_id(client, make_user):
    user = make_user("Runner")

    url = client.get("/api/strava/auth", headers=auth(user)).json()["data"]["authUrl"]

    query = parse_qs(urlparse(url).query)
    assert query["state"] == [str(user.id)]
    assert query["scope"] == ["read,activity:read_all"]
    assert query["response_type"] == ["code"]


def test_callback_stores_tokens(client, db_session, make_user, monkeypatch):
    user = make_user("Runner")

    async def fake_exchange(code):
        assert code == "auth-code"
        return {
            "access_token": "acc",
            "refresh_token": "ref",
            "expires_at": NOW,
            "athlete": {"id": 987, "firstname": "Amine", "lastname": "B", "profile": None},
        }

    monkeypatch.setattr(strava, "exchange_code", fake_exchange)

    resp = client.post("/api/strava/callback", json={"code": "auth-code", "state": str(user.id)})

    assert resp.status_code == 200
    assert resp.json()["data"]["athleteId"] == "987"
    db_session.expire_all()
    stored = db_session.get(User, user.id)
    assert stored.strava_connected is True
    assert stored.strava_id == "987"
    assert stored.strava_access_token == "acc"


def test_callback_upstream_error(client, make_user, monkeypatch):
    user = make_user("Runner")

    async def failing_exchange(code):
        raise strava.StravaError("Authorization Error", 400)

    monkeypatch.setattr(strava, "exchange_code", failing_exchange)

    resp = client.post("/api/strava/callback", json={"code": "bad", "state": str(user.id)})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Authorization Error"}


def test_callback_requires_code(client):
    resp = client.post("/api/strava/callback", json={"state": "1"})

    assert resp.status_code == 400


def test_activities_require_connection(client, make_user):
    user = make_user("Runner")

    resp = client.get("/api/strava/activities", headers=auth(user))

    assert resp.status_code == 400
    assert resp.json()["error"] == "Strava non connecté"


def test_disconnect_clears_tokens(client, db_session, make_user):
    user = _connected_user(make_user, db_session, NOW)

    resp = client.delete("/api/strava/disconnect", headers=auth(user))

    assert resp.status_code == 200
    db_session.expire_all()
    stored = db_session.get(User, user.id)
    assert stored.strava_connected is False
    assert stored.strava_access_token is None
    assert stored.strava_id is None
