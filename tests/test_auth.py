"""
Tests for registration, login and bearer-token authentication
"""

from conftest import auth

from app.models.user import User


def _register(client, email="runner@rct.tn", password="secret123", name="Runner"):
    return client.post("/api/auth/register", json={"name": name, "email": email, "password": password})


def test_register_returns_user_and_token(client, db_session):
    resp = _register(client, email="Runner@RCT.tn")

    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["user"]["email"] == "runner@rct.tn"
    assert data["user"]["role"] == "member"
    assert data["user"]["group_name"] == "Débutant"
    assert "password_hash" not in data["user"]
    assert data["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.json()["data"]["user"]["id"] == data["user"]["id"]


def test_register_rejects_duplicate_email(client):
    _register(client)

    resp = _register(client, email="RUNNER@rct.tn")

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Cet email est déjà utilisé"}


def test_register_validation(client, db_session):
    assert _register(client, password="123").status_code == 400
    assert _register(client, name="R").status_code == 400
    assert _register(client, email="not-an-email").status_code == 400
    assert db_session.query(User).count() == 0


def test_login(client):
    _register(client)

    ok = client.post("/api/auth/login", json={"email": "runner@rct.tn", "password": "secret123"})
    bad = client.post("/api/auth/login", json={"email": "runner@rct.tn", "password": "wrong-pass"})
    unknown = client.post("/api/auth/login", json={"email": "ghost@rct.tn", "password": "secret123"})

    assert ok.status_code == 200
    assert ok.json()["data"]["token"]
    assert bad.status_code == 401
    assert bad.json()["error"] == "Email ou mot de passe incorrect"
    assert unknown.status_code == 401


def test_change_password(client):
    token = _register(client).json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    wrong = client.put(
        "/api/auth/password", json={"current_password": "nope", "new_password": "newsecret"}, headers=headers
    )
    changed = client.put(
        "/api/auth/password", json={"current_password": "secret123", "new_password": "newsecret"}, headers=headers
    )

    assert wrong.status_code == 401
    assert changed.status_code == 200
    login = client.post("/api/auth/login", json={"email": "runner@rct.tn", "password": "newsecret"})
    assert login.status_code == 200


def test_invalid_or_missing_token(client, make_user):
    user = make_user("Runner")

    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.get("/api/auth/me", headers=auth(user)).status_code == 200


def test_token_for_deleted_user_is_rejected(client, db_session, make_user):
    user = make_user("Ghost")
    headers = auth(user)
    db_session.delete(user)
    db_session.commit()

    resp = client.get("/api/auth/me", headers=headers)

    assert resp.status_code == 401


def test_role_change_is_admin_only(client, db_session, make_user):
    admin = make_user("Admin", role="admin")
    member = make_user("Member")

    denied = client.put(f"/api/users/{member.id}/role", json={"role": "coach"}, headers=auth(member))
    granted = client.put(f"/api/users/{member.id}/role", json={"role": "coach"}, headers=auth(admin))

    assert denied.status_code == 403
    assert granted.status_code == 200
    db_session.expire_all()
    assert db_session.get(User, member.id).role == "coach"


def test_update_other_profile_forbidden(client, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")

    resp = client.put(f"/api/users/{alice.id}", json={"name": "Hacked"}, headers=auth(bob))

    assert resp.status_code == 403


def test_user_payload_hides_secrets(client, db_session, make_user):
    user = make_user("Runner")
    user.strava_access_token = "tok"
    user.strava_refresh_token = "ref"
    db_session.commit()

    data = client.get(f"/api/users/{user.id}", headers=auth(user)).json()["data"]

    assert "strava_access_token" not in data
    assert "strava_refresh_token" not in data
    assert "password_hash" not in data
