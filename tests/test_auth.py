import time
from urllib.parse import parse_qs, urlparse

from jose import jwt

from aintru.core import config
from aintru.core.security import create_state_token, verify_state_token
from aintru.models.user import User
from aintru.models.waitlist import Waitlist
from aintru.services import oauth_service


SIGNUP = {"name": "Sam", "email": "sam@mail.com", "phone": "+91 98765 43210", "password": "longenough"}


def _token(payload):
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def test_router_alive(client):
    assert client.get("/api/auth/test").json()["success"] is True


def test_signup_validation(client):
    r = client.post("/api/auth/signup", json={**SIGNUP, "password": None})
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Email, phone, name and password are required."}

    r = client.post("/api/auth/signup", json={**SIGNUP, "phone": "call me"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid phone number format."

    r = client.post("/api/auth/signup", json={**SIGNUP, "password": "short"})
    assert r.status_code == 400
    assert r.json()["error"] == "Password must be at least 8 characters long."


def test_signup_then_conflict(client, db):
    r = client.post("/api/auth/signup", json=SIGNUP)
    assert r.status_code == 201
    body = r.json()
    assert body["user"]["email"] == "sam@mail.com"

    stored = db.query(User).filter(User.email == "sam@mail.com").one()
    assert stored.password_hash != "longenough"
    assert stored.is_verified is True
    assert stored.user_type.value == "student"

    r = client.post("/api/auth/signup", json={**SIGNUP, "email": "other@mail.com"})
    assert r.status_code == 409
    assert r.json()["error"] == "Email or phone already in use."


def test_login_and_me(client, user):
    r = client.post("/api/auth/login", json={"email": "jane@mail.com", "password": "wrong-password"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid credentials"

    r = client.post("/api/auth/login", json={"email": "jane@mail.com", "password": "supersecret"})
    assert r.status_code == 200
    token = r.json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "jane@mail.com"
    assert me.json()["provider"] == "local"


def test_login_rejects_unverified(client, user, db):
    user.is_verified = False
    db.commit()
    r = client.post("/api/auth/login", json={"email": "jane@mail.com", "password": "supersecret"})
    assert r.status_code == 401
    assert r.json()["error"] == "Please verify your email before logging in."


def test_bearer_errors(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "No token provided."}

    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid token."


def test_session_timeout_and_expiry(client, user):
    now = int(time.time())
    stale = _token({"sub": str(user.id), "iat": now - 3 * 3600, "exp": now + 3600})
    r = client.get("/api/auth/validate", headers={"Authorization": f"Bearer {stale}"})
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "Session expired. Please login again.", "code": "SESSION_EXPIRED"}

    expired = _token({"sub": str(user.id), "iat": now - 600, "exp": now - 60})
    r = client.get("/api/auth/validate", headers={"Authorization": f"Bearer {expired}"})
    assert r.json()["code"] == "SESSION_EXPIRED"


def test_validate_refresh_logout(client, user, auth_headers):
    r = client.get("/api/auth/validate", headers=auth_headers)
    assert r.json() == {"valid": True, "user": {"user_id": user.id}}

    r = client.post("/api/auth/refresh-session", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["token"]
    assert r.json()["user"]["id"] == user.id

    r = client.post("/api/auth/logout", headers=auth_headers)
    assert r.json() == {"success": True, "message": "Logged out successfully"}


def test_verify_credentials_against_waitlist(client, db):
    body = {"name": "Sam", "email": "sam@mail.com", "phone": "+91 98765 43210"}

    r = client.post("/api/auth/verify-credentials", json=body)
    assert r.status_code == 400
    assert r.json()["error"] == "Email not found in waitlist."

    db.add(Waitlist(name="Sam", email="sam@mail.com", phone="+91 00000 00000"))
    db.commit()
    r = client.post("/api/auth/verify-credentials", json=body)
    assert r.json()["error"] == "Phone number does not match."

    db.query(Waitlist).update({"phone": body["phone"]})
    db.commit()
    r = client.post("/api/auth/verify-credentials", json=body)
    assert r.json()["is_new_user"] is True
    assert r.json()["waitlist_data"]["email"] == "sam@mail.com"

    client.post("/api/auth/signup", json=SIGNUP)
    r = client.post("/api/auth/verify-credentials", json=body)
    assert r.json()["is_new_user"] is False


def test_complete_profile(client, user):
    r = client.post("/api/auth/complete-profile", json={
        "email": "jane@mail.com",
        "phone": "+1 555 0100",
        "surname": "Doe",
        "user_type": "professional",
        "is_student": False,
    })
    assert r.status_code == 200
    u = r.json()["user"]
    assert u["surname"] == "Doe"
    assert u["user_type"] == "professional"
    assert u["is_student"] is False

    r = client.post("/api/auth/complete-profile", json={"email": "nobody@mail.com", "phone": "1"})
    assert r.status_code == 404


def test_oauth_start_redirects(client, monkeypatch):
    monkeypatch.setattr(config, "GOOGLE_CLIENT_ID", "")
    r = client.get("/api/auth/google", follow_redirects=False)
    assert r.headers["location"] == f"{config.FRONTEND_URL}/login?error=oauth_failed"

    monkeypatch.setattr(config, "GOOGLE_CLIENT_ID", "gid")
    r = client.get("/api/auth/google", follow_redirects=False)
    assert r.headers["location"].startswith("https://accounts.google.com/o/oauth2/v2/auth?client_id=gid")


def test_github_callback_creates_user(client, db, monkeypatch):
    monkeypatch.setattr(oauth_service, "_exchange_code", lambda provider, code: "gh-token")
    monkeypatch.setattr(oauth_service, "_get_json", lambda url, token: (
        {"id": 42, "login": "octo", "name": None, "email": None} if url == oauth_service.GITHUB_USER_URL else []
    ))

    r = client.get(f"/api/auth/github/callback?code=abc&state={create_state_token('github')}", follow_redirects=False)
    assert r.headers["location"].startswith(f"{config.FRONTEND_URL}/oauth-success?token=")

    u = db.query(User).filter(User.provider_id == "42").one()
    assert u.email == "octo@github.com"
    assert u.name == "octo"
    assert u.phone is None

    # second login reuses the same user
    client.get(f"/api/auth/github/callback?code=abc&state={create_state_token('github')}", follow_redirects=False)
    assert db.query(User).count() == 1


def test_oauth_callback_without_code_fails(client):
    r = client.get("/api/auth/google/callback", follow_redirects=False)
    assert r.headers["location"].endswith("/login?error=oauth_failed")


def test_authorize_url_carries_signed_state(client, monkeypatch):
    monkeypatch.setattr(config, "GITHUB_CLIENT_ID", "ghid")
    r = client.get("/api/auth/github", follow_redirects=False)
    state = parse_qs(urlparse(r.headers["location"]).query)["state"][0]
    assert verify_state_token(state, "github")
    assert not verify_state_token(state, "google")


def test_oauth_callback_rejects_bad_state(client, db, monkeypatch):
    calls = []
    monkeypatch.setattr(oauth_service, "_exchange_code", lambda provider, code: calls.append(code) or "tok")

    forged = jwt.encode({"purpose": "oauth_state", "provider": "github"}, "other-secret", algorithm="HS256")
    for query in ("code=abc", f"code=abc&state={forged}", f"code=abc&state={create_state_token('google')}"):
        r = client.get(f"/api/auth/github/callback?{query}", follow_redirects=False)
        assert r.headers["location"].endswith("/login?error=oauth_failed")

    assert calls == []
    assert db.query(User).count() == 0
