import time

import jwt

from clearcity.core.config import settings
from clearcity.core.ratelimit import limiter
from clearcity.models.user import User
from clearcity.services.admin import promote, demote
from conftest import auth_header


def test_register_returns_token_and_user(register):
    data = register(location="Bucharest", latitude=44.43, longitude=26.1)
    user = data["user"]
    assert user["email"] == "ana@example.com"
    assert user["role"] == "user"
    assert user["level"] == 1
    assert user["xp"] == 0
    assert user["location"] == "Bucharest"
    assert "hashed_password" not in user and "password" not in user

    claims = jwt.decode(data["token"], settings.jwt_secret, algorithms=["HS256"])
    assert claims["id"] == user["id"]
    assert claims["email"] == "ana@example.com"
    assert claims["exp"] - claims["iat"] == 7 * 24 * 3600


def test_register_stores_a_hash_not_the_password(register, db):
    register(password="secret123")
    user = db.query(User).filter(User.email == "ana@example.com").one()
    assert user.hashed_password != "secret123"
    assert user.hashed_password.startswith("$bcrypt-sha256$")


def test_register_duplicate_email(client, register):
    register()
    r = client.post("/api/auth/register", json={"name": "Other", "email": "ana@example.com", "password": "x1234567"})
    assert r.status_code == 400
    assert r.json() == {"error": "User already exists"}


def test_register_missing_fields(client):
    r = client.post("/api/auth/register", json={"email": "ana@example.com", "password": "secret123"})
    assert r.status_code == 400
    assert r.json()["error"] == "All fields are required"


def test_register_rejects_unknown_fields(client):
    r = client.post(
        "/api/auth/register",
        json={"name": "Ana", "email": "ana@example.com", "password": "secret123", "role": "admin"},
    )
    assert r.status_code == 400
    assert "error" in r.json()


def test_login(client, register):
    register()
    r = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "secret123"})
    assert r.status_code == 200
    body = r.json()
    assert body["token"]
    assert body["user"]["name"] == "Ana Pop"


def test_login_failures_look_the_same(client, register):
    register()
    wrong_password = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "nope-nope"})
    unknown_email = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "Invalid credentials"}


def test_login_missing_fields(client):
    r = client.post("/api/auth/login", json={"email": "ana@example.com"})
    assert r.status_code == 400
    assert r.json()["error"] == "Email and password are required"


def test_register_duplicate_email_ignores_case(client, register):
    register()
    r = client.post("/api/auth/register", json={"name": "Other", "email": "ANA@Example.com", "password": "x1234567"})
    assert r.status_code == 400
    assert r.json() == {"error": "User already exists"}


def test_register_blank_name(client):
    r = client.post("/api/auth/register", json={"name": "   ", "email": "ana@example.com", "password": "secret123"})
    assert r.status_code == 400
    assert r.json()["error"] == "All fields are required"


def test_mixed_case_email_can_log_in(client, register):
    data = register(email="Ana@Example.COM")
    assert data["user"]["email"] == "ana@example.com"
    for email in ("Ana@Example.COM", "ana@example.com", " ANA@EXAMPLE.COM "):
        r = client.post("/api/auth/login", json={"email": email, "password": "secret123"})
        assert r.status_code == 200, email


def test_rate_limiter_follows_settings():
    assert settings.ratelimit_enabled is False
    assert limiter.enabled is False


def test_repeated_logins_are_not_throttled_when_disabled(client, register):
    register()
    for _ in range(15):
        r = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "secret123"})
        assert r.status_code == 200


def test_protected_endpoint_needs_token(client):
    r = client.get("/api/users/profile")
    assert r.status_code == 401
    assert r.json()["error"] == "Access denied. No token provided."


def test_bad_token_is_forbidden(client):
    r = client.get("/api/users/profile", headers=auth_header("not-a-jwt"))
    assert r.status_code == 403
    assert r.json()["error"] == "Invalid token."


def test_expired_token_is_forbidden(client, register):
    user = register()["user"]
    now = int(time.time())
    token = jwt.encode(
        {"id": user["id"], "email": user["email"], "iat": now - 100, "exp": now - 10},
        settings.jwt_secret,
        algorithm="HS256",
    )
    r = client.get("/api/users/profile", headers=auth_header(token))
    assert r.status_code == 403


def test_token_signed_with_other_secret_is_forbidden(client, register):
    user = register()["user"]
    token = jwt.encode({"id": user["id"], "email": user["email"]}, "other-secret", algorithm="HS256")
    r = client.get("/api/users/profile", headers=auth_header(token))
    assert r.status_code == 403


def test_admin_role_is_read_from_the_database(client, register, db):
    register(name="First Admin", email="first@example.com")
    promote(db, "first@example.com")
    token = register()["token"]

    assert client.get("/api/admin/stats", headers=auth_header(token)).status_code == 403

    # same token, no re-login: the role change is picked up immediately
    promote(db, "ana@example.com")
    assert client.get("/api/admin/stats", headers=auth_header(token)).status_code == 200

    demote(db, "ana@example.com")
    r = client.get("/api/admin/stats", headers=auth_header(token))
    assert r.status_code == 403
    assert r.json()["error"] == "Access denied. Admin only."
