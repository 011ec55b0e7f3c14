"""Register, login, profile and token checks through the HTTP API."""
from datetime import datetime, timedelta, timezone

from auth_backend.config import Settings
from auth_backend.services.auth_service import create_access_token, decode_access_token

from auth_backend.utils.database import Base

from conftest import bearer, register_and_login


def test_root_banner(client):
    res = client.get("/")
    assert res.status_code == 200
    assert res.text == "User Authentication API is running."


def test_register_login_and_fetch_user(client):
    res = client.post("/api/register", json={"email": "a@b.com", "password": "secret1"})
    assert res.status_code == 200
    assert res.json() == {"message": "User registered successfully"}

    res = client.post("/api/login", json={"email": "a@b.com", "password": "secret1"})
    assert res.status_code == 200
    token = res.json()["token"]

    res = client.get("/api/user", headers=bearer(token))
    assert res.status_code == 200
    user = res.json()["user"]
    assert user["email"] == "a@b.com"
    assert user["full_name"] is None
    assert isinstance(user["id"], int)
    assert user["created_at"]


def test_register_stores_full_name(client):
    client.post("/api/register", json={"email": "n@b.com", "password": "pw", "full_name": "Ann Example"})
    token = client.post("/api/login", json={"email": "n@b.com", "password": "pw"}).json()["token"]
    assert client.get("/api/user", headers=bearer(token)).json()["user"]["full_name"] == "Ann Example"


def test_register_does_not_return_token(client):
    res = client.post("/api/register", json={"email": "a@b.com", "password": "secret1"})
    assert "token" not in res.json()


def test_duplicate_email_rejected(client):
    client.post("/api/register", json={"email": "a@b.com", "password": "secret1"})
    res = client.post("/api/register", json={"email": "a@b.com", "password": "other"})
    assert res.status_code == 400
    assert res.json() == {"error": "Email already exists"}


def test_register_requires_email_and_password(client):
    for body in ({"email": "a@b.com"}, {"password": "secret1"}, {"email": "", "password": "x"}, {}):
        res = client.post("/api/register", json=body)
        assert res.status_code == 400
        assert res.json() == {"error": "Email and password required"}


def test_malformed_body_is_a_validation_error(client):
    res = client.post("/api/login", content=b"not json", headers={"Content-Type": "application/json"})
    assert res.status_code == 400
    assert "error" in res.json()


def test_login_requires_email_and_password(client):
    res = client.post("/api/login", json={"email": "a@b.com"})
    assert res.status_code == 400
    assert res.json() == {"error": "Email and password required"}


def test_wrong_password_and_unknown_email_look_the_same(client):
    client.post("/api/register", json={"email": "a@b.com", "password": "secret1"})

    wrong = client.post("/api/login", json={"email": "a@b.com", "password": "nope"})
    missing = client.post("/api/login", json={"email": "nouser@x.com", "password": "x"})

    assert wrong.status_code == missing.status_code == 401
    assert wrong.json() == missing.json() == {"error": "Invalid credentials"}


def test_login_token_carries_user_and_null_role(client, settings):
    token = register_and_login(client)
    profile = client.get("/api/user", headers=bearer(token)).json()["user"]

    claims = decode_access_token(token, settings)
    assert claims.id == profile["id"]
    assert claims.email == "a@b.com"
    assert claims.role is None
    assert claims.exp - claims.iat == 3600


def test_protected_returns_claims(client):
    token = register_and_login(client)
    res = client.get("/api/protected", headers=bearer(token))
    assert res.status_code == 200
    body = res.json()
    assert body["message"] == "Protected data"
    assert body["user"]["email"] == "a@b.com"
    assert body["user"]["role"] is None


def test_protected_without_header(client):
    res = client.get("/api/protected")
    assert res.status_code == 401
    assert res.json() == {"error": "No token provided"}


def test_garbage_and_forged_tokens_rejected(client, settings):
    forged = create_access_token(1, "a@b.com", Settings(jwt_secret="other-secret"))
    for header in ("Bearer garbage", f"Bearer {forged}", "Token abc", "Bearer"):
        res = client.get("/api/protected", headers={"Authorization": header})
        assert res.status_code == 401
        assert res.json() == {"error": "Invalid token"}


def test_expired_token_rejected(client, settings):
    register_and_login(client)
    issued = datetime.now(timezone.utc) - timedelta(hours=1, seconds=5)
    expired = create_access_token(1, "a@b.com", settings, now=issued)

    assert client.get("/api/protected", headers=bearer(expired)).status_code == 401
    res = client.get("/api/user", headers=bearer(expired))
    assert res.status_code == 401
    assert res.json() == {"error": "Invalid token"}


def test_user_endpoint_404_when_row_missing(client, settings):
    token = create_access_token(9999, "ghost@b.com", settings)
    res = client.get("/api/user", headers=bearer(token))
    assert res.status_code == 404
    assert res.json() == {"error": "User not found"}


def test_logout_acknowledges(client):
    res = client.post("/api/logout")
    assert res.status_code == 200
    assert res.json() == {"message": "Logged out successfully"}


def test_token_still_valid_after_logout(client):
    token = register_and_login(client)
    client.post("/api/logout")
    assert client.get("/api/user", headers=bearer(token)).status_code == 200


def test_cors_allows_frontend_origin_only(client):
    headers = {
        "Origin": "http://localhost:5173",
        "Access-Control-Request-Method": "POST",
    }
    res = client.options("/api/login", headers=headers)
    assert res.status_code == 200
    assert res.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert res.headers["access-control-allow-credentials"] == "true"

    res = client.options("/api/login", headers={**headers, "Origin": "http://evil.example"})
    assert "access-control-allow-origin" not in res.headers


def test_register_rejects_password_over_72_bytes(client):
    res = client.post("/api/register", json={"email": "a@b.com", "password": "p" * 80})
    assert res.status_code == 400
    assert res.json() == {"error": "Password too long"}


def drop_users_table(client):
    async def drop():
        async with client.app.state.db.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    client.portal.call(drop)


def test_datastore_failures_return_500(client):
    drop_users_table(client)

    res = client.post("/api/register", json={"email": "a@b.com", "password": "secret1"})
    assert res.status_code == 500
    assert res.json() == {"error": "Registration failed"}

    res = client.post("/api/login", json={"email": "a@b.com", "password": "secret1"})
    assert res.status_code == 500
    assert res.json() == {"error": "Login failed"}
