"""
Shared fixtures: an on-disk SQLite database per test, a fake Google
provider and a TestClient running the app's lifespan.
"""
import pytest
from fastapi.testclient import TestClient

from auth_backend.config import Settings
from auth_backend.errors import OAuthError
from auth_backend.main import create_app
from auth_backend.services.google_oauth import GoogleProfile


class FakeGoogle:
    """Stands in for GoogleOAuthClient; returns a fixed profile for any code."""

    def __init__(self, profile=None, error=None):
        self.profile = profile or GoogleProfile(email="g@example.com", full_name="Gee User")
        self.error = error
        self.codes = []

    def build_authorization_url(self, state):
        return f"https://accounts.example.com/auth?state={state}"

    async def fetch_profile(self, code):
        self.codes.append(code)
        if self.error:
            raise OAuthError(self.error)
        return self.profile


def make_settings(tmp_path, **overrides):
    values = dict(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}",
        jwt_secret="test-secret-key-long-enough-for-hs256",
        bcrypt_rounds=4,
        google_client_id="client-id",
        google_client_secret="client-secret",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def fake_google():
    return FakeGoogle()


@pytest.fixture
def client(settings, fake_google):
    app = create_app(settings, google_oauth=fake_google)
    with TestClient(app) as c:
        yield c


def register_and_login(client, email="a@b.com", password="secret1"):
    client.post("/api/register", json={"email": email, "password": password})
    res = client.post("/api/login", json={"email": email, "password": password})
    return res.json()["token"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
