# auth_backend/services/google_oauth.py
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx

from auth_backend.config import Settings
from auth_backend.errors import OAuthError

logger = logging.getLogger("auth_backend.google")

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_SCOPES = ["openid", "email", "profile"]


@dataclass(frozen=True)
class GoogleProfile:
    email: str
    full_name: Optional[str] = None


class GoogleOAuthClient:
    """Authorization-code flow against Google, returning the verified profile."""

    def __init__(self, settings: Settings, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.client_id = settings.google_client_id
        self.client_secret = settings.google_client_secret
        self.redirect_uri = settings.google_callback_url
        self.timeout = timeout
        self.transport = transport

    def build_authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(GOOGLE_SCOPES),
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> GoogleProfile:
        """Exchange the authorization code and read the user's email and display name."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                token_resp = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "code": code,
                        "grant_type": "authorization_code",
                        "redirect_uri": self.redirect_uri,
                    },
                )
                token_resp.raise_for_status()
                access_token = token_resp.json()["access_token"]

                userinfo_resp = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                userinfo_resp.raise_for_status()
                info = userinfo_resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Google OAuth exchange failed with status {e.response.status_code}")
            raise OAuthError(f"Google OAuth exchange failed: {e}") from e
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error(f"Google OAuth error: {e}")
            raise OAuthError(f"Google OAuth error: {e}") from e

        email = info.get("email")
        if not email:
            raise OAuthError("Google profile has no email")
        return GoogleProfile(email=email, full_name=info.get("name"))
