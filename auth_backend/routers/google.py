# auth_backend/routers/google.py
import logging
import secrets
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Cookie, Depends
from fastapi.responses import RedirectResponse

from auth_backend.config import Settings
from auth_backend.deps import get_google_client, get_user_service, settings_dep
from auth_backend.errors import OAuthError
from auth_backend.services.google_oauth import GoogleOAuthClient
from auth_backend.services.user_service import UserService

router = APIRouter(prefix="/api/auth/google", tags=["google"])

logger = logging.getLogger("auth_backend.google")

STATE_COOKIE = "oauth_state"
STATE_MAX_AGE = 600


@router.get("")
async def google_login(google: GoogleOAuthClient = Depends(get_google_client)):
    state = secrets.token_urlsafe(16)
    response = RedirectResponse(google.build_authorization_url(state))
    response.set_cookie(STATE_COOKIE, state, max_age=STATE_MAX_AGE, httponly=True, samesite="lax")
    return response


def _failure(settings: Settings, reason: str) -> RedirectResponse:
    logger.warning(f"Google callback failed: {reason}")
    response = RedirectResponse(settings.oauth_failure_url)
    response.delete_cookie(STATE_COOKIE)
    return response


@router.get("/callback")
async def google_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    oauth_state: Optional[str] = Cookie(None),
    settings: Settings = Depends(settings_dep),
    google: GoogleOAuthClient = Depends(get_google_client),
    users: UserService = Depends(get_user_service),
):
    if error:
        return _failure(settings, f"provider error {error}")
    if not code:
        return _failure(settings, "missing authorization code")
    if not state or not oauth_state or not secrets.compare_digest(state, oauth_state):
        return _failure(settings, "state mismatch")

    try:
        profile = await google.fetch_profile(code)
    except OAuthError as e:
        return _failure(settings, str(e))

    user = await users.find_or_create_oauth_user(profile.email, profile.full_name)
    token = users.issue_oauth_token(user)
    logger.info(f"Google callback success: {user.email}")

    query = urlencode({"token": token, "email": user.email})
    response = RedirectResponse(f"{settings.frontend_url}/google-success?{query}")
    response.delete_cookie(STATE_COOKIE)
    return response
