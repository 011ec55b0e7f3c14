# auth_backend/deps.py
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth_backend.config import Settings
from auth_backend.errors import InvalidToken
from auth_backend.services.auth_service import TokenClaims, decode_access_token
from auth_backend.services.google_oauth import GoogleOAuthClient
from auth_backend.services.user_service import UserService


def settings_dep(request: Request) -> Settings:
    return request.app.state.settings


async def get_db(request: Request):
    async with request.app.state.db.session_factory() as session:
        yield session


def get_user_service(db: AsyncSession = Depends(get_db), settings: Settings = Depends(settings_dep)) -> UserService:
    return UserService(db, settings)


def get_google_client(request: Request) -> GoogleOAuthClient:
    return request.app.state.google_oauth


def get_token_claims(authorization: str = Header(None), settings: Settings = Depends(settings_dep)) -> TokenClaims:
    """
    Expect Authorization: Bearer <token>
    Returns the verified claims or raises InvalidToken (401).
    """
    if not authorization:
        raise InvalidToken("No token provided")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise InvalidToken("Invalid token")
    return decode_access_token(parts[1], settings)
