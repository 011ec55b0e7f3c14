from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Optional
import logging

from auth_backend.deps import get_token_claims, get_user_service
from auth_backend.services.auth_service import TokenClaims
from auth_backend.services.user_service import UserService

router = APIRouter(prefix="/api", tags=["auth"])

logger = logging.getLogger("auth_backend.auth")


# ---------------------- MODELS ----------------------
# Fields are optional so that missing values surface as a 400, not a 422.
class RegisterIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


# ---------------------- ROUTES ----------------------
@router.post("/register")
async def register(payload: RegisterIn, users: UserService = Depends(get_user_service)):
    logger.info(f"POST /register received for email: {payload.email}")
    return await users.register(payload.email, payload.password, payload.full_name)


@router.post("/login")
async def login(payload: LoginIn, users: UserService = Depends(get_user_service)):
    logger.info(f"POST /login received for email: {payload.email}")
    token = await users.login(payload.email, payload.password)
    return {"token": token}


@router.get("/protected")
async def protected(claims: TokenClaims = Depends(get_token_claims)):
    return {"message": "Protected data", "user": claims.to_dict()}


@router.get("/user")
async def current_user_profile(
    claims: TokenClaims = Depends(get_token_claims),
    users: UserService = Depends(get_user_service),
):
    return {"user": await users.get_profile(claims)}


@router.post("/logout")
async def logout():
    # tokens are stateless; the client drops its copy
    return {"message": "Logged out successfully"}
