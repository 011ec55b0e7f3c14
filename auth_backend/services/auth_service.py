import bcrypt
import jwt
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Optional

from auth_backend.config import Settings
from auth_backend.errors import InvalidToken


# ---------------- PASSWORD HASHING ----------------

def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password hash. Accounts without a hash never match."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


# ---------------- JWT SESSION TOKENS ----------------

@dataclass(frozen=True)
class TokenClaims:
    """
    Claims carried by a session token.

    ``role`` is always present and always None: no user is ever assigned a
    role, and nothing checks it.
    """
    id: int
    email: str
    role: Optional[str] = None
    iat: Optional[int] = None
    exp: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)


def create_access_token(
    user_id: int,
    email: str,
    settings: Settings,
    role: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Generate a signed, non-renewable session token for a user."""
    issued = now or datetime.now(timezone.utc)
    expire = issued + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {"id": user_id, "email": email, "role": role, "iat": issued, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> TokenClaims:
    """
    Check signature and expiry and return the claims.
    Expired, malformed and forged tokens all raise the same InvalidToken.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "id", "email"]},
        )
    except jwt.PyJWTError:
        raise InvalidToken()
    if not isinstance(payload["id"], int) or not isinstance(payload["email"], str):
        raise InvalidToken()
    return TokenClaims(
        id=payload["id"],
        email=payload["email"],
        role=payload.get("role"),
        iat=payload.get("iat"),
        exp=payload["exp"],
    )
