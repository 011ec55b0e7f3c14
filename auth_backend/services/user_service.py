# auth_backend/services/user_service.py
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from auth_backend.config import Settings
from auth_backend.errors import (
    DuplicateEmail,
    InternalError,
    InvalidCredentials,
    UserNotFound,
    ValidationError,
)
from auth_backend.models.user import User
from auth_backend.services.auth_service import (
    TokenClaims,
    create_access_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger("auth_backend.users")

MAX_PASSWORD_BYTES = 72


class UserService:
    """User record operations behind the HTTP endpoints. One instance per request."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def _get_by_email(self, email: str) -> Optional[User]:
        q = await self.db.execute(select(User).filter_by(email=email))
        return q.scalars().first()

    async def register(self, email: Optional[str], password: Optional[str], full_name: Optional[str] = None) -> dict:
        if not email or not password:
            raise ValidationError("Email and password required")
        # bcrypt only uses the first 72 bytes
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError("Password too long")
        hashed = hash_password(password, self.settings.bcrypt_rounds)

        self.db.add(User(email=email, password=hashed, full_name=full_name))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Registration rejected, email already exists: {email}")
            raise DuplicateEmail("Email already exists")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Registration failed for {email}: {e}")
            raise InternalError("Registration failed")

        logger.info(f"User registered successfully: {email}")
        return {"message": "User registered successfully"}

    async def login(self, email: Optional[str], password: Optional[str]) -> str:
        if not email or not password:
            raise ValidationError("Email and password required")
        try:
            user = await self._get_by_email(email)
        except SQLAlchemyError as e:
            logger.error(f"Login lookup failed for {email}: {e}")
            raise InternalError("Login failed")

        if not user or not verify_password(password, user.password):
            raise InvalidCredentials("Invalid credentials")

        logger.info(f"User logged in successfully: {email}")
        return create_access_token(user.id, user.email, self.settings, role=None)

    async def find_or_create_oauth_user(self, email: str, full_name: Optional[str]) -> User:
        """Resolve a Google profile to a user row, creating one without a password if needed."""
        try:
            user = await self._get_by_email(email)
            if user:
                logger.info(f"OAuth user found: {email}")
                return user

            logger.info(f"Creating new OAuth user: {email}")
            user = User(email=email, full_name=full_name)
            self.db.add(user)
            try:
                await self.db.commit()
            except IntegrityError:
                # a concurrent callback inserted the same email first
                await self.db.rollback()
                user = await self._get_by_email(email)
                if user is None:
                    raise
            return user
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"OAuth user lookup failed for {email}: {e}")
            raise InternalError("OAuth login failed")

    def issue_oauth_token(self, user: User) -> str:
        return create_access_token(user.id, user.email, self.settings)

    async def get_profile(self, claims: TokenClaims) -> dict:
        # read the row again; the claims may be stale
        try:
            q = await self.db.execute(select(User).filter_by(id=claims.id))
            user = q.scalars().first()
        except SQLAlchemyError as e:
            logger.error(f"User profile lookup failed for id={claims.id}: {e}")
            raise InternalError("Failed to load user")
        if not user:
            raise UserNotFound("User not found")
        return user.to_public()
