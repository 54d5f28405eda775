"""
Security utilities for authentication and authorization
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import time
from uuid import UUID

from app.config import settings
from app.core.database import get_session
from app.core.exceptions import AuthenticationError, AuthorizationError, RateLimitError
from app.core.redis import is_rate_limited
from app.models.enums import UserRole
from app.models.user import User

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# OAuth2 scheme; optional so guest endpoints can share the dependency
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)


class SecurityManager:
    """
    Security manager for authentication and authorization
    """

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """
        Verify a plain password against a hashed password
        """
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash a password
        """
        return pwd_context.hash(password)

    @staticmethod
    def create_access_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a JWT access token
        """
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
        )

        to_encode.update({
            "exp": expire,
            "type": "access",
            "iat": int(time.time()),
        })

        return jwt.encode(
            to_encode,
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM
        )

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """
        Decode and verify a JWT access token
        """
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM]
            )
        except JWTError as e:
            logger.warning(f"JWT decode error: {e}")
            raise AuthenticationError("Could not validate credentials")

        if payload.get("type") != "access":
            raise AuthenticationError("Invalid token type")
        return payload


# Create global security manager
security_manager = SecurityManager()

verify_password = security_manager.verify_password
get_password_hash = security_manager.hash_password


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create access token helper function
    """
    return security_manager.create_access_token(data, expires_delta)


def token_for_user(user: User) -> str:
    return create_access_token(
        data={"sub": str(user.id), "email": user.email, "role": UserRole(user.role).value}
    )


async def _user_from_token(token: str, db: AsyncSession) -> User:
    payload = security_manager.decode_token(token)
    user_id = payload.get("sub")
    if user_id is None:
        raise AuthenticationError("Could not validate credentials")

    result = await db.execute(select(User).where(User.id == _as_uuid(user_id)))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise AuthenticationError("User not found")
    return user


def _as_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise AuthenticationError("Could not validate credentials")


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_session)
) -> User:
    """
    Get current user from the bearer token
    """
    if not token:
        raise AuthenticationError("Not authenticated")
    return await _user_from_token(token, db)


async def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_session)
) -> Optional[User]:
    """
    Current user when a valid token is sent, otherwise None (guest)
    """
    if not token:
        return None
    try:
        return await _user_from_token(token, db)
    except AuthenticationError:
        return None


async def require_staff(current_user: User = Depends(get_current_user)) -> User:
    """
    Require moderator or admin role for endpoint
    """
    if UserRole(current_user.role) not in (UserRole.MODERATOR, UserRole.ADMIN):
        raise AuthorizationError("Moderator or admin access required")
    return current_user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Require admin role for endpoint
    """
    if UserRole(current_user.role) != UserRole.ADMIN:
        raise AuthorizationError("Admin access required")
    return current_user


class RateLimiter:
    """
    Rate limiter for API endpoints, keyed by user or client address
    """

    def __init__(self, max_requests: int, window: int = 60, scope: str = "api"):
        self.max_requests = max_requests
        self.window = window
        self.scope = scope

    async def __call__(self, request: Request, token: Optional[str] = Depends(oauth2_scheme)):
        """
        Check rate limit for caller
        """
        if not settings.RATE_LIMIT_ENABLED:
            return

        identity = request.client.host if request.client else "anonymous"
        if token:
            try:
                identity = f"user:{security_manager.decode_token(token).get('sub')}"
            except AuthenticationError:
                pass

        limited, _ = await is_rate_limited(
            f"{self.scope}:{identity}", self.max_requests, self.window
        )
        if limited:
            raise RateLimitError(self.max_requests, self.window)
