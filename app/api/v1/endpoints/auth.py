"""
Authentication endpoints
"""

from typing import Any
import logging
from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.database import get_session, db_manager
from app.core.exceptions import AuthenticationError, ConflictError
from app.core.logging import mask_email
from app.core.security import get_password_hash, verify_password, token_for_user
from app.models.enums import UserRole
from app.models.user import User
from app.schemas.user import UserCreate, UserResponse, Token

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Register a new user
    """
    email = user_data.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise ConflictError("Email already registered")

    async with db_manager.transaction(db):
        user = User(
            email=email,
            first_name=user_data.first_name.strip(),
            last_name=(user_data.last_name or "").strip(),
            phone_number=user_data.phone_number,
            password_hash=get_password_hash(user_data.password),
            role=UserRole.USER,
            is_active=True
        )
        db.add(user)

    logger.info(f"User registered: {mask_email(email)}")
    return Token(access_token=token_for_user(user), user=UserResponse.model_validate(user))


@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    OAuth2 compatible token login
    """
    result = await db.execute(select(User).where(User.email == form_data.username.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(form_data.password, user.password_hash):
        raise AuthenticationError("Incorrect email or password")

    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    return Token(access_token=token_for_user(user), user=UserResponse.model_validate(user))
