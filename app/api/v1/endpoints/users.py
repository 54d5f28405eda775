"""
User profile endpoints
"""

from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session, db_manager
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.user import PaymentPreferenceUpdate, UserResponse, UserUpdate
from app.schemas.response import SuccessResponse

router = APIRouter()


@router.get("/profile", response_model=SuccessResponse[UserResponse])
async def get_user_profile(
    current_user: User = Depends(get_current_user)
) -> Any:
    """
    Get current user profile
    """
    return SuccessResponse(data=UserResponse.model_validate(current_user))


@router.put("/profile", response_model=SuccessResponse[UserResponse])
async def update_user_profile(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Update current user profile
    """
    async with db_manager.transaction(db):
        for field, value in user_update.model_dump(exclude_unset=True).items():
            setattr(current_user, field, value)

    return SuccessResponse(data=UserResponse.model_validate(current_user), message="Profile updated")


@router.get("/payment-preference", response_model=SuccessResponse[PaymentPreferenceUpdate])
async def get_payment_preference(
    current_user: User = Depends(get_current_user)
) -> Any:
    return SuccessResponse(data=PaymentPreferenceUpdate(payment_preference=current_user.payment_preference))


@router.put("/payment-preference", response_model=SuccessResponse[PaymentPreferenceUpdate])
async def update_payment_preference(
    preference: PaymentPreferenceUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Default payment type for the user's future registrations
    """
    async with db_manager.transaction(db):
        current_user.payment_preference = preference.payment_preference

    return SuccessResponse(data=preference, message="Payment preference updated")
