"""
Waiting list endpoints
"""

from typing import Any
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.security import get_current_user
from app.api.v1.endpoints.registrations import registration_rate_limit
from app.models.user import User
from app.schemas.registration import GuestWaitingListJoin, WaitingListEntryResponse, WaitingListJoin
from app.schemas.response import SuccessResponse
from app.services.waitlist_service import waitlist_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "",
    response_model=SuccessResponse[WaitingListEntryResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(registration_rate_limit)]
)
async def join_waiting_list(
    data: WaitingListJoin,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Put the logged-in user on the waiting list
    """
    entry = await waitlist_service.join(
        db,
        data.event_id,
        current_user.first_name,
        current_user.last_name,
        current_user.email,
        current_user.phone_number,
        data.payment_type or current_user.payment_preference,
        user_id=current_user.id
    )
    return SuccessResponse(
        data=WaitingListEntryResponse.model_validate(entry),
        message="Added to waiting list successfully"
    )


@router.post(
    "/guest",
    response_model=SuccessResponse[WaitingListEntryResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(registration_rate_limit)]
)
async def join_waiting_list_as_guest(
    data: GuestWaitingListJoin,
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Put a guest on the waiting list
    """
    entry = await waitlist_service.join(
        db,
        data.event_id,
        data.first_name,
        data.last_name,
        data.email,
        data.phone_number,
        data.payment_type
    )
    return SuccessResponse(
        data=WaitingListEntryResponse.model_validate(entry),
        message="Added to waiting list successfully"
    )
