"""
Registration endpoints
"""

from typing import Any, Optional
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.database import get_session
from app.core.exceptions import ValidationError
from app.core.security import RateLimiter, get_optional_user
from app.models.user import User
from app.schemas.registration import RegistrationRequest, RegistrationResult
from app.schemas.response import SuccessResponse
from app.services.registration_service import CreateRegistrationCommand, registration_service

router = APIRouter()
logger = logging.getLogger(__name__)

registration_rate_limit = RateLimiter(
    settings.RATE_LIMIT_REGISTRATION_PER_MINUTE, window=60, scope="registration"
)


@router.post(
    "",
    response_model=SuccessResponse[RegistrationResult],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(registration_rate_limit)]
)
async def create_registration(
    data: RegistrationRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Register for an event. When the event is full the person is put on the
    waiting list and the result is flagged is_waitlisted.
    """
    first_name = data.first_name or (current_user.first_name if current_user else None)
    last_name = data.last_name if data.last_name is not None else (current_user.last_name if current_user else "")
    email = data.email or (current_user.email if current_user else None)
    payment_type = data.payment_type or (current_user.payment_preference if current_user else None)

    if not first_name or not first_name.strip():
        raise ValidationError("First name is required", field="first_name")
    if not email:
        raise ValidationError("Email is required", field="email")

    command = CreateRegistrationCommand(
        event_id=data.event_id,
        first_name=first_name,
        last_name=last_name or "",
        email=email,
        phone_number=data.phone_number or (current_user.phone_number if current_user else None),
        payment_type=payment_type or "CASH",
        user_id=current_user.id if current_user else None,
        source="user" if current_user else "guest"
    )
    result = await registration_service.create_registration(db, command)

    message = "Added to waiting list" if result.is_waitlisted else "Registration successful"
    return SuccessResponse(data=result, message=message)
