"""
Public event endpoints
"""

from typing import Any, List
from uuid import UUID
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.event import EventDetail, EventResponse
from app.schemas.registration import ParticipantResponse, RegistrationStatus, WaitingListStatus
from app.schemas.response import MessageResponse, SuccessResponse
from app.services.event_service import event_service
from app.services.registration_service import registration_service
from app.services.waitlist_service import waitlist_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=SuccessResponse[List[EventResponse]])
async def get_events(
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Visible events that have not ended yet
    """
    events = await event_service.list_upcoming(db)
    return SuccessResponse(data=events)


@router.get("/past", response_model=SuccessResponse[List[EventResponse]])
async def get_past_events(
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Visible events that already ended
    """
    events = await event_service.list_past(db)
    return SuccessResponse(data=events)


@router.get("/latest", response_model=SuccessResponse[EventResponse])
async def get_latest_event(
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Next upcoming event
    """
    event = await event_service.latest_event(db)
    return SuccessResponse(data=EventResponse.model_validate(event))


@router.get("/{event_id}", response_model=SuccessResponse[EventDetail])
async def get_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Event with registration and waiting list counts
    """
    detail = await event_service.event_detail(db, event_id)
    return SuccessResponse(data=detail)


@router.get("/{event_id}/participants", response_model=SuccessResponse[List[ParticipantResponse]])
async def get_participants(
    event_id: UUID,
    db: AsyncSession = Depends(get_session)
) -> Any:
    registrations = await registration_service.list_participants(db, event_id)
    return SuccessResponse(data=[ParticipantResponse.model_validate(r) for r in registrations])


@router.get("/{event_id}/registration-status", response_model=SuccessResponse[RegistrationStatus])
async def get_registration_status(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Whether the logged-in user is registered for the event
    """
    status = await registration_service.registration_status(db, event_id, current_user.email)
    return SuccessResponse(data=status)


@router.get("/{event_id}/waitinglist-status", response_model=SuccessResponse[WaitingListStatus])
async def get_waiting_list_status(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Whether the logged-in user waits for the event, and at which position
    """
    status = await waitlist_service.status(
        db, event_id, current_user.email, current_user.first_name, current_user.last_name
    )
    return SuccessResponse(data=status)


@router.post("/{event_id}/unregister", response_model=MessageResponse)
async def unregister(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    await registration_service.unregister(db, event_id, current_user)
    return MessageResponse(message="Successfully unregistered from event")


@router.post("/{event_id}/leave-waitinglist", response_model=MessageResponse)
async def leave_waiting_list(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    await waitlist_service.leave(
        db,
        event_id,
        current_user.email,
        current_user.first_name,
        current_user.last_name,
        user_id=current_user.id
    )
    return MessageResponse(message="Removed from waiting list")
