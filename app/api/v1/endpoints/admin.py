"""
Admin endpoints for event, registration, waiting list and no-show management
"""

from typing import Any, List, Optional
from uuid import UUID
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.database import get_session, db_manager
from app.core.exceptions import NotFoundError, ValidationError
from app.core.security import require_admin, require_staff
from app.models.enums import UserRole
from app.models.user import User
from app.schemas.event import EventCreate, EventDetail, EventDuplicate, EventResponse, EventStats, EventUpdate
from app.schemas.history import HistoryPage
from app.schemas.no_show import (
    BulkImportResult,
    NoShowBulkImport,
    NoShowCreate,
    NoShowResponse,
    NoShowUpdate,
    PotentialNoShow,
)
from app.schemas.registration import (
    AttendanceToggle,
    PaymentToggle,
    RegistrationCreate,
    RegistrationResponse,
    RegistrationUpdate,
    WaitingListEntryResponse,
    WaitingListPromote,
)
from app.schemas.response import MessageResponse, SuccessResponse
from app.schemas.user import RoleUpdate, UserResponse
from app.services.event_service import event_service
from app.services.history_service import history_service
from app.services.no_show_service import no_show_service
from app.services.payment_service import list_bank_accounts
from app.services.registration_service import registration_service, to_response
from app.services.waitlist_service import waitlist_service

router = APIRouter()
logger = logging.getLogger(__name__)


# Events

@router.get("/events", response_model=SuccessResponse[List[EventResponse]])
async def list_events(
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    All events including hidden ones, newest first
    """
    events = await event_service.list_all(db)
    return SuccessResponse(data=[EventResponse.model_validate(e) for e in events])


@router.post("/events", response_model=SuccessResponse[EventResponse], status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    event = await event_service.create_event(db, event_data, admin)
    return SuccessResponse(data=EventResponse.model_validate(event), message="Event created")


@router.get("/events/past", response_model=SuccessResponse[List[EventResponse]])
async def list_past_events(
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    events = await event_service.list_past(db, include_hidden=True)
    return SuccessResponse(data=events)


@router.get("/events/stats", response_model=SuccessResponse[List[EventStats]])
async def get_event_stats(
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Registrations, waiting list, attendance and payments per event
    """
    return SuccessResponse(data=await event_service.event_stats(db))


@router.post("/events/duplicate", response_model=SuccessResponse[EventResponse], status_code=status.HTTP_201_CREATED)
async def duplicate_event(
    data: EventDuplicate,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    event = await event_service.duplicate_event(db, data, admin)
    return SuccessResponse(data=EventResponse.model_validate(event), message="Event duplicated successfully")


@router.get("/events/{event_id}", response_model=SuccessResponse[EventDetail])
async def get_event(
    event_id: UUID,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return SuccessResponse(data=await event_service.event_detail(db, event_id, include_hidden=True))


@router.put("/events/{event_id}", response_model=SuccessResponse[EventResponse])
async def update_event(
    event_id: UUID,
    event_update: EventUpdate,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Update event; raising capacity promotes waiting people when auto_promote is on
    """
    event = await event_service.update_event(db, event_id, event_update, admin)
    return SuccessResponse(data=EventResponse.model_validate(event), message="Event updated")


@router.delete("/events/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: UUID,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    await event_service.delete_event(db, event_id, admin)
    return MessageResponse(message="Event deleted")


@router.get("/events/{event_id}/registrations", response_model=SuccessResponse[List[RegistrationResponse]])
async def list_event_registrations(
    event_id: UUID,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return SuccessResponse(data=await registration_service.list_registrations(db, event_id))


@router.get("/events/{event_id}/waitinglist", response_model=SuccessResponse[List[WaitingListEntryResponse]])
async def list_event_waiting_list(
    event_id: UUID,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Waiting list in promotion order
    """
    entries = await waitlist_service.list_entries(db, event_id)
    return SuccessResponse(data=[WaitingListEntryResponse.model_validate(e) for e in entries])


@router.post("/events/{event_id}/waitinglist", response_model=SuccessResponse[RegistrationResponse])
async def promote_waiting_list_entry(
    event_id: UUID,
    data: WaitingListPromote,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Move one waiting list entry to registrations, even when the event is full
    """
    registration = await waitlist_service.promote_entry(db, event_id, data.entry_id, admin.id)
    return SuccessResponse(data=to_response(registration), message="Moved from waiting list to registrations")


@router.delete("/events/{event_id}/waitinglist/{entry_id}", response_model=MessageResponse)
async def delete_waiting_list_entry(
    event_id: UUID,
    entry_id: UUID,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    await waitlist_service.delete_entry(db, event_id, entry_id, admin.id)
    return MessageResponse(message="Waiting list entry removed")


@router.get("/events/{event_id}/potential-no-shows", response_model=SuccessResponse[List[PotentialNoShow]])
async def list_potential_no_shows(
    event_id: UUID,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Registrations that did not attend and did not pay, not yet recorded as no-shows
    """
    return SuccessResponse(data=await no_show_service.potential_no_shows(db, event_id))


@router.get("/bank-accounts")
async def get_bank_accounts(
    admin: User = Depends(require_staff)
) -> Any:
    return SuccessResponse(data=[
        {"id": a.id, "name": a.name, "account_number": a.account_number, "is_default": a.is_default}
        for a in list_bank_accounts()
    ])


# Registrations

@router.post("/registrations", response_model=SuccessResponse[RegistrationResponse], status_code=status.HTTP_201_CREATED)
async def add_registration(
    data: RegistrationCreate,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Add a participant directly, ignoring capacity
    """
    registration = await registration_service.admin_add_registration(
        db,
        data.event_id,
        data.first_name,
        data.last_name,
        data.email,
        data.phone_number,
        data.payment_type,
        actor_id=admin.id
    )
    return SuccessResponse(data=to_response(registration), message="Registration added")


@router.get("/registrations/history", response_model=SuccessResponse[HistoryPage])
async def get_registration_history(
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    event_id: Optional[UUID] = None,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Registration history, newest first
    """
    page = await history_service.list_history(db, limit=limit, offset=offset, event_id=event_id)
    return SuccessResponse(data=page)


@router.post("/registrations/toggle-attendance", response_model=SuccessResponse[RegistrationResponse])
async def toggle_attendance(
    data: AttendanceToggle,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    registration = await registration_service.toggle_attendance(db, data.registration_id, data.attended)
    return SuccessResponse(data=to_response(registration))


@router.post("/registrations/toggle-payment", response_model=SuccessResponse[RegistrationResponse])
async def toggle_payment(
    data: PaymentToggle,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    payment = await registration_service.set_payment_status(db, data.registration_id, data.paid)
    registration = await registration_service.get_registration(db, data.registration_id)
    return SuccessResponse(data=to_response(registration, payment))


@router.put("/registrations/{registration_id}", response_model=SuccessResponse[RegistrationResponse])
async def update_registration(
    registration_id: UUID,
    data: RegistrationUpdate,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")
    registration = await registration_service.update_registration(db, registration_id, changes)
    return SuccessResponse(data=to_response(registration), message="Registration updated")


@router.delete("/registrations/{registration_id}")
async def delete_registration(
    registration_id: UUID,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Remove a registration; the freed spot may be filled from the waiting list
    """
    promoted = await registration_service.delete_registration(db, registration_id, actor_id=admin.id)
    return SuccessResponse(
        data={"promoted": [str(r.id) for r in promoted]},
        message="Registration deleted"
    )


# No-shows

@router.get("/no-shows", response_model=SuccessResponse[List[NoShowResponse]])
async def list_no_shows(
    fee_paid: Optional[bool] = None,
    email: Optional[str] = None,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    no_shows = await no_show_service.list_no_shows(db, fee_paid=fee_paid, email=email)
    return SuccessResponse(data=[NoShowResponse.model_validate(n) for n in no_shows])


@router.post("/no-shows", response_model=SuccessResponse[NoShowResponse], status_code=status.HTTP_201_CREATED)
async def create_no_show(
    data: NoShowCreate,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    no_show = await no_show_service.create_no_show(db, data)
    return SuccessResponse(data=NoShowResponse.model_validate(no_show))


@router.post("/no-shows/bulk-import", response_model=SuccessResponse[BulkImportResult])
async def bulk_import_no_shows(
    data: NoShowBulkImport,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Record several non-attendees; people already recorded for the event are skipped
    """
    return SuccessResponse(data=await no_show_service.bulk_import(db, data))


@router.put("/no-shows/{no_show_id}", response_model=SuccessResponse[NoShowResponse])
async def update_no_show(
    no_show_id: UUID,
    data: NoShowUpdate,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    no_show = await no_show_service.update_no_show(db, no_show_id, data)
    return SuccessResponse(data=NoShowResponse.model_validate(no_show))


@router.delete("/no-shows/{no_show_id}", response_model=MessageResponse)
async def delete_no_show(
    no_show_id: UUID,
    admin: User = Depends(require_staff),
    db: AsyncSession = Depends(get_session)
) -> Any:
    await no_show_service.delete_no_show(db, no_show_id)
    return MessageResponse(message="No-show record deleted")


# Users

@router.get("/users", response_model=SuccessResponse[List[UserResponse]])
async def get_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Get all users (admin only)
    """
    result = await db.execute(select(User).order_by(User.created_at.desc()).offset(skip).limit(limit))
    return SuccessResponse(data=[UserResponse.model_validate(u) for u in result.scalars().all()])


@router.put("/users/{user_id}/role", response_model=SuccessResponse[UserResponse])
async def update_user_role(
    user_id: UUID,
    data: RoleUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Update user role (admin only)
    """
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    if user.id == admin.id and UserRole(data.role) != UserRole.ADMIN:
        raise ValidationError("Admins cannot remove their own admin role", field="role")

    async with db_manager.transaction(db):
        user.role = UserRole(data.role)

    logger.info(f"User {user.id} role changed to {user.role.value} by {admin.id}")
    return SuccessResponse(data=UserResponse.model_validate(user))
