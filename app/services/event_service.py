"""
Event Service
Event lifecycle, public listings and admin statistics
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import select, func, delete, case
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.cache import cache_manager
from app.core.database import db_manager
from app.core.exceptions import NotFoundError, ValidationError, get_code, Module, ErrorCode
from app.models.enums import RegistrationAction
from app.models.event import Event
from app.models.payment import Payment
from app.models.registration import Registration, WaitingList
from app.schemas.event import EventCreate, EventDetail, EventDuplicate, EventResponse, EventStats, EventUpdate
from app.services.history_service import history_service
from app.services.payment_service import get_bank_account
from app.services.waitlist_service import waitlist_service, count_registrations, count_waiting, get_event
from app.utils.timezone import ensure_aware, utcnow

logger = logging.getLogger(__name__)


def _check_bank_account(bank_account_id: Optional[str]) -> None:
    if bank_account_id and not get_bank_account(bank_account_id):
        raise ValidationError(
            f"Bank account with ID '{bank_account_id}' not found",
            field="bank_account_id",
            code=get_code(Module.EVENT, ErrorCode.BAD_PAYMENT_TYPE)
        )


class EventService:
    """Service for event operations"""

    @staticmethod
    async def _record(session: AsyncSession, event: Event, action: RegistrationAction, actor) -> None:
        # Event level entries carry the actor as the person
        await history_service.record(
            session,
            event_id=event.id,
            action=action,
            first_name=getattr(actor, "first_name", None) or "System",
            last_name=getattr(actor, "last_name", None),
            email=getattr(actor, "email", None) or settings.FROM_EMAIL,
            user_id=getattr(actor, "id", None),
            event_title=event.title
        )

    @staticmethod
    async def create_event(session: AsyncSession, data: EventCreate, actor=None) -> Event:
        _check_bank_account(data.bank_account_id)

        async with db_manager.transaction(session):
            event = Event(**data.model_dump(), created_by=getattr(actor, "id", None))
            session.add(event)
            await session.flush()
            await EventService._record(session, event, RegistrationAction.EVENT_CREATED, actor)

        await cache_manager.invalidate_events_cache()
        logger.info(f"Event created: {event.title}", extra={"event_id": str(event.id)})
        return event

    @staticmethod
    async def update_event(session: AsyncSession, event_id, data: EventUpdate, actor=None) -> Event:
        """
        Apply changes; when capacity or auto_promote changed and the event
        auto-promotes, fill newly available spots from the waiting list.
        """
        event = await get_event(session, event_id)
        changes = data.model_dump(exclude_unset=True)
        _check_bank_account(changes.get("bank_account_id"))

        from_time = ensure_aware(changes.get("from_time") or event.from_time)
        to_time = ensure_aware(changes.get("to_time") or event.to_time)
        if to_time <= from_time:
            raise ValidationError("End time must be after start time", field="to_time")

        promotion_relevant = (
            ("capacity" in changes and changes["capacity"] != event.capacity)
            or ("auto_promote" in changes and changes["auto_promote"] != event.auto_promote)
        )

        async with db_manager.transaction(session):
            for field, value in changes.items():
                setattr(event, field, value)
            await EventService._record(session, event, RegistrationAction.EVENT_UPDATED, actor)

        await cache_manager.invalidate_events_cache()

        if promotion_relevant and event.auto_promote:
            try:
                await waitlist_service.promote_waiting_list(session, event)
            except Exception as e:
                logger.error(f"Waiting list promotion after event update failed: {e}", extra={"event_id": str(event.id)})

        return event

    @staticmethod
    async def delete_event(session: AsyncSession, event_id, actor=None) -> None:
        """Delete an event with its registrations, payments and waiting list"""
        event = await get_event(session, event_id)

        async with db_manager.transaction(session):
            registration_ids = select(Registration.id).where(Registration.event_id == event.id)
            await session.execute(delete(Payment).where(Payment.registration_id.in_(registration_ids)))
            await session.execute(delete(Registration).where(Registration.event_id == event.id))
            await session.execute(delete(WaitingList).where(WaitingList.event_id == event.id))
            await EventService._record(session, event, RegistrationAction.EVENT_DELETED, actor)
            await session.delete(event)

        await cache_manager.invalidate_events_cache()
        logger.info(f"Event deleted: {event.title}", extra={"event_id": str(event.id)})

    @staticmethod
    async def duplicate_event(session: AsyncSession, data: EventDuplicate, actor=None) -> Event:
        """Copy of an event on new dates, without participants"""
        source = await get_event(session, data.event_id)
        _check_bank_account(data.bank_account_id)

        create = EventCreate(
            title=data.title or source.title,
            description=source.description,
            price=source.price,
            place=source.place,
            capacity=source.capacity,
            from_time=data.from_time,
            to_time=data.to_time,
            visible=source.visible,
            auto_promote=source.auto_promote,
            bank_account_id=data.bank_account_id or source.bank_account_id,
        )
        return await EventService.create_event(session, create, actor)

    @staticmethod
    async def _cached_list(session: AsyncSession, prefix: str, query) -> List[Dict]:
        cache_key = cache_manager.generate_cache_key(prefix)
        cached = await cache_manager.get(cache_key)
        if cached is not None:
            return cached

        result = await session.execute(query)
        events = [EventResponse.model_validate(e).model_dump(mode="json") for e in result.scalars().all()]
        await cache_manager.set(cache_key, events, ttl=settings.CACHE_TTL_EVENTS)
        return events

    @staticmethod
    async def list_upcoming(session: AsyncSession) -> List[Dict]:
        """Visible events that have not ended yet, soonest first"""
        query = (
            select(Event)
            .where(Event.visible.is_(True), Event.to_time >= utcnow())
            .order_by(Event.from_time.asc())
        )
        return await EventService._cached_list(session, "events:upcoming", query)

    @staticmethod
    async def list_past(session: AsyncSession, include_hidden: bool = False) -> List[Dict]:
        """Finished events, most recent first"""
        query = select(Event).where(Event.to_time < utcnow())
        if not include_hidden:
            query = query.where(Event.visible.is_(True))
        query = query.order_by(Event.from_time.desc())
        prefix = "events:past:all" if include_hidden else "events:past"
        return await EventService._cached_list(session, prefix, query)

    @staticmethod
    async def list_all(session: AsyncSession) -> List[Event]:
        result = await session.execute(select(Event).order_by(Event.from_time.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def latest_event(session: AsyncSession) -> Event:
        """Next visible event that has not ended"""
        result = await session.execute(
            select(Event)
            .where(Event.visible.is_(True), Event.to_time >= utcnow())
            .order_by(Event.from_time.asc())
            .limit(1)
        )
        event = result.scalar_one_or_none()
        if not event:
            raise NotFoundError("Upcoming event", code=get_code(Module.EVENT, ErrorCode.NOT_FOUND))
        return event

    @staticmethod
    async def event_detail(session: AsyncSession, event_id, include_hidden: bool = False) -> EventDetail:
        event = await get_event(session, event_id)
        if not event.visible and not include_hidden:
            raise NotFoundError("Event", event_id, code=get_code(Module.EVENT, ErrorCode.NOT_FOUND))

        registrations = await count_registrations(session, event.id)
        waiting = await count_waiting(session, event.id)

        detail = EventDetail.model_validate(event)
        detail.registration_count = registrations
        detail.waiting_list_count = waiting
        detail.available_spots = max(event.capacity - registrations, 0)
        return detail

    @staticmethod
    async def event_stats(session: AsyncSession) -> List[EventStats]:
        """Occupancy, attendance and payment numbers per event"""
        registration_counts = (
            select(
                Registration.event_id.label("event_id"),
                func.count(Registration.id).label("registrations"),
                func.sum(case((Registration.attended.is_(True), 1), else_=0)).label("attended"),
                func.sum(case((Payment.paid.is_(True), 1), else_=0)).label("paid"),
            )
            .outerjoin(Payment, Payment.registration_id == Registration.id)
            .group_by(Registration.event_id)
            .subquery()
        )
        waiting_counts = (
            select(
                WaitingList.event_id.label("event_id"),
                func.count(WaitingList.id).label("waiting_list"),
            )
            .group_by(WaitingList.event_id)
            .subquery()
        )

        result = await session.execute(
            select(
                Event,
                func.coalesce(registration_counts.c.registrations, 0),
                func.coalesce(registration_counts.c.attended, 0),
                func.coalesce(registration_counts.c.paid, 0),
                func.coalesce(waiting_counts.c.waiting_list, 0),
            )
            .outerjoin(registration_counts, registration_counts.c.event_id == Event.id)
            .outerjoin(waiting_counts, waiting_counts.c.event_id == Event.id)
            .order_by(Event.from_time.desc())
        )

        return [
            EventStats(
                event_id=event.id,
                title=event.title,
                from_time=event.from_time,
                capacity=event.capacity,
                registrations=registrations,
                waiting_list=waiting,
                attended=attended,
                paid=paid,
            )
            for event, registrations, attended, paid, waiting in result.all()
        ]


event_service = EventService()
