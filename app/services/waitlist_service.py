"""
Waiting List Service
FIFO waiting list per event and promotion of entries into registrations
"""

import logging
from typing import List, Optional

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import db_manager
from app.core.exceptions import (
    DuplicateRegistrationError,
    EventNotFoundError,
    NotFoundError,
    ValidationError,
)
from app.core.logging import mask_email
from app.core.metrics import WAITLIST_ADDITIONS, WAITLIST_PROMOTIONS
from app.models.enums import PaymentType, RegistrationAction
from app.models.event import Event
from app.models.registration import Registration, WaitingList
from app.schemas.registration import WaitingListStatus
from app.services.email_service import email_service
from app.services.history_service import history_service
from app.utils.timezone import is_past

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def get_event(session: AsyncSession, event_id) -> Event:
    event = await session.get(Event, event_id)
    if not event:
        raise EventNotFoundError(event_id)
    return event


async def count_registrations(session: AsyncSession, event_id) -> int:
    result = await session.execute(
        select(func.count(Registration.id)).where(Registration.event_id == event_id)
    )
    return result.scalar() or 0


async def count_waiting(session: AsyncSession, event_id) -> int:
    result = await session.execute(
        select(func.count(WaitingList.id)).where(WaitingList.event_id == event_id)
    )
    return result.scalar() or 0


def _same_person(model, event_id, email: str, first_name: str, last_name: Optional[str]):
    return (
        model.event_id == event_id,
        func.lower(model.email) == normalize_email(email),
        func.lower(model.first_name) == (first_name or "").strip().lower(),
        func.lower(model.last_name) == (last_name or "").strip().lower(),
    )


async def find_registration(
    session: AsyncSession, event_id, email: str, first_name: str, last_name: Optional[str]
) -> Optional[Registration]:
    result = await session.execute(
        select(Registration).where(*_same_person(Registration, event_id, email, first_name, last_name)).limit(1)
    )
    return result.scalar_one_or_none()


async def find_waiting_entry(
    session: AsyncSession, event_id, email: str, first_name: str, last_name: Optional[str]
) -> Optional[WaitingList]:
    result = await session.execute(
        select(WaitingList).where(*_same_person(WaitingList, event_id, email, first_name, last_name)).limit(1)
    )
    return result.scalar_one_or_none()


async def ensure_not_duplicate(
    session: AsyncSession, event_id, email: str, first_name: str, last_name: Optional[str]
) -> None:
    """
    Same person (email + first name + last name, case-insensitive) may hold
    either one registration or one waiting list entry per event.
    """
    if await find_registration(session, event_id, email, first_name, last_name):
        raise DuplicateRegistrationError(
            "A person with this name and email is already registered for this event"
        )
    if await find_waiting_entry(session, event_id, email, first_name, last_name):
        raise DuplicateRegistrationError(
            "A person with this name and email is already on the waiting list for this event"
        )


class WaitingListService:
    """Service for waiting list operations"""

    @staticmethod
    async def add_entry(
        session: AsyncSession,
        event: Event,
        first_name: str,
        last_name: Optional[str],
        email: str,
        phone_number: Optional[str] = None,
        payment_type: PaymentType = PaymentType.CASH,
        user_id=None
    ) -> WaitingList:
        """
        Add a waiting list row plus its history entry. Runs inside the
        caller's transaction.
        """
        entry = WaitingList(
            event_id=event.id,
            first_name=first_name.strip(),
            last_name=(last_name or "").strip(),
            email=normalize_email(email),
            phone_number=phone_number,
            payment_type=PaymentType(payment_type),
        )
        session.add(entry)
        await session.flush()

        await history_service.record(
            session,
            event_id=event.id,
            action=RegistrationAction.ADDED_TO_WAITLIST,
            first_name=entry.first_name,
            last_name=entry.last_name,
            email=entry.email,
            phone_number=entry.phone_number,
            waiting_list_id=entry.id,
            user_id=user_id,
            event_title=event.title
        )
        WAITLIST_ADDITIONS.inc()
        logger.info(
            f"{mask_email(entry.email)} added to waiting list",
            extra={"event_id": str(event.id)}
        )
        return entry

    @staticmethod
    async def join(
        session: AsyncSession,
        event_id,
        first_name: str,
        last_name: Optional[str],
        email: str,
        phone_number: Optional[str] = None,
        payment_type: PaymentType = PaymentType.CASH,
        user_id=None
    ) -> WaitingList:
        """Join the waiting list of an event (logged-in user or guest)"""
        event = await get_event(session, event_id)
        if is_past(event.from_time):
            raise ValidationError("Cannot join the waiting list of a past event", field="event_id")

        await ensure_not_duplicate(session, event.id, email, first_name, last_name)

        async with db_manager.transaction(session):
            entry = await WaitingListService.add_entry(
                session, event, first_name, last_name, email, phone_number, payment_type, user_id
            )
        return entry

    @staticmethod
    async def leave(
        session: AsyncSession,
        event_id,
        email: str,
        first_name: str,
        last_name: Optional[str],
        user_id=None
    ) -> None:
        """Remove the caller's own waiting list entry"""
        event = await get_event(session, event_id)
        entry = await find_waiting_entry(session, event.id, email, first_name, last_name)
        if not entry:
            raise NotFoundError("Waiting list entry")

        async with db_manager.transaction(session):
            await session.delete(entry)
            await history_service.record(
                session,
                event_id=event.id,
                action=RegistrationAction.UNREGISTERED,
                first_name=entry.first_name,
                last_name=entry.last_name,
                email=entry.email,
                phone_number=entry.phone_number,
                waiting_list_id=entry.id,
                user_id=user_id,
                event_title=event.title
            )

    @staticmethod
    async def list_entries(session: AsyncSession, event_id) -> List[WaitingList]:
        """Entries in promotion order, oldest first"""
        await get_event(session, event_id)
        result = await session.execute(
            select(WaitingList)
            .where(WaitingList.event_id == event_id)
            .order_by(WaitingList.created_at.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def status(session: AsyncSession, event_id, email: str, first_name: str, last_name: Optional[str]) -> WaitingListStatus:
        """Whether the person is waiting and at which 1-based position"""
        entries = await WaitingListService.list_entries(session, event_id)
        email = normalize_email(email)
        for position, entry in enumerate(entries, start=1):
            if (
                entry.email.lower() == email
                and entry.first_name.lower() == (first_name or "").strip().lower()
                and (entry.last_name or "").lower() == (last_name or "").strip().lower()
            ):
                return WaitingListStatus(on_waiting_list=True, position=position, total=len(entries))
        return WaitingListStatus(on_waiting_list=False, total=len(entries))

    @staticmethod
    async def delete_entry(session: AsyncSession, event_id, entry_id, actor_id=None) -> None:
        """Admin removal of a waiting list entry"""
        event = await get_event(session, event_id)
        entry = await session.get(WaitingList, entry_id)
        if not entry or entry.event_id != event.id:
            raise NotFoundError("Waiting list entry", entry_id)

        async with db_manager.transaction(session):
            await session.delete(entry)
            await history_service.record(
                session,
                event_id=event.id,
                action=RegistrationAction.DELETED_BY_MODERATOR,
                first_name=entry.first_name,
                last_name=entry.last_name,
                email=entry.email,
                phone_number=entry.phone_number,
                waiting_list_id=entry.id,
                user_id=actor_id,
                event_title=event.title
            )

    @staticmethod
    async def _convert(session: AsyncSession, event: Event, entry: WaitingList, actor_id=None) -> Registration:
        """Registration from a waiting list entry; the entry row is removed"""
        registration = Registration(
            event_id=event.id,
            first_name=entry.first_name,
            last_name=entry.last_name or "",
            email=normalize_email(entry.email),
            phone_number=entry.phone_number,
            payment_type=entry.payment_type,
            attended=False,
        )
        session.add(registration)
        await session.flush()

        # Bulk delete so the row is gone exactly once even if another request got it first
        await session.execute(delete(WaitingList).where(WaitingList.id == entry.id))

        await history_service.record(
            session,
            event_id=event.id,
            action=RegistrationAction.MOVED_FROM_WAITLIST,
            first_name=registration.first_name,
            last_name=registration.last_name,
            email=registration.email,
            phone_number=registration.phone_number,
            registration_id=registration.id,
            waiting_list_id=entry.id,
            user_id=actor_id,
            event_title=event.title
        )
        return registration

    @staticmethod
    async def _notify(event: Event, registrations: List[Registration]) -> None:
        for registration in registrations:
            try:
                sent = await email_service.send_waiting_list_promotion(
                    registration.email,
                    registration.first_name,
                    event,
                    registration.payment_type
                )
                if not sent:
                    logger.warning(f"Promotion email not sent to {mask_email(registration.email)}")
            except Exception as e:
                logger.error(f"Promotion email to {mask_email(registration.email)} failed: {e}")

    @staticmethod
    async def promote_waiting_list(session: AsyncSession, event: Event) -> List[Registration]:
        """
        Fill free spots from the waiting list, oldest entries first.

        Does nothing unless the event has auto_promote on. Conversions happen
        in one transaction; emails go out after commit and their failure does
        not undo the promotion.
        """
        if not event.auto_promote:
            return []

        current = await count_registrations(session, event.id)
        available_spots = event.capacity - current
        if available_spots <= 0:
            return []

        result = await session.execute(
            select(WaitingList)
            .where(WaitingList.event_id == event.id)
            .order_by(WaitingList.created_at.asc())
            .limit(available_spots)
        )
        entries = list(result.scalars().all())
        if not entries:
            return []

        promoted: List[Registration] = []
        async with db_manager.transaction(session):
            for entry in entries:
                promoted.append(await WaitingListService._convert(session, event, entry))

        WAITLIST_PROMOTIONS.labels(trigger="auto").inc(len(promoted))
        logger.info(
            f"Promoted {len(promoted)} waiting list entries ({available_spots} spots free)",
            extra={"event_id": str(event.id)}
        )

        await WaitingListService._notify(event, promoted)
        return promoted

    @staticmethod
    async def promote_entry(session: AsyncSession, event_id, entry_id, actor_id=None) -> Registration:
        """
        Admin promotion of one specific entry. Capacity is not checked.
        """
        event = await get_event(session, event_id)
        entry = await session.get(WaitingList, entry_id)
        if not entry or entry.event_id != event.id:
            raise NotFoundError("Waiting list entry", entry_id)

        async with db_manager.transaction(session):
            registration = await WaitingListService._convert(session, event, entry, actor_id)

        WAITLIST_PROMOTIONS.labels(trigger="manual").inc()
        logger.info(
            f"{mask_email(registration.email)} promoted from waiting list by admin",
            extra={"event_id": str(event.id)}
        )

        await WaitingListService._notify(event, [registration])
        return registration


waitlist_service = WaitingListService()
