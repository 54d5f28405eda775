"""
Registration Service
Creating, editing and removing event registrations
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import db_manager
from app.core.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    RegistrationError,
    get_code,
    Module,
    ErrorCode,
)
from app.core.logging import mask_email
from app.core.metrics import REGISTRATIONS_CREATED
from app.models.enums import PaymentType, RegistrationAction
from app.models.event import Event
from app.models.payment import Payment
from app.models.registration import Registration
from app.models.user import User
from app.schemas.registration import RegistrationResult, RegistrationResponse, RegistrationStatus
from app.services.email_service import email_service
from app.services.history_service import history_service
from app.services.payment_service import payment_service
from app.services.waitlist_service import (
    waitlist_service,
    count_registrations,
    ensure_not_duplicate,
    get_event,
    normalize_email,
)
from app.utils.timezone import is_past

logger = logging.getLogger(__name__)

CASHLESS_PAYMENT_TYPES = (PaymentType.QR, PaymentType.CARD)


@dataclass
class CreateRegistrationCommand:
    event_id: object
    first_name: str
    last_name: str
    email: str
    payment_type: PaymentType = PaymentType.CASH
    phone_number: Optional[str] = None
    user_id: Optional[object] = None
    source: str = "guest"


def to_response(registration: Registration, payment: Optional[Payment] = None) -> RegistrationResponse:
    response = RegistrationResponse.model_validate(registration)
    response.paid = payment.paid if payment else None
    return response


class RegistrationService:
    """Service for registration operations"""

    @staticmethod
    async def create_registration(session: AsyncSession, command: CreateRegistrationCommand) -> RegistrationResult:
        """
        Register a person for an event, or put them on the waiting list when
        the event is full.
        """
        event = await get_event(session, command.event_id)
        email = normalize_email(command.email)
        first_name = command.first_name.strip()
        last_name = (command.last_name or "").strip()
        payment_type = PaymentType(command.payment_type)

        await ensure_not_duplicate(session, event.id, email, first_name, last_name)

        current = await count_registrations(session, event.id)
        if current >= event.capacity:
            logger.info(
                f"Event at capacity ({current}/{event.capacity}), adding {mask_email(email)} to waiting list",
                extra={"event_id": str(event.id)}
            )
            try:
                async with db_manager.transaction(session):
                    entry = await waitlist_service.add_entry(
                        session, event, first_name, last_name, email,
                        command.phone_number, payment_type, command.user_id
                    )
            except Exception as e:
                logger.error(f"Failed to create waiting list entry: {e}")
                raise DatabaseError("Failed to add to waiting list")

            return RegistrationResult(
                registration_id=entry.id,
                first_name=entry.first_name,
                last_name=entry.last_name,
                email=entry.email,
                payment_type=entry.payment_type,
                is_waitlisted=True
            )

        try:
            async with db_manager.transaction(session):
                registration = Registration(
                    event_id=event.id,
                    first_name=first_name,
                    last_name=last_name,
                    email=email,
                    phone_number=command.phone_number,
                    payment_type=payment_type,
                )
                session.add(registration)
                await session.flush()

                await history_service.record(
                    session,
                    event_id=event.id,
                    action=RegistrationAction.REGISTERED,
                    first_name=registration.first_name,
                    last_name=registration.last_name,
                    email=registration.email,
                    phone_number=registration.phone_number,
                    registration_id=registration.id,
                    user_id=command.user_id,
                    event_title=event.title
                )
        except Exception as e:
            logger.error(f"Failed to create registration: {e}")
            raise DatabaseError("Failed to create registration")

        REGISTRATIONS_CREATED.labels(source=command.source).inc()
        logger.info(
            f"Registered {mask_email(email)}",
            extra={"event_id": str(event.id), "user_id": str(command.user_id) if command.user_id else None}
        )

        payment = None
        if payment_type in CASHLESS_PAYMENT_TYPES:
            payment = await RegistrationService._attach_payment(session, event, registration)

        await email_service.send_registration_confirmation(
            registration.email,
            registration.first_name,
            event,
            qr_code_data=payment.qr_data if payment else None,
            variable_symbol=payment.variable_symbol if payment else None
        )

        return RegistrationResult(
            registration_id=registration.id,
            first_name=registration.first_name,
            last_name=registration.last_name,
            email=registration.email,
            payment_type=registration.payment_type,
            qr_code_data=payment.qr_data if payment else None,
            variable_symbol=payment.variable_symbol if payment else None,
            is_waitlisted=False
        )

    @staticmethod
    async def _attach_payment(session: AsyncSession, event: Event, registration: Registration) -> Optional[Payment]:
        """QR payment for a fresh registration; failure leaves the registration intact"""
        try:
            async with db_manager.transaction(session):
                payment = payment_service.create_payment(
                    session, registration, event.price, event.bank_account_id
                )
            return payment
        except Exception as e:
            logger.error(f"Error creating payment data for registration {registration.id}: {e}")
            return None

    @staticmethod
    async def get_registration(session: AsyncSession, registration_id) -> Registration:
        registration = await session.get(Registration, registration_id)
        if not registration:
            raise NotFoundError(
                "Registration",
                registration_id,
                code=get_code(Module.REGISTRATION, ErrorCode.NOT_FOUND)
            )
        return registration

    @staticmethod
    async def delete_registration(
        session: AsyncSession,
        registration_id,
        actor_id=None,
        action: RegistrationAction = RegistrationAction.DELETED_BY_MODERATOR
    ) -> List[Registration]:
        """
        Delete a registration with its payment, then fill the freed spot from
        the waiting list when the event auto-promotes.

        Returns the registrations created by promotion.
        """
        registration = await RegistrationService.get_registration(session, registration_id)
        event = await get_event(session, registration.event_id)

        async with db_manager.transaction(session):
            await session.execute(delete(Payment).where(Payment.registration_id == registration.id))
            await session.delete(registration)
            await history_service.record(
                session,
                event_id=event.id,
                action=action,
                first_name=registration.first_name,
                last_name=registration.last_name,
                email=registration.email,
                phone_number=registration.phone_number,
                registration_id=registration.id,
                user_id=actor_id,
                event_title=event.title
            )

        logger.info(
            f"Registration of {mask_email(registration.email)} removed ({action.value})",
            extra={"event_id": str(event.id)}
        )

        try:
            return await waitlist_service.promote_waiting_list(session, event)
        except Exception as e:
            # Deletion already committed; promotion can be retried by editing the event
            logger.error(f"Waiting list promotion after deletion failed: {e}", extra={"event_id": str(event.id)})
            return []

    @staticmethod
    async def unregister(session: AsyncSession, event_id, user: User) -> List[Registration]:
        """Self-service cancellation by a logged-in user"""
        event = await get_event(session, event_id)
        if is_past(event.to_time):
            raise RegistrationError("Cannot unregister from past events")

        result = await session.execute(
            select(Registration)
            .where(Registration.event_id == event.id, Registration.email == normalize_email(user.email))
            .order_by(Registration.created_at.asc())
            .limit(1)
        )
        registration = result.scalar_one_or_none()
        if not registration:
            raise RegistrationError("You are not registered for this event")

        return await RegistrationService.delete_registration(
            session, registration.id, actor_id=user.id, action=RegistrationAction.UNREGISTERED
        )

    @staticmethod
    async def admin_add_registration(
        session: AsyncSession,
        event_id,
        first_name: str,
        last_name: Optional[str],
        email: str,
        phone_number: Optional[str] = None,
        payment_type: PaymentType = PaymentType.CASH,
        actor_id=None
    ) -> Registration:
        """Admin adds a participant directly; capacity is not checked"""
        event = await get_event(session, event_id)
        email = normalize_email(email)

        existing = await session.execute(
            select(Registration.id).where(Registration.event_id == event.id, Registration.email == email).limit(1)
        )
        if existing.scalar_one_or_none():
            raise ConflictError(
                "A registration with this email already exists for this event",
                code=get_code(Module.REGISTRATION, ErrorCode.REGISTRATION_ALREADY_EXISTS)
            )

        async with db_manager.transaction(session):
            registration = Registration(
                event_id=event.id,
                first_name=first_name.strip(),
                last_name=(last_name or "").strip(),
                email=email,
                phone_number=phone_number,
                payment_type=payment_type,
            )
            session.add(registration)
            await session.flush()
            await history_service.record(
                session,
                event_id=event.id,
                action=RegistrationAction.REGISTERED,
                first_name=registration.first_name,
                last_name=registration.last_name,
                email=registration.email,
                phone_number=registration.phone_number,
                registration_id=registration.id,
                user_id=actor_id,
                event_title=event.title
            )

        REGISTRATIONS_CREATED.labels(source="admin").inc()
        return registration

    @staticmethod
    async def update_registration(session: AsyncSession, registration_id, changes: Dict) -> Registration:
        registration = await RegistrationService.get_registration(session, registration_id)

        async with db_manager.transaction(session):
            for field, value in changes.items():
                if field == "email" and value:
                    value = normalize_email(value)
                setattr(registration, field, value)

        return registration

    @staticmethod
    async def toggle_attendance(session: AsyncSession, registration_id, attended: bool) -> Registration:
        registration = await RegistrationService.get_registration(session, registration_id)
        async with db_manager.transaction(session):
            registration.attended = attended
        return registration

    @staticmethod
    async def set_payment_status(session: AsyncSession, registration_id, paid: bool) -> Payment:
        """
        Mark a registration paid or unpaid. A payment row is created on
        demand so cash payments can be tracked as well.
        """
        registration = await RegistrationService.get_registration(session, registration_id)
        payment = await payment_service.get_for_registration(session, registration.id)

        async with db_manager.transaction(session):
            if payment is None:
                event = await get_event(session, registration.event_id)
                payment = payment_service.create_payment(
                    session, registration, event.price, event.bank_account_id
                )
            payment.paid = paid

        logger.info(f"Registration {registration.id} marked {'paid' if paid else 'unpaid'}")
        return payment

    @staticmethod
    async def registration_status(session: AsyncSession, event_id, email: str) -> RegistrationStatus:
        await get_event(session, event_id)
        result = await session.execute(
            select(Registration)
            .where(Registration.event_id == event_id, Registration.email == normalize_email(email))
            .limit(1)
        )
        registration = result.scalar_one_or_none()
        if not registration:
            return RegistrationStatus(registered=False)

        payment = await payment_service.get_for_registration(session, registration.id)
        return RegistrationStatus(registered=True, registration=to_response(registration, payment))

    @staticmethod
    async def list_participants(session: AsyncSession, event_id) -> List[Registration]:
        """Public participant list, in sign-up order"""
        event = await get_event(session, event_id)
        result = await session.execute(
            select(Registration)
            .where(Registration.event_id == event.id, Registration.deleted.is_(False))
            .order_by(Registration.created_at.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_registrations(session: AsyncSession, event_id) -> List[RegistrationResponse]:
        """All registrations of an event in sign-up order, with payment state"""
        await get_event(session, event_id)
        result = await session.execute(
            select(Registration)
            .where(Registration.event_id == event_id)
            .order_by(Registration.created_at.asc())
        )
        registrations = list(result.scalars().all())
        payments = await payment_service.payments_by_registration(session, [r.id for r in registrations])
        return [to_response(r, payments.get(r.id)) for r in registrations]


registration_service = RegistrationService()
