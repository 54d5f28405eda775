"""
No-Show Service
Tracks people who neither attended nor paid for an event
"""

import logging
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import db_manager
from app.core.exceptions import NotFoundError
from app.core.logging import mask_email
from app.models.no_show import NoShow
from app.models.payment import Payment
from app.models.registration import Registration
from app.schemas.no_show import BulkImportResult, NoShowBulkImport, NoShowCreate, NoShowUpdate, PotentialNoShow
from app.services.waitlist_service import get_event, normalize_email
from app.utils.timezone import utcnow

logger = logging.getLogger(__name__)

BULK_IMPORT_NOTE = "Bulk imported from non-attendance"


class NoShowService:
    """Service for no-show records"""

    @staticmethod
    async def list_no_shows(
        session: AsyncSession,
        fee_paid: Optional[bool] = None,
        email: Optional[str] = None
    ) -> List[NoShow]:
        query = select(NoShow)
        if fee_paid is not None:
            query = query.where(NoShow.fee_paid.is_(fee_paid))
        if email:
            query = query.where(func.lower(NoShow.email).contains(email.strip().lower()))
        result = await session.execute(query.order_by(NoShow.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def get_no_show(session: AsyncSession, no_show_id) -> NoShow:
        no_show = await session.get(NoShow, no_show_id)
        if not no_show:
            raise NotFoundError("No-show", no_show_id)
        return no_show

    @staticmethod
    async def create_no_show(session: AsyncSession, data: NoShowCreate) -> NoShow:
        async with db_manager.transaction(session):
            no_show = NoShow(
                email=normalize_email(data.email),
                event_id=data.event_id,
                event_title=data.event_title,
                event_date=data.event_date,
                first_name=data.first_name,
                last_name=data.last_name or None,
                notes=data.notes or None,
                fee_paid=False,
            )
            session.add(no_show)
        logger.info(f"No-show recorded for {mask_email(no_show.email)}", extra={"event_id": str(data.event_id)})
        return no_show

    @staticmethod
    async def update_no_show(session: AsyncSession, no_show_id, data: NoShowUpdate) -> NoShow:
        """
        Update notes or the fee flag. A fee change also sets the paid flag of
        the matching registration's payment, when there is one.
        """
        no_show = await NoShowService.get_no_show(session, no_show_id)
        changes = data.model_dump(exclude_unset=True)

        async with db_manager.transaction(session):
            if changes.get("fee_paid") is not None:
                no_show.fee_paid = changes["fee_paid"]
                no_show.paid_at = utcnow() if changes["fee_paid"] else None
            if "notes" in changes:
                no_show.notes = changes["notes"]

        if changes.get("fee_paid") is not None:
            await NoShowService._propagate_fee(session, no_show)

        return no_show

    @staticmethod
    async def _propagate_fee(session: AsyncSession, no_show: NoShow) -> None:
        try:
            criteria = [
                Registration.event_id == no_show.event_id,
                func.lower(Registration.email) == no_show.email.lower(),
                func.lower(Registration.first_name) == no_show.first_name.lower(),
            ]
            if no_show.last_name:
                criteria.append(func.lower(Registration.last_name) == no_show.last_name.lower())

            result = await session.execute(
                select(Payment)
                .join(Registration, Payment.registration_id == Registration.id)
                .where(*criteria)
                .limit(1)
            )
            payment = result.scalar_one_or_none()
            if not payment:
                logger.warning(
                    f"No registration payment to update for {mask_email(no_show.email)}",
                    extra={"event_id": str(no_show.event_id)}
                )
                return

            async with db_manager.transaction(session):
                payment.paid = no_show.fee_paid
            logger.info(f"Propagated payment status {no_show.fee_paid} to registration {payment.registration_id}")

        except Exception as e:
            # The no-show update is already committed
            logger.error(f"Failed to propagate payment status to registration: {e}")

    @staticmethod
    async def delete_no_show(session: AsyncSession, no_show_id) -> None:
        no_show = await NoShowService.get_no_show(session, no_show_id)
        async with db_manager.transaction(session):
            await session.delete(no_show)

    @staticmethod
    async def _existing_emails(session: AsyncSession, event_id) -> set:
        result = await session.execute(select(NoShow.email).where(NoShow.event_id == event_id))
        return {email.lower() for email in result.scalars().all()}

    @staticmethod
    async def bulk_import(session: AsyncSession, data: NoShowBulkImport) -> BulkImportResult:
        """Create records for candidates not yet recorded for the event"""
        existing = await NoShowService._existing_emails(session, data.event_id)

        created = 0
        async with db_manager.transaction(session):
            for candidate in data.candidates:
                email = normalize_email(candidate.email)
                if email in existing:
                    continue
                session.add(NoShow(
                    email=email,
                    event_id=data.event_id,
                    event_title=data.event_title,
                    event_date=data.event_date,
                    first_name=candidate.first_name,
                    last_name=candidate.last_name or None,
                    fee_paid=False,
                    notes=BULK_IMPORT_NOTE,
                ))
                existing.add(email)
                created += 1

        logger.info(f"Bulk imported {created} no-shows", extra={"event_id": str(data.event_id)})
        return BulkImportResult(created=created, skipped=len(data.candidates) - created)

    @staticmethod
    async def potential_no_shows(session: AsyncSession, event_id) -> List[PotentialNoShow]:
        """Registrations that did not attend, did not pay and are not recorded yet"""
        await get_event(session, event_id)

        result = await session.execute(
            select(Registration, Payment.paid)
            .outerjoin(Payment, Payment.registration_id == Registration.id)
            .where(
                Registration.event_id == event_id,
                Registration.attended.is_(False),
                Registration.deleted.is_(False),
            )
            .order_by(Registration.created_at.asc())
        )
        existing = await NoShowService._existing_emails(session, event_id)

        return [
            PotentialNoShow(
                id=registration.id,
                email=registration.email,
                first_name=registration.first_name,
                last_name=registration.last_name,
                created_at=registration.created_at,
                payment_type=registration.payment_type,
            )
            for registration, paid in result.all()
            if paid is not True and registration.email.lower() not in existing
        ]


no_show_service = NoShowService()
