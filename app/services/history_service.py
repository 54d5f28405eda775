"""
Registration History Service
Append-only audit trail of registration state changes.

Entries go to the registration_history table. When that table does not exist
(fresh deployment without the migration) or an insert fails, entries are kept
in process memory instead so the business operation is never blocked.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.cache import cache_manager
from app.core.database import db_manager
from app.core.logging import mask_email
from app.models.enums import RegistrationAction
from app.models.history import RegistrationHistory
from app.schemas.history import HistoryEntryResponse, HistoryPage
from app.utils.timezone import ensure_aware, utcnow

logger = logging.getLogger(__name__)


class RegistrationHistoryService:
    """Records and lists registration history entries"""

    TABLE_NAME = RegistrationHistory.__tablename__

    def __init__(self):
        self._table_exists: Optional[bool] = None
        self._memory: List[Dict[str, Any]] = []

    def reset(self):
        """Forget the table check and drop buffered entries"""
        self._table_exists = None
        self._memory = []

    @property
    def memory_entries(self) -> List[Dict[str, Any]]:
        return list(self._memory)

    async def table_available(self, session: AsyncSession) -> bool:
        if self._table_exists is None:
            try:
                self._table_exists = await db_manager.table_exists(session, self.TABLE_NAME)
            except Exception as e:
                logger.error(f"Could not check for {self.TABLE_NAME} table: {e}")
                self._table_exists = False
            if not self._table_exists:
                logger.warning(f"{self.TABLE_NAME} table missing, history is kept in memory")
        return self._table_exists

    async def record(
        self,
        session: AsyncSession,
        *,
        event_id,
        action: RegistrationAction,
        first_name: str,
        email: str,
        last_name: Optional[str] = None,
        phone_number: Optional[str] = None,
        registration_id=None,
        waiting_list_id=None,
        user_id=None,
        event_title: Optional[str] = None
    ) -> None:
        """
        Append a history entry inside the caller's transaction.
        Errors from the caller's pending changes propagate; a failed
        history insert is buffered in memory instead.
        """
        values = {
            "id": uuid.uuid4(),
            "event_id": event_id,
            "registration_id": registration_id,
            "waiting_list_id": waiting_list_id,
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "phone_number": phone_number,
            "action_type": action,
            "timestamp": utcnow(),
            "user_id": user_id,
            "event_title": event_title,
        }

        # Caller state goes out first so its own failures propagate
        await session.flush()

        stored = False
        try:
            if await self.table_available(session):
                # Savepoint keeps a failed insert from poisoning the caller's transaction
                async with session.begin_nested():
                    session.add(RegistrationHistory(**values))
                stored = True
        except Exception as e:
            logger.error(f"History insert failed, buffering in memory: {e}")

        if not stored:
            self._memory.append(values)

        logger.info(
            f"History {action.value} for {mask_email(email)}",
            extra={"event_id": str(event_id)}
        )
        await cache_manager.invalidate_history_cache()

    async def list_history(
        self,
        session: AsyncSession,
        limit: Optional[int] = None,
        offset: int = 0,
        event_id=None
    ) -> HistoryPage:
        """Newest entries first"""
        limit = limit or settings.HISTORY_MAX_ENTRIES

        cache_key = cache_manager.generate_cache_key(
            "history", {"limit": limit, "offset": offset, "event_id": event_id}
        )
        cached = await cache_manager.get(cache_key)
        if cached is not None:
            return HistoryPage.model_validate(cached)

        if await self.table_available(session):
            page = await self._list_from_db(session, limit, offset, event_id)
        else:
            page = self._list_from_memory(limit, offset, event_id)

        await cache_manager.set(cache_key, page.model_dump(mode="json"), ttl=settings.CACHE_TTL_HISTORY)
        return page

    async def _list_from_db(self, session: AsyncSession, limit: int, offset: int, event_id) -> HistoryPage:
        query = select(RegistrationHistory)
        count_query = select(func.count(RegistrationHistory.id))
        if event_id:
            query = query.where(RegistrationHistory.event_id == event_id)
            count_query = count_query.where(RegistrationHistory.event_id == event_id)

        query = query.order_by(RegistrationHistory.timestamp.desc()).offset(offset).limit(limit)

        rows = (await session.execute(query)).scalars().all()
        total = (await session.execute(count_query)).scalar() or 0

        return HistoryPage(
            entries=[HistoryEntryResponse.model_validate(row) for row in rows],
            total=total,
            limit=limit,
            offset=offset
        )

    def _list_from_memory(self, limit: int, offset: int, event_id) -> HistoryPage:
        entries = self._memory
        if event_id:
            entries = [e for e in entries if str(e["event_id"]) == str(event_id)]
        entries = sorted(entries, key=lambda e: ensure_aware(e["timestamp"]), reverse=True)

        return HistoryPage(
            entries=[HistoryEntryResponse.model_validate(e) for e in entries[offset:offset + limit]],
            total=len(entries),
            limit=limit,
            offset=offset
        )


# Global history service
history_service = RegistrationHistoryService()
