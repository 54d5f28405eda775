"""
Registration history schemas
"""

from typing import List, Optional
from uuid import UUID
from datetime import datetime

from app.schemas.base import BaseSchema
from app.models.enums import RegistrationAction


class HistoryEntryResponse(BaseSchema):
    id: UUID
    event_id: UUID
    registration_id: Optional[UUID] = None
    waiting_list_id: Optional[UUID] = None
    first_name: str
    last_name: Optional[str] = None
    email: str
    phone_number: Optional[str] = None
    action_type: RegistrationAction
    timestamp: datetime
    user_id: Optional[UUID] = None
    event_title: Optional[str] = None


class HistoryPage(BaseSchema):
    entries: List[HistoryEntryResponse]
    total: int
    limit: int
    offset: int
