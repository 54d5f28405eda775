"""
No-show schemas
"""

from pydantic import EmailStr, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema
from app.models.enums import PaymentType


class NoShowCreate(BaseSchema):
    email: EmailStr
    event_id: UUID
    event_title: str = Field(..., min_length=1, max_length=255)
    event_date: datetime
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class NoShowUpdate(BaseSchema):
    fee_paid: Optional[bool] = None
    notes: Optional[str] = None


class NoShowResponse(IDSchema, TimestampSchema):
    email: str
    event_id: UUID
    event_title: str
    event_date: datetime
    first_name: str
    last_name: Optional[str] = None
    notes: Optional[str] = None
    fee_paid: bool
    paid_at: Optional[datetime] = None


class NoShowCandidate(BaseSchema):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


class NoShowBulkImport(BaseSchema):
    """Record several non-attendees of one event at once"""
    event_id: UUID
    event_title: str = Field(..., min_length=1, max_length=255)
    event_date: datetime
    candidates: List[NoShowCandidate] = Field(..., min_length=1)


class BulkImportResult(BaseSchema):
    created: int
    skipped: int


class PotentialNoShow(BaseSchema):
    id: UUID
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    payment_type: PaymentType
