"""
Event schemas
"""

from pydantic import Field, field_validator, model_validator
from typing import Optional
from uuid import UUID
from datetime import datetime
from decimal import Decimal

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema
from app.utils.timezone import ensure_aware, from_event_local


class EventBase(BaseSchema):
    """Base event schema"""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(Decimal("0"), ge=0)
    place: Optional[str] = Field(None, max_length=255)
    capacity: int = Field(..., ge=0)
    from_time: datetime
    to_time: datetime
    visible: bool = True
    auto_promote: bool = False
    bank_account_id: Optional[str] = None


class EventCreate(EventBase):
    """Event creation schema"""

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Volleyball Tuesday",
                "description": "Casual indoor volleyball, all levels welcome",
                "price": "150.00",
                "place": "Sportovni hala Strahov",
                "capacity": 18,
                "from_time": "2025-10-14T19:00:00",
                "to_time": "2025-10-14T21:00:00",
                "visible": True,
                "auto_promote": True
            }
        }

    @field_validator('from_time', 'to_time')
    def localize(cls, v):
        return from_event_local(v)

    @model_validator(mode="after")
    def validate_time_range(self):
        if self.to_time <= self.from_time:
            raise ValueError('End time must be after start time')
        return self


class EventUpdate(BaseSchema):
    """Event update schema"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    place: Optional[str] = Field(None, max_length=255)
    capacity: Optional[int] = Field(None, ge=0)
    from_time: Optional[datetime] = None
    to_time: Optional[datetime] = None
    visible: Optional[bool] = None
    auto_promote: Optional[bool] = None
    bank_account_id: Optional[str] = None

    @field_validator('from_time', 'to_time')
    def localize(cls, v):
        return from_event_local(v) if v else v

    @model_validator(mode="after")
    def reject_nulls(self):
        for field in ("title", "price", "capacity", "from_time", "to_time", "visible", "auto_promote"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class EventDuplicate(BaseSchema):
    """Copy an existing event to new dates"""
    event_id: UUID
    from_time: datetime
    to_time: datetime
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    bank_account_id: Optional[str] = None

    @field_validator('from_time', 'to_time')
    def localize(cls, v):
        return from_event_local(v)

    @model_validator(mode="after")
    def validate_time_range(self):
        if self.to_time <= self.from_time:
            raise ValueError('End time must be after start time')
        return self


class EventResponse(EventBase, IDSchema, TimestampSchema):
    """Event response schema"""

    @field_validator('from_time', 'to_time', 'created_at', 'updated_at')
    def as_utc(cls, v):
        return ensure_aware(v) if v else v


class EventDetail(EventResponse):
    """Event with occupancy numbers"""
    registration_count: int = 0
    waiting_list_count: int = 0
    available_spots: int = 0


class EventStats(BaseSchema):
    """Per event numbers for the admin dashboard"""
    event_id: UUID
    title: str
    from_time: datetime
    capacity: int
    registrations: int
    waiting_list: int
    attended: int
    paid: int
