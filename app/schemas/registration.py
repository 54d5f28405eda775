"""
Registration and waiting list schemas
"""

from pydantic import EmailStr, Field, field_validator, model_validator
from typing import Optional
from uuid import UUID
from datetime import datetime
import re

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema
from app.models.enums import PaymentType


class PersonSchema(BaseSchema):
    """Name and contact shared by registrations and waiting list entries"""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    email: EmailStr
    phone_number: Optional[str] = Field(None, max_length=20)

    @field_validator('first_name', 'last_name')
    def strip_names(cls, v):
        return v.strip() if v else v

    @field_validator('phone_number')
    def validate_phone(cls, v):
        if v and not re.match(r'^\+?[0-9 ]{6,20}$', v):
            raise ValueError('Invalid phone number format')
        return v or None


class RegistrationCreate(PersonSchema):
    """Public registration form"""
    event_id: UUID
    payment_type: PaymentType = PaymentType.CASH

    class Config:
        json_schema_extra = {
            "example": {
                "event_id": "xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx",
                "first_name": "Jana",
                "last_name": "Novakova",
                "email": "jana@example.com",
                "phone_number": "+420777123456",
                "payment_type": "QR"
            }
        }


class RegistrationRequest(BaseSchema):
    """
    Registration form. Logged-in users may omit the personal fields, which
    then come from their profile; guests must send first name and email.
    """
    event_id: UUID
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=20)
    payment_type: Optional[PaymentType] = None

    @field_validator('phone_number')
    def validate_phone(cls, v):
        if v and not re.match(r'^\+?[0-9 ]{6,20}$', v):
            raise ValueError('Invalid phone number format')
        return v or None


class RegistrationUpdate(BaseSchema):
    """Admin edit of a registration"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=20)
    payment_type: Optional[PaymentType] = None

    @model_validator(mode="after")
    def reject_nulls(self):
        for field in ("first_name", "last_name", "email", "payment_type"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class RegistrationResponse(IDSchema, TimestampSchema):
    """Registration as shown to admins"""
    event_id: UUID
    first_name: str
    last_name: str
    email: str
    phone_number: Optional[str] = None
    payment_type: PaymentType
    attended: bool
    paid: Optional[bool] = None


class ParticipantResponse(BaseSchema):
    """Public participant list item"""
    first_name: str
    last_name: str
    created_at: datetime


class RegistrationResult(BaseSchema):
    """Outcome of a registration attempt"""
    registration_id: UUID
    first_name: str
    last_name: str
    email: str
    payment_type: PaymentType
    qr_code_data: Optional[str] = None
    variable_symbol: Optional[str] = None
    is_waitlisted: bool = False


class AttendanceToggle(BaseSchema):
    registration_id: UUID
    attended: bool


class PaymentToggle(BaseSchema):
    registration_id: UUID
    paid: bool


class RegistrationStatus(BaseSchema):
    registered: bool
    registration: Optional[RegistrationResponse] = None


class WaitingListJoin(BaseSchema):
    """Logged-in user joins the waiting list"""
    event_id: UUID
    payment_type: Optional[PaymentType] = None


class GuestWaitingListJoin(PersonSchema):
    """Guest joins the waiting list"""
    event_id: UUID
    payment_type: PaymentType = PaymentType.CASH


class WaitingListEntryResponse(IDSchema, TimestampSchema):
    event_id: UUID
    first_name: str
    last_name: str
    email: str
    phone_number: Optional[str] = None
    payment_type: PaymentType


class WaitingListPromote(BaseSchema):
    entry_id: UUID


class WaitingListStatus(BaseSchema):
    on_waiting_list: bool
    position: Optional[int] = None
    total: int = 0
