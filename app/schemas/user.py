"""
User schemas
"""

from pydantic import EmailStr, Field, field_validator
from typing import Optional
import re

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema
from app.models.enums import PaymentType, UserRole


class UserBase(BaseSchema):
    """Base user schema"""
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    phone_number: Optional[str] = Field(None, max_length=20)


class UserCreate(UserBase):
    """User creation schema"""
    password: str = Field(..., min_length=8, max_length=100)

    class Config:
        json_schema_extra = {
            "example": {
                "email": "player@example.com",
                "first_name": "Petr",
                "last_name": "Svoboda",
                "phone_number": "+420777000111",
                "password": "Volley123!"
            }
        }

    @field_validator('password')
    def validate_password(cls, v):
        if not re.match(r'^(?=.*[A-Za-z])(?=.*\d).{8,}$', v):
            raise ValueError('Password must contain at least one letter and one number')
        return v


class UserUpdate(BaseSchema):
    """Profile update schema"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=20)

    @field_validator('phone_number')
    def validate_phone(cls, v):
        if v and not re.match(r'^\+?[0-9 ]{6,20}$', v):
            raise ValueError('Invalid phone number format')
        return v


class UserResponse(UserBase, IDSchema, TimestampSchema):
    """User response schema"""
    role: UserRole
    payment_preference: PaymentType
    is_active: bool


class PaymentPreferenceUpdate(BaseSchema):
    payment_preference: PaymentType


class RoleUpdate(BaseSchema):
    role: UserRole


class Token(BaseSchema):
    """Token schema with user info"""
    access_token: str
    token_type: str = "bearer"
    user: Optional[UserResponse] = None
