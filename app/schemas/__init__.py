"""
Pydantic schemas for request and response validation
"""

from app.schemas.user import (
    UserCreate,
    UserUpdate,
    UserResponse,
    Token
)
from app.schemas.event import (
    EventCreate,
    EventUpdate,
    EventResponse,
    EventDetail
)
from app.schemas.registration import (
    RegistrationCreate,
    RegistrationResponse,
    RegistrationResult,
    WaitingListEntryResponse
)
from app.schemas.history import HistoryEntryResponse, HistoryPage
from app.schemas.no_show import NoShowCreate, NoShowResponse
from app.schemas.response import (
    SuccessResponse,
    ErrorResponse,
    MessageResponse
)

__all__ = [
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "Token",
    "EventCreate",
    "EventUpdate",
    "EventResponse",
    "EventDetail",
    "RegistrationCreate",
    "RegistrationResponse",
    "RegistrationResult",
    "WaitingListEntryResponse",
    "HistoryEntryResponse",
    "HistoryPage",
    "NoShowCreate",
    "NoShowResponse",
    "SuccessResponse",
    "ErrorResponse",
    "MessageResponse"
]
