"""
Database models
"""

from app.models.enums import PaymentType, RegistrationAction, UserRole
from app.models.user import User
from app.models.event import Event
from app.models.registration import Registration, WaitingList
from app.models.payment import Payment
from app.models.history import RegistrationHistory
from app.models.no_show import NoShow

__all__ = [
    "PaymentType",
    "RegistrationAction",
    "UserRole",
    "User",
    "Event",
    "Registration",
    "WaitingList",
    "Payment",
    "RegistrationHistory",
    "NoShow"
]
