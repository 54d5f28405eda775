"""
Enumerations shared by models and schemas
"""

import enum


class UserRole(str, enum.Enum):
    USER = "USER"
    MODERATOR = "MODERATOR"
    ADMIN = "ADMIN"


class PaymentType(str, enum.Enum):
    CASH = "CASH"
    QR = "QR"
    CARD = "CARD"


class RegistrationAction(str, enum.Enum):
    REGISTERED = "REGISTERED"
    UNREGISTERED = "UNREGISTERED"
    MOVED_TO_WAITLIST = "MOVED_TO_WAITLIST"
    MOVED_FROM_WAITLIST = "MOVED_FROM_WAITLIST"
    DELETED_BY_MODERATOR = "DELETED_BY_MODERATOR"
    EVENT_CREATED = "EVENT_CREATED"
    EVENT_DELETED = "EVENT_DELETED"
    EVENT_UPDATED = "EVENT_UPDATED"
    REACTIVATED = "REACTIVATED"
    ADDED_TO_WAITLIST = "ADDED_TO_WAITLIST"
