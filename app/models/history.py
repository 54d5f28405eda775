"""
Registration history model
"""

from sqlalchemy import Column, String, DateTime, Enum
from sqlalchemy.dialects.postgresql import UUID
import uuid

from app.core.database import Base
from app.models.base import utcnow
from app.models.enums import RegistrationAction


class RegistrationHistory(Base):
    """
    Append-only audit trail of registration state changes.

    Ids are plain references (no foreign keys) so entries survive deletion
    of the event, registration or waiting list row they describe.
    """
    __tablename__ = "registration_history"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    event_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    registration_id = Column(UUID(as_uuid=True))
    waiting_list_id = Column(UUID(as_uuid=True))
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100))
    email = Column(String(255), nullable=False)
    phone_number = Column(String(20))
    action_type = Column(Enum(RegistrationAction), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True))
    event_title = Column(String(255))

    def __repr__(self):
        return f"<RegistrationHistory(id={self.id}, action={self.action_type}, event_id={self.event_id})>"
