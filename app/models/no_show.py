"""
No-show model
"""

from sqlalchemy import Column, String, Text, Boolean, DateTime
from sqlalchemy.dialects.postgresql import UUID

from app.models.base import BaseModel


class NoShow(BaseModel):
    """
    Person who neither attended nor paid for an event they registered for
    """
    __tablename__ = "no_shows"

    email = Column(String(255), nullable=False, index=True)
    event_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    event_title = Column(String(255), nullable=False)
    event_date = Column(DateTime(timezone=True), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100))
    notes = Column(Text)
    fee_paid = Column(Boolean, default=False, nullable=False)
    paid_at = Column(DateTime(timezone=True))

    def __repr__(self):
        return f"<NoShow(id={self.id}, email={self.email}, fee_paid={self.fee_paid})>"
