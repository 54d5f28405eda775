"""
Registration and WaitingList models
"""

from sqlalchemy import Column, String, ForeignKey, Enum, Boolean
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.models.base import BaseModel
from app.models.enums import PaymentType


class Registration(BaseModel):
    """
    Confirmed spot at an event
    """
    __tablename__ = "registrations"

    event_id = Column(
        UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(255), nullable=False, index=True)
    phone_number = Column(String(20))
    payment_type = Column(
        Enum(PaymentType),
        default=PaymentType.CASH,
        nullable=False
    )
    attended = Column(Boolean, default=False, nullable=False)
    deleted = Column(Boolean, default=False, nullable=False)

    # Relationships
    event = relationship("Event", back_populates="registrations")
    payment = relationship(
        "Payment",
        back_populates="registration",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Registration(id={self.id}, event_id={self.event_id}, email={self.email})>"


class WaitingList(BaseModel):
    """
    Person waiting for a spot; served oldest first
    """
    __tablename__ = "waiting_list"

    event_id = Column(
        UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(255), nullable=False, index=True)
    phone_number = Column(String(20))
    payment_type = Column(
        Enum(PaymentType),
        default=PaymentType.CASH,
        nullable=False
    )

    # Relationships
    event = relationship("Event", back_populates="waiting_list")

    def __repr__(self):
        return f"<WaitingList(id={self.id}, event_id={self.event_id}, email={self.email})>"
