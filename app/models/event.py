"""
Event model
"""

from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Boolean, Numeric, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.models.base import BaseModel


class Event(BaseModel):
    """
    Sport event people register for
    """
    __tablename__ = "events"

    title = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    place = Column(String(255))
    capacity = Column(Integer, nullable=False, default=0)
    from_time = Column(DateTime(timezone=True), nullable=False, index=True)
    to_time = Column(DateTime(timezone=True), nullable=False)
    visible = Column(Boolean, nullable=False, default=True)
    auto_promote = Column(Boolean, nullable=False, default=False)
    bank_account_id = Column(String(50))
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))

    # Relationships
    registrations = relationship(
        "Registration",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    waiting_list = relationship(
        "WaitingList",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="WaitingList.created_at",
    )

    __table_args__ = (
        CheckConstraint("capacity >= 0", name="ck_events_capacity_non_negative"),
    )

    def __repr__(self):
        return f"<Event(id={self.id}, title={self.title}, capacity={self.capacity})>"
