"""
Payment model
"""

from sqlalchemy import Column, String, Boolean, Text, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.models.base import BaseModel


class Payment(BaseModel):
    """
    Bank transfer payment for a single registration
    """
    __tablename__ = "payments"

    registration_id = Column(
        UUID(as_uuid=True),
        ForeignKey("registrations.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    variable_symbol = Column(String(20), nullable=False, index=True)
    qr_data = Column(Text)
    paid = Column(Boolean, default=False, nullable=False)

    # Relationships
    registration = relationship("Registration", back_populates="payment")

    def __repr__(self):
        return f"<Payment(id={self.id}, registration_id={self.registration_id}, paid={self.paid})>"
