"""
User model
"""

from sqlalchemy import Column, String, Boolean, Enum

from app.models.base import BaseModel
from app.models.enums import PaymentType, UserRole


class User(BaseModel):
    """
    User model for authentication and profile
    """
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    phone_number = Column(String(20))
    role = Column(
        Enum(UserRole),
        default=UserRole.USER,
        nullable=False
    )
    payment_preference = Column(
        Enum(PaymentType),
        default=PaymentType.CASH,
        nullable=False
    )
    is_active = Column(Boolean, default=True, nullable=False)

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.MODERATOR)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
