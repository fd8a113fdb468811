# backend/app/models/user.py

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel
from .types import CaseInsensitiveEnum


class UserRole(str, enum.Enum):
    """Enumeration of all supported user roles."""

    ADMIN = "admin"
    TALENT = "talent"
    CLIENT = "client"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    SUSPENDED = "suspended"


class User(BaseModel):
    __tablename__ = "users"

    email             = Column(String, unique=True, index=True, nullable=False)
    password          = Column(String, nullable=False)
    first_name        = Column(String, nullable=False)
    last_name         = Column(String, nullable=False)
    phone             = Column(String, nullable=True)
    profile_image_url = Column(String, nullable=True)
    role              = Column(CaseInsensitiveEnum(UserRole, name="userrole"), nullable=False, default=UserRole.CLIENT)
    status            = Column(CaseInsensitiveEnum(UserStatus, name="userstatus"), nullable=False, default=UserStatus.ACTIVE)

    # A talent user owns at most one profile
    talent_profile = relationship(
        "TalentProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    bookings_as_client = relationship(
        "Booking",
        foreign_keys="Booking.client_id",
        back_populates="client",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_active(self) -> bool:
        return self.status != UserStatus.SUSPENDED
