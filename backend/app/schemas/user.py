# backend/app/schemas/user.py

from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional
from datetime import datetime

from ..models.user import UserRole, UserStatus


class UserBase(BaseModel):
    email: EmailStr
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone: Optional[str] = None


class UserCreate(UserBase):
    password: str = Field(min_length=8)
    # Public registration only ever creates talents or clients
    role: UserRole = UserRole.CLIENT


class UserProfileUpdate(BaseModel):
    """Self-service edits; role, status and password are not editable here."""

    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None

    @model_validator(mode="after")
    def reject_nulls(self) -> "UserProfileUpdate":
        for field in ("first_name", "last_name", "email"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class UserResponse(UserBase):
    id: int
    role: UserRole
    status: UserStatus
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class UserSummary(BaseModel):
    """Compact user shape nested inside bookings, requests and contracts."""

    id: int
    first_name: str
    last_name: str
    email: str

    model_config = {"from_attributes": True}


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
