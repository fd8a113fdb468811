from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

from ..models.talent_profile import ApprovalStatus, UnionStatus
from .user import UserResponse, UserSummary


def _normalize_tags(v: Any) -> Any:
    if isinstance(v, list):
        return [str(item).strip().lower() for item in v if str(item).strip()]
    return v


class TalentProfileBase(BaseModel):
    stage_name: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    bio: Optional[str] = None
    location: Optional[str] = None
    experience: Optional[str] = None
    union_status: Optional[UnionStatus] = None
    measurements: Optional[Dict[str, Any]] = None
    rates: Optional[Dict[str, Any]] = None
    media_urls: List[str] = Field(default_factory=list)
    social: Optional[Dict[str, Any]] = None

    @field_validator("categories", "skills", mode="before")
    @classmethod
    def normalize_tags(cls, v: Any) -> Any:
        return _normalize_tags(v)


class TalentProfileCreate(TalentProfileBase):
    pass


class TalentProfileUpdate(BaseModel):
    stage_name: Optional[str] = None
    categories: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    experience: Optional[str] = None
    union_status: Optional[UnionStatus] = None
    measurements: Optional[Dict[str, Any]] = None
    rates: Optional[Dict[str, Any]] = None
    media_urls: Optional[List[str]] = None
    social: Optional[Dict[str, Any]] = None
    # Admin only; rejected for everyone else
    approval_status: Optional[ApprovalStatus] = None

    @field_validator("categories", "skills", mode="before")
    @classmethod
    def normalize_tags(cls, v: Any) -> Any:
        return _normalize_tags(v)

    @model_validator(mode="after")
    def reject_nulls(self) -> "TalentProfileUpdate":
        for field in ("categories", "skills", "media_urls"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class TalentApprovalUpdate(BaseModel):
    approval_status: ApprovalStatus


class TalentProfileResponse(TalentProfileBase):
    id: int
    user_id: int
    approval_status: ApprovalStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class TalentListResponse(BaseModel):
    items: List[TalentProfileResponse]
    total: int


class TalentDashboardResponse(BaseModel):
    user: UserResponse
    talent_profile: Optional[TalentProfileResponse] = None
