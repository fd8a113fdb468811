from sqlalchemy import Column, Integer, String, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel
from .types import CaseInsensitiveEnum


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class UnionStatus(str, enum.Enum):
    SAG_AFTRA = "SAG-AFTRA"
    NON_UNION = "Non-Union"
    OTHER = "Other"


class TalentProfile(BaseModel):
    __tablename__ = "talent_profiles"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    stage_name = Column(String, nullable=True)
    categories = Column(JSON, nullable=False, default=list)
    skills = Column(JSON, nullable=False, default=list)
    bio = Column(Text, nullable=True)
    location = Column(String, nullable=True, index=True)
    experience = Column(Text, nullable=True)
    # Mixed-case wire values, kept as plain text and validated by the schema layer
    union_status = Column(String, nullable=True)
    measurements = Column(JSON, nullable=True)
    rates = Column(JSON, nullable=True)
    media_urls = Column(JSON, nullable=False, default=list)
    social = Column(JSON, nullable=True)
    approval_status = Column(
        CaseInsensitiveEnum(ApprovalStatus, name="approvalstatus"),
        nullable=False,
        default=ApprovalStatus.PENDING,
        index=True,
    )

    user = relationship("User", back_populates="talent_profile")
