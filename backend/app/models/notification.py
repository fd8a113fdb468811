from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel
from .types import CaseInsensitiveEnum


class NotificationType(str, enum.Enum):
    BOOKING_REQUEST = "booking_request"
    BOOKING_ACCEPTED = "booking_accepted"
    BOOKING_DECLINED = "booking_declined"
    CONTRACT_CREATED = "contract_created"
    CONTRACT_SIGNED = "contract_signed"
    TASK_ASSIGNED = "task_assigned"
    TALENT_APPROVED = "talent_approved"
    BOOKING_STATUS_UPDATED = "booking_status_updated"


class Notification(BaseModel):
    __tablename__ = "notifications"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(CaseInsensitiveEnum(NotificationType, name="notificationtype"), nullable=False)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    data = Column(JSON, nullable=True)
    action_url = Column(String, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False, index=True)

    user = relationship("User", backref="notifications")
