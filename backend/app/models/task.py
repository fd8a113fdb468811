from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel
from .types import CaseInsensitiveEnum


class TaskScope(str, enum.Enum):
    GENERAL = "general"
    BOOKING = "booking"
    TALENT = "talent"


class TaskStatus(str, enum.Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    DONE = "done"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(BaseModel):
    __tablename__ = "tasks"

    scope = Column(CaseInsensitiveEnum(TaskScope, name="taskscope"), nullable=False, default=TaskScope.GENERAL)
    # Weak references: a task never owns its booking or talent
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True, index=True)
    talent_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    assignee_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(CaseInsensitiveEnum(TaskStatus, name="taskstatus"), nullable=False, default=TaskStatus.TODO, index=True)
    priority = Column(CaseInsensitiveEnum(TaskPriority, name="taskpriority"), nullable=False, default=TaskPriority.MEDIUM)
    due_at = Column(DateTime, nullable=True)
    attachment_urls = Column(JSON, nullable=False, default=list)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    booking = relationship("Booking")
    talent = relationship("User", foreign_keys=[talent_id])
    assignee = relationship("User", foreign_keys=[assignee_id])
