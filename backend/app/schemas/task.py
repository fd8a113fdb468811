from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime

from ..models.task import TaskScope, TaskStatus, TaskPriority
from .booking import naive_utc


class TaskBase(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    scope: TaskScope = TaskScope.GENERAL
    booking_id: Optional[int] = None
    talent_id: Optional[int] = None
    assignee_id: Optional[int] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_at: Optional[datetime] = None
    attachment_urls: List[str] = Field(default_factory=list)

    normalise_due_at = field_validator("due_at")(naive_utc)


class TaskCreate(TaskBase):
    status: TaskStatus = TaskStatus.TODO


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    scope: Optional[TaskScope] = None
    booking_id: Optional[int] = None
    talent_id: Optional[int] = None
    assignee_id: Optional[int] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_at: Optional[datetime] = None
    attachment_urls: Optional[List[str]] = None

    normalise_due_at = field_validator("due_at")(naive_utc)

    @model_validator(mode="after")
    def reject_nulls(self) -> "TaskUpdate":
        for field in ("title", "scope", "status", "priority", "attachment_urls"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class TaskResponse(TaskBase):
    id: int
    status: TaskStatus
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TaskListResponse(BaseModel):
    items: List[TaskResponse]
    total: int
