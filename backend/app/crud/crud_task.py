import logging
from typing import List, Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from .. import models, schemas
from ..utils import notifications
from ..utils.errors import ForbiddenError, NotFoundError
from .crud_user import user as crud_user

logger = logging.getLogger(__name__)

# Fields an assignee may touch on a task assigned to them
ASSIGNEE_FIELDS = {"status"}


def get_task(db: Session, task_id: int) -> Optional[models.Task]:
    return db.query(models.Task).filter(models.Task.id == task_id).first()


def _check_references(db: Session, data: dict) -> None:
    if data.get("booking_id") is not None and db.get(models.Booking, data["booking_id"]) is None:
        raise NotFoundError("Booking not found", {"booking_id": "not_found"})
    talent_id = data.get("talent_id")
    if talent_id is not None:
        talent = crud_user.get(db, talent_id)
        if talent is None or talent.role != models.UserRole.TALENT:
            raise NotFoundError("Talent not found", {"talent_id": "not_found"})
    if data.get("assignee_id") is not None and crud_user.get(db, data["assignee_id"]) is None:
        raise NotFoundError("Assignee not found", {"assignee_id": "not_found"})


def create_task(
    db: Session,
    task_in: schemas.TaskCreate,
    actor: models.User,
    background_tasks: Optional[BackgroundTasks] = None,
) -> models.Task:
    if not actor.is_admin:
        raise ForbiddenError("Only admins can create tasks", {"task": "forbidden"})
    data = task_in.model_dump()
    _check_references(db, data)
    task = models.Task(**data, created_by=actor.id)
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("Task %s created by %s", task.id, actor.id)
    if task.assignee_id is not None:
        notifications.notify_task_assigned(db, task, task.assignee, background_tasks)
    return task


def update_task(
    db: Session,
    task_id: int,
    task_in: schemas.TaskUpdate,
    actor: models.User,
    background_tasks: Optional[BackgroundTasks] = None,
) -> models.Task:
    """Apply a partial update.

    Admins may change anything. The assignee may only move the status of a
    task assigned to them; everyone else is refused.
    """
    task = get_task(db, task_id)
    if task is None:
        raise NotFoundError("Task not found", {"task_id": "not_found"})
    data = task_in.model_dump(exclude_unset=True)
    if not actor.is_admin:
        if task.assignee_id != actor.id:
            raise ForbiddenError("You can only update tasks assigned to you", {"task_id": "forbidden"})
        blocked = sorted(set(data) - ASSIGNEE_FIELDS)
        if blocked:
            raise ForbiddenError(
                "Assignees may only update task status",
                {field: "forbidden" for field in blocked},
            )
    _check_references(db, data)

    previous_assignee = task.assignee_id
    for field, value in data.items():
        setattr(task, field, value)
    db.commit()
    db.refresh(task)
    if task.assignee_id is not None and task.assignee_id != previous_assignee:
        notifications.notify_task_assigned(db, task, task.assignee, background_tasks)
    return task


def delete_task(db: Session, task_id: int, actor: models.User) -> None:
    if not actor.is_admin:
        raise ForbiddenError("Only admins can delete tasks", {"task": "forbidden"})
    task = get_task(db, task_id)
    if task is None:
        raise NotFoundError("Task not found", {"task_id": "not_found"})
    db.delete(task)
    db.commit()
    logger.info("Task %s deleted by %s", task_id, actor.id)


def list_tasks(
    db: Session,
    actor: models.User,
    booking_id: Optional[int] = None,
    talent_id: Optional[int] = None,
    assignee_id: Optional[int] = None,
    status: Optional[models.TaskStatus] = None,
    scope: Optional[models.TaskScope] = None,
    skip: int = 0,
    limit: int = 50,
) -> Tuple[List[models.Task], int]:
    query = db.query(models.Task)
    if actor.is_admin:
        if assignee_id is not None:
            query = query.filter(models.Task.assignee_id == assignee_id)
    else:
        query = query.filter(models.Task.assignee_id == actor.id)
    if booking_id is not None:
        query = query.filter(models.Task.booking_id == booking_id)
    if talent_id is not None:
        query = query.filter(models.Task.talent_id == talent_id)
    if status is not None:
        query = query.filter(models.Task.status == status)
    if scope is not None:
        query = query.filter(models.Task.scope == scope)
    total = query.count()
    items = (
        query.order_by(models.Task.due_at.is_(None), models.Task.due_at, models.Task.id)
        .offset(skip)
        .limit(limit)
        .all()
    )
    return items, total
