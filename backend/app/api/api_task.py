from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import models
from ..crud import crud_task
from ..database import get_db
from ..models import TaskScope, TaskStatus
from ..schemas.task import TaskCreate, TaskListResponse, TaskResponse, TaskUpdate
from .dependencies import get_current_user

router = APIRouter(tags=["tasks"], default_response_class=ORJSONResponse)


@router.get("/tasks", response_model=TaskListResponse)
def list_tasks(
    booking_id: Optional[int] = None,
    talent_id: Optional[int] = None,
    assignee_id: Optional[int] = None,
    status_filter: Optional[TaskStatus] = Query(default=None, alias="status"),
    scope: Optional[TaskScope] = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    items, total = crud_task.list_tasks(
        db,
        current_user,
        booking_id=booking_id,
        talent_id=talent_id,
        assignee_id=assignee_id,
        status=status_filter,
        scope=scope,
        skip=skip,
        limit=limit,
    )
    return {"items": items, "total": total}


@router.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_in: TaskCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return crud_task.create_task(db, task_in, current_user, background_tasks)


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    task_in: TaskUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return crud_task.update_task(db, task_id, task_in, current_user, background_tasks)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    crud_task.delete_task(db, task_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
