from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session
from typing import List
import logging

from .. import models, schemas, crud
from .dependencies import get_db, get_current_user
from ..utils import error_response

router = APIRouter(tags=["notifications"], default_response_class=ORJSONResponse)

logger = logging.getLogger(__name__)


@router.get("/notifications", response_model=List[schemas.NotificationResponse])
def read_my_notifications(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Retrieve the caller's notifications, newest first."""
    return crud.crud_notification.get_notifications_for_user(
        db, current_user.id, skip=skip, limit=limit, unread_only=unread_only
    )


@router.get("/notifications/unread-count", response_model=schemas.UnreadCount)
def read_unread_count(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return {"count": crud.crud_notification.count_unread(db, current_user.id)}


@router.post("/notifications/read-all")
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    updated = crud.crud_notification.mark_all_read(db, current_user.id)
    return {"updated": updated}


@router.post("/notifications/{notification_id}/read", response_model=schemas.NotificationResponse)
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    db_notif = crud.crud_notification.get_notification(db, notification_id)
    if db_notif is None:
        raise error_response(
            "Notification not found",
            {"notification_id": "not_found"},
            status.HTTP_404_NOT_FOUND,
        )
    if db_notif.user_id != current_user.id:
        raise error_response(
            "Not authorized to modify this notification",
            {"notification_id": "forbidden"},
            status.HTTP_403_FORBIDDEN,
        )
    return crud.crud_notification.mark_as_read(db, db_notif)
