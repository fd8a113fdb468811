from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import models
from ..crud import crud_booking_talent
from ..database import get_db
from ..models import RequestStatus
from ..schemas.booking_talent import BookingTalentResponse, RespondIn
from .dependencies import get_current_user

router = APIRouter(tags=["booking-requests"], default_response_class=ORJSONResponse)


class BookingRequestListResponse(BaseModel):
    items: List[BookingTalentResponse]
    total: int


@router.get("/booking-requests", response_model=BookingRequestListResponse)
def list_booking_requests(
    status_filter: Optional[RequestStatus] = Query(default=None, alias="status"),
    booking_id: Optional[int] = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Requests visible to the caller; admins default to the pending queue."""
    items, total = crud_booking_talent.list_requests(
        db, current_user, status=status_filter, booking_id=booking_id, skip=skip, limit=limit
    )
    return {"items": items, "total": total}


@router.post("/booking-requests/{booking_talent_id}/respond", response_model=BookingTalentResponse)
def respond_to_booking_request(
    booking_talent_id: int,
    payload: RespondIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return crud_booking_talent.respond_to_request(
        db,
        booking_talent_id,
        payload.status,
        payload.message,
        current_user,
        background_tasks,
    )
