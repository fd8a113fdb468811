# backend/app/api/api_booking.py

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import models
from ..crud import crud_booking_talent, crud_contract
from ..crud.crud_user import user as crud_user
from ..crud.crud_booking import booking as crud_booking
from ..database import get_db
from ..models import BookingStatus, UserRole
from ..schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingUpdate,
)
from ..schemas.booking_talent import BookingDetailResponse, SendRequestsIn, SendRequestsOut
from ..schemas.contract import ContractResponse
from ..services import booking_lifecycle
from ..utils import error_response
from .dependencies import get_current_user

router = APIRouter(tags=["bookings"], default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)


def _get_visible_booking(db: Session, booking_id: int, current_user: models.User) -> models.Booking:
    db_booking = crud_booking.get(db, booking_id)
    if db_booking is None:
        raise error_response("Booking not found", {"booking_id": "not_found"}, status.HTTP_404_NOT_FOUND)
    if current_user.is_admin:
        return db_booking
    if current_user.role == UserRole.CLIENT and db_booking.client_id == current_user.id:
        return db_booking
    if current_user.role == UserRole.TALENT and crud_booking.is_linked_talent(db, db_booking.id, current_user.id):
        return db_booking
    raise error_response(
        "You do not have access to this booking",
        {"booking_id": "forbidden"},
        status.HTTP_403_FORBIDDEN,
    )


@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_in: BookingCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Open a new booking in ``inquiry``.

    Clients always book for themselves; admins must name the client.
    """
    if current_user.role == UserRole.TALENT:
        raise error_response("Talents cannot create bookings", {"role": "forbidden"}, status.HTTP_403_FORBIDDEN)
    if current_user.is_admin:
        if booking_in.client_id is None:
            raise error_response("client_id is required", {"client_id": "required"})
        client = crud_user.get(db, booking_in.client_id)
        if client is None or client.role != UserRole.CLIENT:
            raise error_response("Client not found", {"client_id": "not_found"}, status.HTTP_404_NOT_FOUND)
        client_id = client.id
    else:
        client_id = current_user.id

    if booking_in.requested_talent_id is not None:
        talent = crud_user.get(db, booking_in.requested_talent_id)
        if talent is None or talent.role != UserRole.TALENT:
            raise error_response(
                "Requested talent not found",
                {"requested_talent_id": "not_found"},
                status.HTTP_404_NOT_FOUND,
            )

    db_booking = crud_booking.create(db, booking_in, client_id=client_id, created_by=current_user.id)
    logger.info("Booking %s (%s) created by %s", db_booking.id, db_booking.code, current_user.id)
    return db_booking


@router.get("/bookings", response_model=BookingListResponse)
def list_bookings(
    status_filter: Optional[BookingStatus] = Query(default=None, alias="status"),
    talent_id: Optional[int] = None,
    client_id: Optional[int] = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    if not current_user.is_admin:
        talent_id = client_id = None
    items, total = crud_booking.list_for_user(
        db,
        current_user,
        status=status_filter,
        talent_id=talent_id,
        client_id=client_id,
        skip=skip,
        limit=limit,
    )
    return {"items": items, "total": total}


@router.get("/bookings/{booking_id}", response_model=BookingDetailResponse)
def read_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    db_booking = _get_visible_booking(db, booking_id, current_user)
    detail = BookingDetailResponse.model_validate(db_booking)
    if current_user.role == UserRole.TALENT:
        # A talent only sees their own link on the booking
        detail.talents = [t for t in detail.talents if t.talent_id == current_user.id]
    return detail


@router.patch("/bookings/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: int,
    booking_in: BookingUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    if not current_user.is_admin:
        raise error_response("Only admins can update bookings", {"booking_id": "forbidden"}, status.HTTP_403_FORBIDDEN)
    db_booking = crud_booking.get(db, booking_id)
    if db_booking is None:
        raise error_response("Booking not found", {"booking_id": "not_found"}, status.HTTP_404_NOT_FOUND)

    data = booking_in.model_dump(exclude_unset=True)
    new_status = data.pop("status", None) or db_booking.status
    start = data.get("start_date", db_booking.start_date)
    end = data.get("end_date", db_booking.end_date)
    if start > end:
        raise error_response("start_date must be on or before end_date", {"end_date": "before_start"})

    # Field edits and the status swap commit together
    return booking_lifecycle.update_booking_status(
        db, db_booking, new_status, current_user, background_tasks, changes=data
    )


@router.post("/bookings/{booking_id}/send-requests", response_model=SendRequestsOut)
def send_booking_requests(
    booking_id: int,
    payload: SendRequestsIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    created, skipped = crud_booking_talent.send_requests(
        db, booking_id, payload.talent_ids, current_user, background_tasks
    )
    return {"created": created, "skipped_talent_ids": skipped}


@router.get("/bookings/{booking_id}/contracts", response_model=List[ContractResponse])
def list_booking_contracts(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    _get_visible_booking(db, booking_id, current_user)
    items, _ = crud_contract.list_for_user(db, current_user, booking_id=booking_id, limit=100)
    return items
