"""Talent requests: fan-out to many talents, one answer from each."""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..models.booking_status import BookingStatus
from ..models.booking_talent import RequestStatus
from ..services import booking_lifecycle
from ..utils.errors import ConflictError, DomainValidationError, ForbiddenError, NotFoundError
from ..utils import notifications
from .crud_booking import booking as crud_booking
from .crud_status import swap_status
from .crud_user import user as crud_user

logger = logging.getLogger(__name__)

RESPONSE_STATUSES = (RequestStatus.ACCEPTED, RequestStatus.DECLINED)


def get_booking_talent(db: Session, booking_talent_id: int) -> Optional[models.BookingTalent]:
    return (
        db.query(models.BookingTalent)
        .filter(models.BookingTalent.id == booking_talent_id)
        .first()
    )


def get_for_booking(db: Session, booking_id: int) -> List[models.BookingTalent]:
    return (
        db.query(models.BookingTalent)
        .filter(models.BookingTalent.booking_id == booking_id)
        .order_by(models.BookingTalent.id)
        .all()
    )


def _unique(ids: Iterable[int]) -> List[int]:
    seen: set[int] = set()
    ordered: List[int] = []
    for talent_id in ids:
        if talent_id not in seen:
            seen.add(talent_id)
            ordered.append(talent_id)
    return ordered


def send_requests(
    db: Session,
    booking_id: int,
    talent_ids: Iterable[int],
    actor: models.User,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Tuple[List[models.BookingTalent], List[int]]:
    """Create one pending request per talent that has none for the booking yet.

    Returns the created rows and the ids that already had a request.
    """
    if not actor.is_admin:
        raise ForbiddenError("Only admins can send booking requests", {"booking_id": "forbidden"})
    db_booking = crud_booking.get(db, booking_id)
    if db_booking is None:
        raise NotFoundError("Booking not found", {"booking_id": "not_found"})
    if booking_lifecycle.is_terminal(db_booking.status):
        raise ConflictError(
            f"Booking is {db_booking.status.value}; requests can no longer be sent",
            {"booking_id": "terminal_state"},
        )

    wanted = _unique(talent_ids)
    talents = {
        u.id: u
        for u in crud_user.get_many(db, wanted)
        if u.role == models.UserRole.TALENT
    }
    unknown = [tid for tid in wanted if tid not in talents]
    if unknown:
        raise NotFoundError(
            "Unknown talent id(s)",
            {"talent_ids": ", ".join(str(tid) for tid in unknown)},
        )

    existing = {
        tid
        for (tid,) in db.query(models.BookingTalent.talent_id).filter(
            models.BookingTalent.booking_id == booking_id,
            models.BookingTalent.talent_id.in_(wanted),
        )
    }
    created = [
        models.BookingTalent(
            booking_id=booking_id,
            talent_id=tid,
            request_status=RequestStatus.PENDING,
        )
        for tid in wanted
        if tid not in existing
    ]
    skipped = [tid for tid in wanted if tid in existing]
    if created:
        db.add_all(created)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError(
                "Requests for this booking changed concurrently; retry",
                {"talent_ids": "duplicate"},
            )
        for row in created:
            db.refresh(row)
    logger.info(
        "Booking %s requests sent to %s, skipped %s",
        booking_id,
        [row.talent_id for row in created],
        skipped,
    )
    for row in created:
        notifications.notify_booking_request(db, talents[row.talent_id], db_booking, row, background_tasks)
    return created, skipped


def respond_to_request(
    db: Session,
    booking_talent_id: int,
    status: RequestStatus,
    message: Optional[str],
    actor: models.User,
    background_tasks: Optional[BackgroundTasks] = None,
) -> models.BookingTalent:
    """Record the targeted talent's one-time answer to a request."""
    row = get_booking_talent(db, booking_talent_id)
    if row is None:
        raise NotFoundError("Booking request not found", {"booking_talent_id": "not_found"})
    if row.talent_id != actor.id:
        raise ForbiddenError("Only the requested talent can respond", {"booking_talent_id": "forbidden"})
    if status not in RESPONSE_STATUSES:
        raise DomainValidationError(
            "Response must be accepted or declined",
            {"status": "invalid_choice"},
        )
    db_booking = row.booking
    if booking_lifecycle.is_terminal(db_booking.status):
        raise ConflictError(
            f"Booking is {db_booking.status.value}; requests can no longer be answered",
            {"booking_id": "terminal_state"},
        )

    swapped = swap_status(
        db,
        models.BookingTalent,
        row.id,
        RequestStatus.PENDING,
        status,
        extra={"responded_at": datetime.utcnow(), "response_message": message},
        attr="request_status",
    )
    if not swapped:
        db.rollback()
        raise ConflictError("This request has already been answered", {"status": "already_responded"})

    advanced = False
    if status == RequestStatus.ACCEPTED:
        advanced = booking_lifecycle.advance_on_contract_event(db, db_booking, BookingStatus.PROPOSED)
    db.commit()
    db.refresh(row)
    db.refresh(db_booking)

    notifications.notify_request_response(db, row, db_booking, actor, background_tasks)
    if advanced:
        notifications.notify_booking_status_update(db, db_booking, background_tasks)
    return row


def list_requests(
    db: Session,
    user: models.User,
    status: Optional[RequestStatus] = None,
    booking_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 50,
) -> Tuple[List[models.BookingTalent], int]:
    """Requests visible to ``user``.

    Admins default to pending requests across all bookings, talents see their
    own, clients see the requests on their bookings.
    """
    query = db.query(models.BookingTalent)
    if user.is_admin:
        status = status or RequestStatus.PENDING
    elif user.role == models.UserRole.TALENT:
        query = query.filter(models.BookingTalent.talent_id == user.id)
    else:
        query = query.join(models.Booking, models.Booking.id == models.BookingTalent.booking_id).filter(
            models.Booking.client_id == user.id
        )
    if status is not None:
        query = query.filter(models.BookingTalent.request_status == status)
    if booking_id is not None:
        query = query.filter(models.BookingTalent.booking_id == booking_id)
    total = query.count()
    items = (
        query.order_by(models.BookingTalent.created_at.desc(), models.BookingTalent.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return items, total
