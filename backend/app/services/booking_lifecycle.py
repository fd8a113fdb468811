"""Booking status state machine.

Bookings move forward along ``LIFECYCLE`` and may skip steps; they never move
back. ``cancelled`` is reachable from any state that is not terminal, and
``completed`` / ``cancelled`` absorb every later request. Reaching ``signed``
or any later state needs at least one signed contract on the booking.

Admins drive transitions through :func:`update_booking_status`; contract
events drive them through :func:`advance_on_contract_event`.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from .. import models
from ..crud import crud_booking
from ..crud.crud_status import swap_status
from ..models.booking_status import BookingStatus
from ..utils.errors import ConflictError, ForbiddenError
from ..utils.notifications import notify_booking_status_update

logger = logging.getLogger(__name__)

LIFECYCLE = (
    BookingStatus.INQUIRY,
    BookingStatus.PROPOSED,
    BookingStatus.CONTRACT_SENT,
    BookingStatus.SIGNED,
    BookingStatus.INVOICED,
    BookingStatus.PAID,
    BookingStatus.COMPLETED,
)
TERMINAL_STATES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})
NEEDS_SIGNED_CONTRACT = frozenset(LIFECYCLE[LIFECYCLE.index(BookingStatus.SIGNED):])


def is_terminal(status: BookingStatus) -> bool:
    return status in TERMINAL_STATES


def validate_transition(
    current: BookingStatus,
    target: BookingStatus,
    has_signed_contract: bool,
) -> bool:
    """Check a status change against the transition table.

    Returns ``False`` when ``target`` equals ``current`` (nothing to do) and
    ``True`` for an allowed move. Raises :class:`ConflictError` otherwise.
    """
    if current == target:
        return False
    if is_terminal(current):
        raise ConflictError(
            f"Booking is {current.value} and can no longer change status",
            {"status": "terminal_state"},
        )
    if target == BookingStatus.CANCELLED:
        return True
    if LIFECYCLE.index(target) < LIFECYCLE.index(current):
        raise ConflictError(
            f"Cannot move booking back from {current.value} to {target.value}",
            {"status": "backward_transition"},
        )
    if target in NEEDS_SIGNED_CONTRACT and not has_signed_contract:
        raise ConflictError(
            f"Booking needs a signed contract before it can be {target.value}",
            {"status": "signed_contract_required"},
        )
    return True


def _apply(db: Session, booking: models.Booking, current: BookingStatus, target: BookingStatus) -> bool:
    """Swap the stored status; ``False`` when another writer moved it first."""
    return swap_status(db, models.Booking, booking.id, current, target)


def update_booking_status(
    db: Session,
    booking: models.Booking,
    new_status: BookingStatus,
    actor: models.User,
    background_tasks: Optional[BackgroundTasks] = None,
    changes: Optional[Dict[str, Any]] = None,
) -> models.Booking:
    """Admin-driven status change with compare-and-swap on the prior status.

    ``changes`` holds field edits that commit in the same transaction as the
    status swap; a lost swap discards them too.
    """
    if not actor.is_admin:
        raise ForbiddenError("Only admins can change booking status", {"status": "forbidden"})
    current = booking.status
    changed = validate_transition(
        current,
        new_status,
        crud_booking.booking.has_signed_contract(db, booking.id),
    )
    if not changed and not changes:
        return booking
    for field, value in (changes or {}).items():
        setattr(booking, field, value)
    if changed and not _apply(db, booking, current, new_status):
        db.rollback()
        raise ConflictError(
            "Booking status was changed by another request; reload and retry",
            {"status": "stale"},
        )
    db.commit()
    db.refresh(booking)
    if changed:
        notify_booking_status_update(db, booking, background_tasks)
    return booking


def advance_on_contract_event(
    db: Session,
    booking: models.Booking,
    target: BookingStatus,
) -> bool:
    """Move ``booking`` forward in response to a request or contract event.

    Only ever moves forward: a booking already at or past ``target`` (or in a
    terminal state) is left alone. Moving to ``signed`` additionally waits
    until every sent contract on the booking is signed. The caller owns the
    transaction; nothing is committed here. Returns whether the status moved.
    """
    db.refresh(booking)
    current = booking.status
    if is_terminal(current) or target == BookingStatus.CANCELLED:
        return False
    if LIFECYCLE.index(current) >= LIFECYCLE.index(target):
        return False
    if target == BookingStatus.SIGNED:
        pending = (
            db.query(models.Contract.id)
            .filter(
                models.Contract.booking_id == booking.id,
                models.Contract.status == models.ContractStatus.SENT,
            )
            .first()
        )
        if pending is not None:
            logger.info("Booking %s still has unsigned contracts; staying %s", booking.id, current.value)
            return False
        if not crud_booking.booking.has_signed_contract(db, booking.id):
            return False
    moved = _apply(db, booking, current, target)
    if moved:
        logger.info("Booking %s advanced from %s to %s by contract event", booking.id, current.value, target.value)
    return moved
