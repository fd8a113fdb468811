"""Contract generation, sending and signing.

Each step is a compare-and-swap on the prior status, committed together with
any booking advance it causes, so a contract goes draft -> sent -> signed at
most once and never regresses.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..core.config import settings
from ..crud import crud_booking, crud_booking_talent, crud_contract
from ..crud.crud_status import swap_status
from ..models.booking_status import BookingStatus
from ..models.booking_talent import RequestStatus
from ..models.contract import ContractStatus
from ..models.signature import SignatureStatus
from ..utils import notifications
from ..utils.errors import (
    ConflictError,
    DomainValidationError,
    ForbiddenError,
    NotFoundError,
)
from ..utils.r2 import put_bytes
from . import booking_lifecycle, contract_pdf, contract_templates

logger = logging.getLogger(__name__)


def _require_admin(actor: models.User, action: str) -> None:
    if not actor.is_admin:
        raise ForbiddenError(f"Only admins can {action}", {"contract": "forbidden"})


def _store_pdf(
    booking: models.Booking,
    booking_talent: models.BookingTalent,
    contract: models.Contract,
    pdf: bytes,
) -> Optional[str]:
    key = f"contracts/{booking.code}/{booking_talent.id}-{contract.id}.pdf"
    try:
        return put_bytes(key, pdf, "application/pdf")
    except OSError as exc:
        logger.error("Could not store contract PDF for booking %s: %s", booking.id, exc)
        return None


def create_contract(
    db: Session,
    booking_id: int,
    booking_talent_id: int,
    actor: models.User,
    template_id: Optional[str] = None,
    due_date: Optional[datetime] = None,
) -> models.Contract:
    """Render and persist a draft contract for an accepted talent request."""
    _require_admin(actor, "create contracts")
    booking = crud_booking.booking.get(db, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found", {"booking_id": "not_found"})
    link = crud_booking_talent.get_booking_talent(db, booking_talent_id)
    if link is None:
        raise NotFoundError("Booking request not found", {"booking_talent_id": "not_found"})
    if link.booking_id != booking.id:
        raise ConflictError(
            "Booking request belongs to a different booking",
            {"booking_talent_id": "booking_mismatch"},
        )
    if booking_lifecycle.is_terminal(booking.status):
        raise ConflictError(
            f"Booking is {booking.status.value}; contracts can no longer be created",
            {"booking_id": "terminal_state"},
        )
    if link.request_status != RequestStatus.ACCEPTED:
        raise ConflictError(
            f"Talent request is {link.request_status.value}; only accepted requests can get a contract",
            {"booking_talent_id": "not_accepted"},
        )
    if crud_contract.get_for_booking_talent(db, link.id) is not None:
        raise ConflictError(
            "A contract already exists for this booking request",
            {"booking_talent_id": "duplicate"},
        )

    if template_id:
        template = contract_templates.get_template(template_id)
        if template is None:
            raise DomainValidationError("Unknown contract template", {"template_id": "not_found"})
    else:
        template = contract_templates.template_for_category(booking.category)

    now = datetime.utcnow()
    talent = link.talent
    content = contract_templates.render_contract(
        booking,
        talent,
        talent.talent_profile,
        booking.client,
        template=template,
        issued_on=now.date(),
    )
    title = f"Contract - {booking.title}"

    contract = models.Contract(
        booking_id=booking.id,
        booking_talent_id=link.id,
        title=title,
        template_id=template.id,
        content=content,
        status=ContractStatus.DRAFT,
        due_date=due_date or now + timedelta(days=settings.CONTRACT_DUE_DAYS),
        created_by=actor.id,
    )
    db.add(contract)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError(
            "A contract already exists for this booking request",
            {"booking_talent_id": "duplicate"},
        )
    # Only a row that made it into the table gets a stored PDF
    contract.pdf_url = _store_pdf(booking, link, contract, contract_pdf.generate_pdf(title, content))
    db.commit()
    db.refresh(contract)
    logger.info("Contract %s drafted for booking %s talent %s", contract.id, booking.id, talent.id)
    return contract


def send_contract_for_signing(
    db: Session,
    contract_id: int,
    actor: models.User,
    background_tasks: Optional[BackgroundTasks] = None,
) -> models.Contract:
    """Move a draft to ``sent`` and open the talent's pending signature."""
    _require_admin(actor, "send contracts")
    contract = crud_contract.get_contract(db, contract_id)
    if contract is None:
        raise NotFoundError("Contract not found", {"contract_id": "not_found"})
    if contract.status != ContractStatus.DRAFT:
        raise ConflictError(
            f"Contract is already {contract.status.value}",
            {"status": "not_draft"},
        )
    booking = contract.booking
    if booking_lifecycle.is_terminal(booking.status):
        raise ConflictError(
            f"Booking is {booking.status.value}; contracts can no longer be sent",
            {"booking_id": "terminal_state"},
        )
    signer_id = contract.booking_talent.talent_id

    if not swap_status(db, models.Contract, contract.id, ContractStatus.DRAFT, ContractStatus.SENT):
        db.rollback()
        raise ConflictError("Contract was sent by another request", {"status": "stale"})
    db.add(
        models.Signature(
            contract_id=contract.id,
            signer_id=signer_id,
            status=SignatureStatus.PENDING,
        )
    )
    advanced = booking_lifecycle.advance_on_contract_event(db, booking, BookingStatus.CONTRACT_SENT)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Contract was sent by another request", {"status": "stale"})
    db.refresh(contract)
    db.refresh(booking)

    notifications.notify_contract_sent(db, contract.booking_talent.talent, contract, booking, background_tasks)
    if advanced:
        notifications.notify_booking_status_update(db, booking, background_tasks)
    return contract


def sign_contract(
    db: Session,
    contract_id: int,
    signer: models.User,
    signature_image_url: str,
    ip_address: Optional[str],
    user_agent: Optional[str],
    background_tasks: Optional[BackgroundTasks] = None,
) -> models.Contract:
    """Finalize the signer's signature and the contract in one transaction."""
    contract = crud_contract.get_contract(db, contract_id)
    if contract is None:
        raise NotFoundError("Contract not found", {"contract_id": "not_found"})
    signature = crud_contract.get_signature(db, contract.id, signer.id)
    if signature is None:
        if contract.status == ContractStatus.DRAFT and contract.booking_talent.talent_id == signer.id:
            raise ConflictError("Contract has not been sent for signing", {"status": "not_sent"})
        raise ForbiddenError("You are not a signer of this contract", {"contract_id": "forbidden"})
    if signature.status == SignatureStatus.SIGNED or contract.status == ContractStatus.SIGNED:
        raise ConflictError("Contract has already been signed", {"status": "already_signed"})
    if contract.status != ContractStatus.SENT:
        raise ConflictError("Contract has not been sent for signing", {"status": "not_sent"})

    now = datetime.utcnow()
    signed = swap_status(
        db,
        models.Signature,
        signature.id,
        SignatureStatus.PENDING,
        SignatureStatus.SIGNED,
        extra={
            "signature_image_url": signature_image_url,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "signed_at": now,
        },
    )
    if not signed or not swap_status(db, models.Contract, contract.id, ContractStatus.SENT, ContractStatus.SIGNED):
        db.rollback()
        raise ConflictError("Contract has already been signed", {"status": "already_signed"})

    booking = contract.booking
    advanced = booking_lifecycle.advance_on_contract_event(db, booking, BookingStatus.SIGNED)
    db.commit()
    db.refresh(contract)
    db.refresh(signature)
    db.refresh(booking)
    logger.info("Contract %s signed by user %s from %s", contract.id, signer.id, ip_address)

    notifications.notify_contract_signed(db, contract, booking, signer, background_tasks)
    if advanced:
        notifications.notify_booking_status_update(db, booking, background_tasks)
    return contract
