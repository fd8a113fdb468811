from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from .. import models


def get_contract(db: Session, contract_id: int) -> Optional[models.Contract]:
    return (
        db.query(models.Contract)
        .options(selectinload(models.Contract.signatures))
        .filter(models.Contract.id == contract_id)
        .first()
    )


def get_for_booking_talent(db: Session, booking_talent_id: int) -> Optional[models.Contract]:
    return (
        db.query(models.Contract)
        .filter(models.Contract.booking_talent_id == booking_talent_id)
        .first()
    )


def get_signature(db: Session, contract_id: int, signer_id: int) -> Optional[models.Signature]:
    return (
        db.query(models.Signature)
        .filter(
            models.Signature.contract_id == contract_id,
            models.Signature.signer_id == signer_id,
        )
        .first()
    )


def can_view(contract: models.Contract, user: models.User) -> bool:
    if user.is_admin:
        return True
    if user.role == models.UserRole.TALENT:
        return contract.booking_talent.talent_id == user.id
    return contract.booking.client_id == user.id


def list_for_user(
    db: Session,
    user: models.User,
    booking_id: Optional[int] = None,
    status: Optional[models.ContractStatus] = None,
    skip: int = 0,
    limit: int = 50,
) -> Tuple[List[models.Contract], int]:
    """Contracts visible to ``user``, newest first."""
    query = db.query(models.Contract)
    if user.role == models.UserRole.TALENT:
        query = query.join(
            models.BookingTalent,
            models.BookingTalent.id == models.Contract.booking_talent_id,
        ).filter(models.BookingTalent.talent_id == user.id)
    elif not user.is_admin:
        query = query.join(
            models.Booking,
            models.Booking.id == models.Contract.booking_id,
        ).filter(models.Booking.client_id == user.id)
    if booking_id is not None:
        query = query.filter(models.Contract.booking_id == booking_id)
    if status is not None:
        query = query.filter(models.Contract.status == status)
    total = query.count()
    items = (
        query.options(selectinload(models.Contract.signatures))
        .order_by(models.Contract.created_at.desc(), models.Contract.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return items, total
