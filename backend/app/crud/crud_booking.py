import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..models.booking_status import BookingStatus

logger = logging.getLogger(__name__)


def allocate_booking_code(db: Session, year: Optional[int] = None) -> str:
    """Reserve and return the next ``BK-<year>-<seq>`` code.

    Uses the booking_code_sequences table. Call it before adding anything
    else to the session: losing the race to create a year's first row rolls
    the session back.
    """
    year = year or datetime.utcnow().year
    seq_model = models.BookingCodeSequence
    if db.get(seq_model, year) is None:
        db.add(seq_model(year=year, current_seq=0))
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.info("Booking code sequence for %s created by another transaction", year)
    db.query(seq_model).filter(seq_model.year == year).update(
        {seq_model.current_seq: seq_model.current_seq + 1},
        synchronize_session=False,
    )
    seq = db.query(seq_model.current_seq).filter(seq_model.year == year).scalar()
    return f"BK-{year}-{int(seq):04d}"


def resync_booking_sequence(db: Session, year: Optional[int] = None) -> None:
    """Move the year's sequence up to the highest code already stored."""
    year = year or datetime.utcnow().year
    prefix = f"BK-{year}-"
    highest = 0
    for (code,) in db.query(models.Booking.code).filter(models.Booking.code.like(f"{prefix}%")):
        suffix = code[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    seq_model = models.BookingCodeSequence
    row = db.get(seq_model, year)
    if row is None:
        db.add(seq_model(year=year, current_seq=highest))
    else:
        db.query(seq_model).filter(seq_model.year == year).update(
            {seq_model.current_seq: highest}, synchronize_session=False
        )
    db.commit()
    logger.warning("Booking code sequence for %s resynced to %s", year, highest)


class CRUDBooking:
    def get(self, db: Session, booking_id: int) -> Optional[models.Booking]:
        return db.query(models.Booking).filter(models.Booking.id == booking_id).first()

    def create(
        self,
        db: Session,
        booking_in: schemas.BookingCreate,
        client_id: int,
        created_by: int,
    ) -> models.Booking:
        data = booking_in.model_dump(exclude={"client_id"})

        def _build() -> models.Booking:
            return models.Booking(
                **data,
                code=allocate_booking_code(db),
                client_id=client_id,
                created_by=created_by,
                status=BookingStatus.INQUIRY,
            )

        db_booking = _build()
        db.add(db_booking)
        try:
            db.commit()
        except IntegrityError:
            # Code collided with a row inserted outside the sequence; retry once
            db.rollback()
            resync_booking_sequence(db)
            db_booking = _build()
            db.add(db_booking)
            db.commit()
        db.refresh(db_booking)
        return db_booking

    def list_for_user(
        self,
        db: Session,
        user: models.User,
        status: Optional[BookingStatus] = None,
        talent_id: Optional[int] = None,
        client_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[models.Booking], int]:
        """Return one page of bookings visible to ``user`` and the total count."""
        query = db.query(models.Booking)
        if user.role == models.UserRole.CLIENT:
            query = query.filter(models.Booking.client_id == user.id)
        elif user.role == models.UserRole.TALENT:
            talent_id = user.id
        elif client_id is not None:
            query = query.filter(models.Booking.client_id == client_id)

        if talent_id is not None:
            query = query.filter(
                models.Booking.talents.any(models.BookingTalent.talent_id == talent_id)
            )
        if status is not None:
            query = query.filter(models.Booking.status == status)

        total = query.count()
        items = (
            query.order_by(models.Booking.start_date.desc(), models.Booking.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def has_signed_contract(self, db: Session, booking_id: int) -> bool:
        return (
            db.query(models.Contract.id)
            .filter(
                models.Contract.booking_id == booking_id,
                models.Contract.status == models.ContractStatus.SIGNED,
            )
            .first()
            is not None
        )

    def is_linked_talent(self, db: Session, booking_id: int, talent_id: int) -> bool:
        return (
            db.query(models.BookingTalent.id)
            .filter(
                models.BookingTalent.booking_id == booking_id,
                models.BookingTalent.talent_id == talent_id,
            )
            .first()
            is not None
        )


booking = CRUDBooking()
