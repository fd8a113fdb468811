from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel
from .types import CaseInsensitiveEnum


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class BookingTalent(BaseModel):
    """One talent's invitation to a booking and their answer to it."""

    __tablename__ = "booking_talents"
    __table_args__ = (
        UniqueConstraint("booking_id", "talent_id", name="uq_booking_talents_booking_talent"),
    )

    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    talent_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    request_status = Column(
        CaseInsensitiveEnum(RequestStatus, name="requeststatus"),
        nullable=False,
        default=RequestStatus.PENDING,
        index=True,
    )
    response_message = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)

    booking = relationship("Booking", back_populates="talents")
    talent = relationship("User")
    contract = relationship("Contract", back_populates="booking_talent", uselist=False)
