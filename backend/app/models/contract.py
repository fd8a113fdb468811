from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel
from .types import CaseInsensitiveEnum


class ContractStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    SIGNED = "signed"


class Contract(BaseModel):
    __tablename__ = "contracts"

    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    # One contract per accepted booking-talent link
    booking_talent_id = Column(
        Integer,
        ForeignKey("booking_talents.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    title = Column(String, nullable=False)
    template_id = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    pdf_url = Column(String, nullable=True)
    status = Column(
        CaseInsensitiveEnum(ContractStatus, name="contractstatus"),
        nullable=False,
        default=ContractStatus.DRAFT,
        index=True,
    )
    due_date = Column(DateTime, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    booking = relationship("Booking", back_populates="contracts")
    booking_talent = relationship("BookingTalent", back_populates="contract")
    signatures = relationship(
        "Signature",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="Signature.id",
    )
