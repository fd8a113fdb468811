# backend/app/models/booking.py

from sqlalchemy import Column, Integer, DateTime, Numeric, ForeignKey, String, Text, JSON
from sqlalchemy.orm import relationship

from .base import BaseModel
from .booking_status import BookingStatus, BookingCategory
from .types import CaseInsensitiveEnum


class Booking(BaseModel):
    __tablename__ = "bookings"

    code         = Column(String(16), unique=True, index=True, nullable=False)
    title        = Column(String, nullable=False)
    category     = Column(CaseInsensitiveEnum(BookingCategory, name="bookingcategory"), nullable=True)
    location     = Column(String, nullable=True)
    start_date   = Column(DateTime, nullable=False, index=True)
    end_date     = Column(DateTime, nullable=False)
    rate         = Column(Numeric(10, 2), nullable=True)
    usage        = Column(JSON, nullable=True)
    deliverables = Column(Text, nullable=True)
    notes        = Column(Text, nullable=True)
    status       = Column(
        CaseInsensitiveEnum(BookingStatus, name="bookingstatus"),
        default=BookingStatus.INQUIRY,
        nullable=False,
        index=True,
    )
    requested_talent_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    client_id    = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_by   = Column(Integer, ForeignKey("users.id"), nullable=False)

    client    = relationship("User", foreign_keys=[client_id], back_populates="bookings_as_client")
    requested_talent = relationship("User", foreign_keys=[requested_talent_id])
    creator   = relationship("User", foreign_keys=[created_by])
    talents   = relationship(
        "BookingTalent",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingTalent.id",
    )
    contracts = relationship(
        "Contract",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="Contract.id",
    )
