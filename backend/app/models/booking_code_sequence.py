from sqlalchemy import Column, Integer

from ..database import Base


class BookingCodeSequence(Base):
    """Last issued booking-code number per calendar year."""

    __tablename__ = "booking_code_sequences"

    year = Column(Integer, primary_key=True, autoincrement=False)
    current_seq = Column(Integer, nullable=False, default=0)
