from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from decimal import Decimal

from ..models.booking_status import BookingStatus, BookingCategory
from .user import UserSummary


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store and compare dates as naive UTC, like the DateTime columns hold them."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# Shared properties for Booking
class BookingBase(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    category: Optional[BookingCategory] = None
    location: Optional[str] = None
    start_date: datetime
    end_date: datetime
    rate: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    # Free-form usage rights, e.g. {"territory": "US", "term": "1 year", "media": ["print"]}
    usage: Optional[Dict[str, Any]] = None
    deliverables: Optional[str] = None
    notes: Optional[str] = None

    normalise_dates = field_validator("start_date", "end_date")(naive_utc)


class BookingCreate(BookingBase):
    requested_talent_id: Optional[int] = None
    # Admins create bookings on behalf of a client; clients always book for themselves
    client_id: Optional[int] = None

    @model_validator(mode="after")
    def check_dates(self) -> "BookingCreate":
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


# Admin field edits; status goes through the transition table
class BookingUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[BookingCategory] = None
    location: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    rate: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    usage: Optional[Dict[str, Any]] = None
    deliverables: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[BookingStatus] = None

    normalise_dates = field_validator("start_date", "end_date")(naive_utc)

    @model_validator(mode="after")
    def reject_nulls(self) -> "BookingUpdate":
        # Omit a field to leave it alone; these columns cannot be cleared
        for field in ("title", "start_date", "end_date", "status"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class BookingSummary(BaseModel):
    id: int
    code: str
    title: str
    status: BookingStatus
    start_date: datetime
    end_date: datetime

    model_config = {"from_attributes": True}


class BookingResponse(BookingBase):
    id: int
    code: str
    status: BookingStatus
    client_id: int
    created_by: int
    requested_talent_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    client: Optional[UserSummary] = None

    model_config = {
        "from_attributes": True
    }


class BookingListResponse(BaseModel):
    items: List[BookingResponse]
    total: int
