from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from ..models.booking_talent import RequestStatus
from .user import UserSummary
from .booking import BookingResponse, BookingSummary


class SendRequestsIn(BaseModel):
    talent_ids: List[int] = Field(min_length=1)


class RespondIn(BaseModel):
    status: RequestStatus
    message: Optional[str] = Field(default=None, max_length=2000)


class BookingTalentResponse(BaseModel):
    id: int
    booking_id: int
    talent_id: int
    request_status: RequestStatus
    response_message: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    talent: Optional[UserSummary] = None
    booking: Optional[BookingSummary] = None

    model_config = {"from_attributes": True}


class SendRequestsOut(BaseModel):
    created: List[BookingTalentResponse]
    skipped_talent_ids: List[int]


class BookingDetailResponse(BookingResponse):
    talents: List[BookingTalentResponse] = Field(default_factory=list)
