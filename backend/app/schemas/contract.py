from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from ..models.contract import ContractStatus
from ..models.signature import SignatureStatus
from ..models.booking_status import BookingCategory
from .booking import naive_utc
from .user import UserSummary


class ContractCreate(BaseModel):
    booking_id: int
    booking_talent_id: int
    template_id: Optional[str] = None
    due_date: Optional[datetime] = None

    normalise_due_date = field_validator("due_date")(naive_utc)


class ContractSignIn(BaseModel):
    signature_image_url: str = Field(min_length=1)


class SignatureResponse(BaseModel):
    id: int
    contract_id: int
    signer_id: int
    status: SignatureStatus
    signature_image_url: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    signed_at: Optional[datetime] = None
    signer: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class ContractResponse(BaseModel):
    id: int
    booking_id: int
    booking_talent_id: int
    title: str
    template_id: str
    content: str
    pdf_url: Optional[str] = None
    status: ContractStatus
    due_date: Optional[datetime] = None
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    signatures: List[SignatureResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class ContractTemplateInfo(BaseModel):
    id: str
    name: str
    description: str
    category: BookingCategory
