from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel
from .types import CaseInsensitiveEnum


class SignatureStatus(str, enum.Enum):
    PENDING = "pending"
    SIGNED = "signed"


class Signature(BaseModel):
    __tablename__ = "signatures"
    __table_args__ = (
        UniqueConstraint("contract_id", "signer_id", name="uq_signatures_contract_signer"),
    )

    contract_id = Column(Integer, ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True)
    signer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    signature_image_url = Column(String, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String, nullable=True)
    status = Column(
        CaseInsensitiveEnum(SignatureStatus, name="signaturestatus"),
        nullable=False,
        default=SignatureStatus.PENDING,
    )
    signed_at = Column(DateTime, nullable=True)

    contract = relationship("Contract", back_populates="signatures")
    signer = relationship("User")
