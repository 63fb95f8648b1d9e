"""Borrower and KYC document entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from loan_gateway.utils.date_utils import utcnow

from .credit import CreditRating


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    DELETED = "DELETED"


class KycStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class DocumentType(str, Enum):
    ID_CARD = "ID_CARD"
    PASSPORT = "PASSPORT"
    DRIVERS_LICENSE = "DRIVERS_LICENSE"
    SELFIE = "SELFIE"
    PROOF_OF_ADDRESS = "PROOF_OF_ADDRESS"
    VEHICLE_REGISTRATION = "VEHICLE_REGISTRATION"

    @property
    def is_identity(self) -> bool:
        """An ID card or a passport both prove identity."""
        return self in (DocumentType.ID_CARD, DocumentType.PASSPORT)


class DocumentStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass
class Borrower:
    """
    A driver who can apply for loans.

    ``credit_score`` and ``credit_rating`` are the current pointer into
    the append-only snapshot history; they are only written by a score
    recalculation.
    """

    external_id: str
    name: str
    phone: str
    id: UUID = field(default_factory=uuid4)
    account_status: AccountStatus = AccountStatus.ACTIVE
    kyc_status: KycStatus = KycStatus.NOT_STARTED
    credit_score: int = 500
    credit_rating: CreditRating = CreditRating.C
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.account_status == AccountStatus.ACTIVE

    def to_dict(self) -> dict:
        return {
            "borrower_id": str(self.id),
            "external_id": self.external_id,
            "name": self.name,
            "phone": self.phone,
            "account_status": self.account_status.value,
            "kyc_status": self.kyc_status.value,
            "credit_score": self.credit_score,
            "credit_rating": self.credit_rating.value,
            "created_at": self.created_at.isoformat() + "Z",
        }


@dataclass
class KycDocument:
    """An identity document submitted for review."""

    borrower_id: UUID
    document_type: DocumentType
    document_number: Optional[str] = None
    id: UUID = field(default_factory=uuid4)
    status: DocumentStatus = DocumentStatus.PENDING
    rejection_reason: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
