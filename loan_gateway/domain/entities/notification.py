"""Notification intents emitted by the engine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from loan_gateway.utils.date_utils import utcnow


class NotificationType(str, Enum):
    """Types of notification intents."""

    LOAN_APPROVED = "loan_approved"
    LOAN_REJECTED = "loan_rejected"
    LOAN_DISBURSED = "loan_disbursed"
    KYC_APPROVED = "kyc_approved"
    KYC_REJECTED = "kyc_rejected"
    CREDIT_SCORE_CHANGED = "credit_score_changed"
    PAYMENT_SUCCESS = "payment_success"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_REFUNDED = "payment_refunded"


@dataclass(frozen=True)
class NotificationIntent:
    """
    A request to tell a borrower about an event.

    Carries structured data only; rendering the message is left to the
    delivery layer.
    """

    borrower_id: UUID
    type: NotificationType
    data: dict[str, Any]
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "event": self.type.value,
            "borrower_id": str(self.borrower_id),
            "data": self.data,
            "created_at": self.created_at.isoformat() + "Z",
        }
