"""Payment entities."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Optional
from uuid import UUID, uuid4

from loan_gateway.domain.exceptions import InvalidPaymentTransitionException
from loan_gateway.utils.date_utils import utcnow
from loan_gateway.utils.money import ZERO


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.SUCCESS, PaymentStatus.FAILED}),
    PaymentStatus.SUCCESS: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}


class PaymentMethod(str, Enum):
    WAVE = "WAVE"
    ORANGE_MONEY = "ORANGE_MONEY"
    MTN_MOMO = "MTN_MOMO"
    BANK_TRANSFER = "BANK_TRANSFER"
    CARD = "CARD"
    CASH = "CASH"


@dataclass
class Payment:
    """A repayment against a loan."""

    loan_id: UUID
    borrower_id: UUID
    amount: Decimal
    method: PaymentMethod
    id: UUID = field(default_factory=uuid4)
    status: PaymentStatus = PaymentStatus.PENDING
    schedule_entry_id: Optional[UUID] = None
    reference: Optional[str] = None
    provider_reference: Optional[str] = None
    failure_reason: Optional[str] = None
    unallocated_amount: Decimal = ZERO
    processed_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def settled_at(self) -> datetime:
        """When the payment settled, falling back to when it was initiated."""
        return self.processed_at or self.created_at

    def transition_to(self, target: PaymentStatus) -> None:
        """Move to ``target`` or raise if the transition table forbids it."""
        if target not in PAYMENT_TRANSITIONS[self.status]:
            raise InvalidPaymentTransitionException(
                payment_id=str(self.id),
                current_status=self.status.value,
                target_status=target.value,
            )
        self.status = target


@dataclass(frozen=True)
class PaymentAllocation:
    """The share of a payment applied to one schedule entry."""

    payment_id: UUID
    schedule_entry_id: UUID
    amount: Decimal
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
