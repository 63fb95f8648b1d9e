"""Loan and repayment schedule entities."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Optional
from uuid import UUID, uuid4

from loan_gateway.domain.exceptions import InvalidLoanTransitionException
from loan_gateway.utils.date_utils import utcnow
from loan_gateway.utils.money import ZERO


class LoanStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    DEFAULTED = "DEFAULTED"

    @property
    def is_terminal(self) -> bool:
        return not LOAN_TRANSITIONS[self]


# Every permitted loan transition. Anything absent is rejected.
LOAN_TRANSITIONS: Dict[LoanStatus, FrozenSet[LoanStatus]] = {
    LoanStatus.PENDING: frozenset({LoanStatus.APPROVED, LoanStatus.REJECTED}),
    LoanStatus.APPROVED: frozenset({LoanStatus.ACTIVE}),
    LoanStatus.ACTIVE: frozenset({LoanStatus.COMPLETED, LoanStatus.DEFAULTED}),
    LoanStatus.REJECTED: frozenset(),
    LoanStatus.COMPLETED: frozenset(),
    LoanStatus.DEFAULTED: frozenset(),
}

# A refund may reopen a loan that the refunded payment had completed.
REFUND_REOPENS: Dict[LoanStatus, LoanStatus] = {
    LoanStatus.COMPLETED: LoanStatus.ACTIVE,
}


class ScheduleEntryStatus(str, Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"

    @property
    def is_open(self) -> bool:
        return self != ScheduleEntryStatus.PAID


@dataclass
class ScheduleEntry:
    """One weekly installment obligation of a loan."""

    loan_id: UUID
    week_number: int
    due_date: date
    amount_due: Decimal
    id: UUID = field(default_factory=uuid4)
    amount_paid: Decimal = ZERO
    status: ScheduleEntryStatus = ScheduleEntryStatus.PENDING
    paid_at: Optional[datetime] = None

    @property
    def outstanding(self) -> Decimal:
        return self.amount_due - self.amount_paid


@dataclass
class Loan:
    """
    A microloan and its lifecycle state.

    ``total_repayment`` and ``weekly_payment`` are fixed at approval;
    ``amount_paid`` only moves through payment allocation and refunds.
    """

    borrower_id: UUID
    principal: Decimal
    interest_rate: Decimal
    term_weeks: int
    total_repayment: Decimal
    weekly_payment: Decimal
    purpose: str
    id: UUID = field(default_factory=uuid4)
    amount_paid: Decimal = ZERO
    status: LoanStatus = LoanStatus.PENDING
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    disbursed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    defaulted_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def outstanding_balance(self) -> Decimal:
        return self.total_repayment - self.amount_paid

    @property
    def interest_amount(self) -> Decimal:
        return self.total_repayment - self.principal

    def can_transition_to(self, target: LoanStatus) -> bool:
        return target in LOAN_TRANSITIONS[self.status]

    def transition_to(self, target: LoanStatus) -> None:
        """Move to ``target`` or raise if the transition table forbids it."""
        if not self.can_transition_to(target):
            raise InvalidLoanTransitionException(
                loan_id=str(self.id),
                current_status=self.status.value,
                target_status=target.value,
            )
        self.status = target
