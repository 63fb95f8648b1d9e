"""
Payment allocation against a repayment schedule.

A successful payment is spread over the loan's open installments, oldest
week first. Each share is recorded as a PaymentAllocation so a refund can
undo exactly what the payment did.

These functions mutate the entities handed to them and perform no I/O;
persisting the result is the caller's job.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from loan_gateway.domain.entities import (
    Loan,
    LoanStatus,
    PaymentAllocation,
    ScheduleEntry,
    ScheduleEntryStatus,
)
from loan_gateway.domain.entities.loan import REFUND_REOPENS
from loan_gateway.utils.money import ZERO


@dataclass
class AllocationResult:
    """
    Outcome of spreading one payment over a schedule.

    Attributes:
        allocations: One row per touched entry, in allocation order
        touched: Entries whose paid amount changed
        unallocated: Part of the payment no open entry could absorb
    """

    allocations: List[PaymentAllocation] = field(default_factory=list)
    touched: List[ScheduleEntry] = field(default_factory=list)
    unallocated: Decimal = ZERO

    @property
    def first_entry_id(self) -> Optional[UUID]:
        return self.allocations[0].schedule_entry_id if self.allocations else None

    @property
    def allocated(self) -> Decimal:
        return sum((a.amount for a in self.allocations), ZERO)


def open_entries(entries: Sequence[ScheduleEntry]) -> List[ScheduleEntry]:
    """Entries still owing money, ascending by week."""
    return sorted(
        (e for e in entries if e.status.is_open),
        key=lambda e: e.week_number,
    )


def allocate_payment(
    payment_id: UUID,
    amount: Decimal,
    entries: Sequence[ScheduleEntry],
    paid_at: datetime,
) -> AllocationResult:
    """
    Apply ``amount`` to open entries oldest first.

    Each entry receives ``min(remaining, outstanding)``; a fully covered
    entry becomes PAID with ``paid_at`` set, otherwise PARTIAL. Allocation
    stops when the amount is exhausted or no open entry remains.

    Args:
        payment_id: Payment being applied
        amount: Positive payment amount
        entries: The loan's schedule, in any order
        paid_at: Settlement time stamped on entries that become PAID

    Returns:
        AllocationResult; the allocated amounts plus ``unallocated`` always
        equal ``amount``
    """
    if amount <= 0:
        raise ValueError(f"payment amount must be positive, got {amount}")

    result = AllocationResult()
    remaining = amount

    for entry in open_entries(entries):
        if remaining <= 0:
            break

        outstanding = entry.outstanding
        if outstanding <= 0:
            continue

        share = min(remaining, outstanding)
        entry.amount_paid += share
        remaining -= share

        if entry.amount_paid >= entry.amount_due:
            entry.status = ScheduleEntryStatus.PAID
            entry.paid_at = paid_at
        else:
            entry.status = ScheduleEntryStatus.PARTIAL

        result.touched.append(entry)
        result.allocations.append(
            PaymentAllocation(
                payment_id=payment_id,
                schedule_entry_id=entry.id,
                amount=share,
            )
        )

    result.unallocated = remaining
    return result


def reverse_allocations(
    allocations: Sequence[PaymentAllocation],
    entries: Sequence[ScheduleEntry],
) -> List[ScheduleEntry]:
    """
    Undo a payment's allocations, latest week first.

    Each entry gives back exactly what the payment put in. An entry left
    with nothing paid returns to PENDING, otherwise PARTIAL; ``paid_at`` is
    cleared either way.

    Returns:
        The entries that changed
    """
    by_id: Dict[UUID, ScheduleEntry] = {e.id: e for e in entries}
    ordered = sorted(
        (a for a in allocations if a.schedule_entry_id in by_id),
        key=lambda a: by_id[a.schedule_entry_id].week_number,
        reverse=True,
    )

    touched: List[ScheduleEntry] = []
    for allocation in ordered:
        entry = by_id[allocation.schedule_entry_id]
        entry.amount_paid = max(ZERO, entry.amount_paid - allocation.amount)
        entry.status = (
            ScheduleEntryStatus.PENDING
            if entry.amount_paid <= 0
            else ScheduleEntryStatus.PARTIAL
        )
        entry.paid_at = None
        touched.append(entry)

    return touched


def credit_loan(loan: Loan, amount: Decimal) -> bool:
    """
    Add a payment to the loan aggregate.

    Returns:
        True when this payment completed the loan
    """
    loan.amount_paid += amount
    if loan.amount_paid >= loan.total_repayment and loan.status == LoanStatus.ACTIVE:
        loan.transition_to(LoanStatus.COMPLETED)
        return True
    return False


def debit_loan(loan: Loan, amount: Decimal) -> bool:
    """
    Remove a refunded payment from the loan aggregate.

    A loan the payment had completed goes back to being repaid.

    Returns:
        True when the loan was reopened
    """
    loan.amount_paid = max(ZERO, loan.amount_paid - amount)
    if loan.amount_paid >= loan.total_repayment:
        return False

    reopened = REFUND_REOPENS.get(loan.status)
    if reopened is None:
        return False

    loan.status = reopened
    return True
