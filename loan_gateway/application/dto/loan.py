"""Data transfer objects for loan operations."""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from loan_gateway.domain.entities import Loan, ScheduleEntry
from loan_gateway.service.lending.amortization import Amortization
from loan_gateway.service.lending.settings import LendingSettings, lending_settings


def _check_amount(amount: Decimal, settings: LendingSettings, field: str) -> List[str]:
    if not (settings.min_loan_amount <= amount <= settings.max_loan_amount):
        return [
            f"{field} must be between {settings.min_loan_amount} "
            f"and {settings.max_loan_amount}"
        ]
    return []


def _check_term(term_weeks: int, settings: LendingSettings) -> List[str]:
    if not (settings.min_term_weeks <= term_weeks <= settings.max_term_weeks):
        return [
            f"term_weeks must be between {settings.min_term_weeks} "
            f"and {settings.max_term_weeks}"
        ]
    return []


def _check_text(value: Optional[str], low: int, high: int, field: str) -> List[str]:
    text = (value or "").strip()
    if not (low <= len(text) <= high):
        return [f"{field} must be between {low} and {high} characters"]
    return []


@dataclass(frozen=True)
class LoanApplicationRequest:
    """Input data for applying for a loan."""
    borrower_id: str
    amount: Decimal
    term_weeks: int
    purpose: str

    def validate(self, settings: LendingSettings = lending_settings) -> List[str]:
        errors = []
        errors += _check_amount(self.amount, settings, "amount")
        errors += _check_term(self.term_weeks, settings)
        errors += _check_text(
            self.purpose,
            settings.min_purpose_length,
            settings.max_purpose_length,
            "purpose",
        )
        return errors


@dataclass(frozen=True)
class ApproveLoanRequest:
    """Admin approval with optional overrides of the applied terms."""
    approved_by: str
    amount: Optional[Decimal] = None
    term_weeks: Optional[int] = None
    interest_rate: Optional[Decimal] = None

    def validate(self, settings: LendingSettings = lending_settings) -> List[str]:
        errors = []

        if not self.approved_by or not self.approved_by.strip():
            errors.append("approved_by is required")

        if self.amount is not None:
            errors += _check_amount(self.amount, settings, "amount")

        if self.term_weeks is not None:
            errors += _check_term(self.term_weeks, settings)

        if self.interest_rate is not None and not (
            settings.min_interest_rate <= self.interest_rate <= settings.max_interest_rate
        ):
            errors.append(
                f"interest_rate must be between {settings.min_interest_rate} "
                f"and {settings.max_interest_rate}"
            )

        return errors


@dataclass(frozen=True)
class RejectLoanRequest:
    """Admin rejection of a pending application."""
    reason: str

    def validate(self, settings: LendingSettings = lending_settings) -> List[str]:
        return _check_text(
            self.reason,
            settings.min_rejection_reason_length,
            settings.max_rejection_reason_length,
            "reason",
        )


@dataclass(frozen=True)
class DefaultLoanRequest:
    """External signal that a loan will not be repaid."""
    reason: str

    def validate(self) -> List[str]:
        if not self.reason or not self.reason.strip():
            return ["reason is required"]
        return []


@dataclass(frozen=True)
class LoanResponse:
    """Response data for a loan."""

    loan_id: str
    borrower_id: str
    principal: Decimal
    interest_rate: Decimal
    term_weeks: int
    interest_amount: Decimal
    total_repayment: Decimal
    weekly_payment: Decimal
    amount_paid: Decimal
    outstanding_balance: Decimal
    status: str
    purpose: str
    approved_by: Optional[str]
    approved_at: Optional[str]
    start_date: Optional[str]
    end_date: Optional[str]
    disbursed_at: Optional[str]
    rejection_reason: Optional[str]
    defaulted_at: Optional[str]
    created_at: str

    @classmethod
    def from_entity(cls, loan: Loan) -> "LoanResponse":
        def stamp(value) -> Optional[str]:
            return value.isoformat() + "Z" if value else None

        return cls(
            loan_id=str(loan.id),
            borrower_id=str(loan.borrower_id),
            principal=loan.principal,
            interest_rate=loan.interest_rate,
            term_weeks=loan.term_weeks,
            interest_amount=loan.interest_amount,
            total_repayment=loan.total_repayment,
            weekly_payment=loan.weekly_payment,
            amount_paid=loan.amount_paid,
            outstanding_balance=loan.outstanding_balance,
            status=loan.status.value,
            purpose=loan.purpose,
            approved_by=loan.approved_by,
            approved_at=stamp(loan.approved_at),
            start_date=loan.start_date.isoformat() if loan.start_date else None,
            end_date=loan.end_date.isoformat() if loan.end_date else None,
            disbursed_at=stamp(loan.disbursed_at),
            rejection_reason=loan.rejection_reason,
            defaulted_at=stamp(loan.defaulted_at),
            created_at=stamp(loan.created_at),
        )


@dataclass(frozen=True)
class LoanApplicationResponse:
    """A newly created application and its preview amortization."""

    loan: LoanResponse
    calculations: dict

    @classmethod
    def from_entities(cls, loan: Loan, amortization: Amortization) -> "LoanApplicationResponse":
        return cls(loan=LoanResponse.from_entity(loan), calculations=amortization.to_dict())


@dataclass(frozen=True)
class ScheduleEntryDTO:
    """Single installment within a schedule response."""
    entry_id: str
    week_number: int
    due_date: str
    amount_due: Decimal
    amount_paid: Decimal
    status: str
    paid_at: Optional[str]


@dataclass(frozen=True)
class LoanScheduleResponse:
    """A loan's repayment schedule ordered by week."""

    loan_id: str
    total_repayment: Decimal
    entries: List[ScheduleEntryDTO]

    @classmethod
    def from_entities(cls, loan: Loan, entries: List[ScheduleEntry]) -> "LoanScheduleResponse":
        return cls(
            loan_id=str(loan.id),
            total_repayment=loan.total_repayment,
            entries=[
                ScheduleEntryDTO(
                    entry_id=str(e.id),
                    week_number=e.week_number,
                    due_date=e.due_date.isoformat(),
                    amount_due=e.amount_due,
                    amount_paid=e.amount_paid,
                    status=e.status.value,
                    paid_at=e.paid_at.isoformat() + "Z" if e.paid_at else None,
                )
                for e in sorted(entries, key=lambda e: e.week_number)
            ],
        )


@dataclass(frozen=True)
class LoanListResponse:
    """One page of loans."""

    loans: List[LoanResponse]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0
