"""
Loan eligibility evaluation.

Every rule is checked on every call and each failing rule contributes a
reason, so a borrower learns everything standing between them and a loan
at once.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence

from loan_gateway.domain.entities import (
    Borrower,
    CreditRating,
    KycStatus,
    Loan,
    LoanStatus,
)
from loan_gateway.service.scoring.credit_score import interest_rate_for, max_loan_amount_for
from loan_gateway.service.scoring.settings import ScoringSettings, scoring_settings
from loan_gateway.utils.date_utils import days_since, utcnow

from .settings import LendingSettings, lending_settings


@dataclass(frozen=True)
class EligibilityResult:
    """
    Outcome of an eligibility check.

    Attributes:
        eligible: True when no rule failed
        reasons: Every failing rule, in evaluation order
        max_loan_amount: Largest principal the rating allows (0 for E)
        interest_rate: Annual rate for the rating, None when the rating lends nothing
        credit_score: Borrower's current score
        credit_rating: Borrower's current rating
        kyc_status: Borrower's KYC status
        active_loans: Number of ACTIVE loans
    """

    eligible: bool
    max_loan_amount: Decimal
    interest_rate: Optional[Decimal]
    credit_score: int
    credit_rating: CreditRating
    kyc_status: KycStatus
    active_loans: int
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "eligible": self.eligible,
            "reasons": list(self.reasons),
            "max_loan_amount": str(self.max_loan_amount),
            "interest_rate": str(self.interest_rate) if self.interest_rate is not None else None,
            "credit_score": self.credit_score,
            "credit_rating": self.credit_rating.value,
            "kyc_status": self.kyc_status.value,
            "active_loans": self.active_loans,
        }


def has_disqualifying_default(
    loans: Sequence[Loan],
    as_of: Optional[date] = None,
    lookback_days: Optional[int] = None,
) -> bool:
    """
    Whether any loan default still counts against the borrower.

    With no look-back window every default counts forever. With one, only
    defaults recorded within the last ``lookback_days`` days count; a
    default without a timestamp always counts.
    """
    defaulted = [loan for loan in loans if loan.status == LoanStatus.DEFAULTED]
    if not defaulted:
        return False
    if lookback_days is None:
        return True

    cutoff = (as_of or utcnow().date()) - timedelta(days=lookback_days)
    return any(
        loan.defaulted_at is None or loan.defaulted_at.date() > cutoff
        for loan in defaulted
    )


def evaluate_eligibility(
    borrower: Borrower,
    loans: Sequence[Loan],
    as_of: Optional[date] = None,
    settings: LendingSettings = lending_settings,
    scoring: ScoringSettings = scoring_settings,
) -> EligibilityResult:
    """
    Evaluate a borrower against the lending policy.

    Args:
        borrower: Borrower with a current score and rating
        loans: All of the borrower's loans
        as_of: Reference date (default: today UTC)
        settings: Lending settings (uses defaults if not provided)
        scoring: Scoring settings holding the rating terms

    Returns:
        EligibilityResult carrying every failing reason
    """
    reasons: List[str] = []

    if borrower.kyc_status != KycStatus.VERIFIED:
        reasons.append("KYC verification required")

    if borrower.credit_score < settings.min_credit_score:
        reasons.append(
            f"Credit score too low (minimum {settings.min_credit_score} required)"
        )

    account_age_days = days_since(borrower.created_at, as_of)
    if account_age_days < settings.min_account_age_days:
        reasons.append(
            f"Account must be at least {settings.min_account_age_days} days old "
            f"(current: {account_age_days} days)"
        )

    active_loans = sum(1 for loan in loans if loan.status == LoanStatus.ACTIVE)
    if active_loans >= settings.max_active_loans:
        reasons.append("Maximum active loans limit reached")

    if has_disqualifying_default(loans, as_of, settings.default_lookback_days):
        reasons.append("Cannot apply with defaulted loans")

    if not borrower.is_active:
        reasons.append("Account is suspended or deleted")

    max_amount = max_loan_amount_for(borrower.credit_rating, scoring)
    rate = interest_rate_for(borrower.credit_rating, scoring) if max_amount > 0 else None

    return EligibilityResult(
        eligible=not reasons,
        reasons=reasons,
        max_loan_amount=max_amount,
        interest_rate=rate,
        credit_score=borrower.credit_score,
        credit_rating=borrower.credit_rating,
        kyc_status=borrower.kyc_status,
        active_loans=active_loans,
    )
