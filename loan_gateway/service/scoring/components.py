"""
Credit Score Components.

Five independent calculators, each mapping part of a borrower's history to
a 0-1000 sub-score:

- payment history: share of schedule-linked payments made on time
- loan utilization: outstanding share of active loan principal
- account age: days since registration
- driving performance: fleet telemetry rating, acceptance and completion
- KYC completeness: which identity documents have been approved
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from loan_gateway.domain.entities import DocumentStatus, DocumentType, DriverPerformance
from loan_gateway.utils.date_utils import days_since

from .models import KycDocumentSummary, LoanBalance, SettledPayment
from .settings import ScoringSettings, scoring_settings


def _score_at_least(
    value: float,
    bands: Sequence[Tuple[float, int]],
    default: int,
) -> int:
    """Return the score of the first band whose threshold ``value`` reaches."""
    for threshold, score in sorted(bands, key=lambda band: band[0], reverse=True):
        if value >= threshold:
            return score
    return default


def _score_at_most(
    value: float,
    bands: Sequence[Tuple[float, int]],
    default: int,
) -> int:
    """Return the score of the first band whose threshold ``value`` stays within."""
    for threshold, score in sorted(bands, key=lambda band: band[0]):
        if value <= threshold:
            return score
    return default


def classify_payments(
    payments: Iterable[SettledPayment],
    grace_days: int = 7,
) -> Tuple[int, int, int]:
    """
    Split settled payments into on-time, late and missed counts.

    A success on or before the due date is on time, up to ``grace_days``
    after it is late, and anything later is missed. Failed payments are
    always missed.

    Returns:
        (on_time, late, missed)
    """
    on_time = late = missed = 0

    for payment in payments:
        if not payment.succeeded:
            missed += 1
            continue

        days_late = (payment.settled_on - payment.due_date).days
        if days_late <= 0:
            on_time += 1
        elif days_late <= grace_days:
            late += 1
        else:
            missed += 1

    return on_time, late, missed


def score_payment_history(
    payments: List[SettledPayment],
    settings: ScoringSettings = scoring_settings,
) -> int:
    """
    Score payment punctuality (0-1000).

    Args:
        payments: Settled payments linked to a schedule entry
        settings: Scoring settings (uses defaults if not provided)

    Returns:
        Score from the on-time percentage band, or the neutral score when
        nothing can be classified yet
    """
    on_time, late, missed = classify_payments(payments, settings.late_payment_grace_days)
    classified = on_time + late + missed

    if classified == 0:
        return settings.payment_history_neutral_score

    on_time_pct = on_time * 100 / classified
    return _score_at_least(
        on_time_pct,
        settings.payment_history_bands,
        settings.payment_history_floor_score,
    )


def calculate_utilization_pct(active_loans: List[LoanBalance]) -> Optional[Decimal]:
    """
    Outstanding principal share across active loans, in percent.

    Returns None when there is nothing to measure. Overpaid loans make the
    result negative; totals above 100 mean the borrower owes more than was
    lent.
    """
    total_principal = sum((loan.principal for loan in active_loans), Decimal("0"))
    if total_principal <= 0:
        return None

    total_paid = sum((loan.amount_paid for loan in active_loans), Decimal("0"))
    return (total_principal - total_paid) / total_principal * 100


def score_loan_utilization(
    active_loans: List[LoanBalance],
    settings: ScoringSettings = scoring_settings,
) -> int:
    """
    Score how much of the borrowed principal is still outstanding (0-1000).

    A borrower with no active loans gets the clean-slate score.
    """
    if not active_loans:
        return settings.utilization_no_active_loans_score

    utilization = calculate_utilization_pct(active_loans)
    if utilization is None:
        return settings.utilization_no_active_loans_score

    return _score_at_most(
        float(utilization),
        settings.utilization_bands,
        settings.utilization_over_leveraged_score,
    )


def score_account_age(
    age_in_days: int,
    settings: ScoringSettings = scoring_settings,
) -> int:
    """Score account tenure in days (0-1000)."""
    return _score_at_least(
        age_in_days,
        settings.account_age_bands,
        settings.account_age_floor_score,
    )


def score_account_age_from(
    created_at,
    as_of: Optional[date] = None,
    settings: ScoringSettings = scoring_settings,
) -> int:
    """Score account tenure from the registration timestamp."""
    return score_account_age(days_since(created_at, as_of), settings)


def score_driving_performance(
    performance: Optional[DriverPerformance],
    settings: ScoringSettings = scoring_settings,
) -> int:
    """
    Score driver performance from telemetry (0-1000).

    Rating, acceptance rate and completion rate each earn points from their
    own band table; the sum is capped at 1000. Missing telemetry yields the
    neutral score.
    """
    if performance is None:
        return settings.neutral_driving_score

    score = (
        _score_at_least(performance.average_rating, settings.driving_rating_bands, 0)
        + _score_at_least(performance.acceptance_rate, settings.driving_acceptance_bands, 0)
        + _score_at_least(performance.completion_rate, settings.driving_completion_bands, 0)
    )

    return min(score, 1000)


def score_kyc_completeness(
    documents: List[KycDocumentSummary],
    settings: ScoringSettings = scoring_settings,
) -> int:
    """
    Score how complete the borrower's verified identity is (0-1000).

    Identity (ID card or passport), driver's license and selfie all
    approved earns the full score; partial sets earn less; a pending
    document with none of those combinations earns a small score.
    """
    if not documents:
        return settings.kyc_none_score

    approved = {
        doc.document_type for doc in documents if doc.status == DocumentStatus.APPROVED
    }
    has_identity = any(doc_type.is_identity for doc_type in approved)
    has_license = DocumentType.DRIVERS_LICENSE in approved
    has_selfie = DocumentType.SELFIE in approved

    if has_identity and has_license and has_selfie:
        return settings.kyc_full_score
    if has_identity and has_license:
        return settings.kyc_id_and_license_score
    if has_identity:
        return settings.kyc_id_only_score
    if any(doc.status == DocumentStatus.PENDING for doc in documents):
        return settings.kyc_pending_score

    return settings.kyc_none_score
