"""
Credit Score Calculation for the Driver Loan Gateway.

This module combines the five component sub-scores into the weighted
0-1000 credit score, maps it to a letter rating and resolves the loan
terms attached to that rating.

This is the main entry point for the scoring module.
"""

from decimal import ROUND_HALF_UP, Decimal

from loan_gateway.domain.entities import CreditRating, CreditScore, ScoreBreakdown

from .components import (
    score_account_age_from,
    score_driving_performance,
    score_kyc_completeness,
    score_loan_utilization,
    score_payment_history,
)
from .models import BorrowerHistory
from .settings import ScoringSettings, scoring_settings


def combine_components(
    breakdown: ScoreBreakdown,
    settings: ScoringSettings = scoring_settings,
) -> int:
    """
    Weight the component sub-scores into a total.

    Args:
        breakdown: The five 0-1000 component sub-scores
        settings: Scoring settings (uses defaults if not provided)

    Returns:
        Weighted total rounded half-up, clamped to 0-1000
    """
    weights = settings.weights
    total = sum(
        (
            weights[name] * Decimal(value)
            for name, value in breakdown.to_dict().items()
        ),
        Decimal("0"),
    )
    score = int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(0, min(1000, score))


def score_to_rating(
    score: int,
    settings: ScoringSettings = scoring_settings,
) -> CreditRating:
    """
    Map a total score to its letter rating.

    Thresholds are lower bounds checked from the best rating down; anything
    below the last threshold is E.
    """
    for min_score, rating in settings.rating_thresholds:
        if score >= min_score:
            return CreditRating(rating)
    return CreditRating.E


def max_loan_amount_for(
    rating: CreditRating,
    settings: ScoringSettings = scoring_settings,
) -> Decimal:
    """Largest principal a borrower with ``rating`` may borrow."""
    return settings.rating_terms[rating.value][0]


def interest_rate_for(
    rating: CreditRating,
    settings: ScoringSettings = scoring_settings,
) -> Decimal:
    """Annual interest rate (percent) offered to ``rating``."""
    return settings.rating_terms[rating.value][1]


def calculate_credit_score(
    history: BorrowerHistory,
    settings: ScoringSettings = scoring_settings,
) -> CreditScore:
    """
    Compute a borrower's credit score from their history.

    The computation is pure: the same history always yields the same
    score, so recalculating twice only records the same value twice.

    Args:
        history: Normalized borrower history
        settings: Scoring settings (uses defaults if not provided)

    Returns:
        CreditScore with the total, the rating and the component breakdown
    """
    breakdown = ScoreBreakdown(
        payment_history=score_payment_history(history.payments, settings),
        loan_utilization=score_loan_utilization(history.active_loans, settings),
        account_age=score_account_age_from(history.created_at, history.as_of, settings),
        driving_performance=score_driving_performance(history.performance, settings),
        kyc_completeness=score_kyc_completeness(history.kyc_documents, settings),
    )

    score = combine_components(breakdown, settings)

    return CreditScore(
        score=score,
        rating=score_to_rating(score, settings),
        breakdown=breakdown,
    )


def explain_credit_score(credit_score: CreditScore) -> str:
    """
    Generate a human-readable summary of a credit score.

    Used for logging and support tooling.
    """
    breakdown = credit_score.breakdown
    lines = [
        f"Credit Score: {credit_score.score}/1000 (rating {credit_score.rating.value})",
        "",
        "Components:",
        f"  - Payment history: {breakdown.payment_history}",
        f"  - Loan utilization: {breakdown.loan_utilization}",
        f"  - Account age: {breakdown.account_age}",
        f"  - Driving performance: {breakdown.driving_performance}",
        f"  - KYC completeness: {breakdown.kyc_completeness}",
    ]
    return "\n".join(lines)
