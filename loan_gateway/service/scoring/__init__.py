"""
Credit Scoring Module for the Driver Loan Gateway
"""

from .models import BorrowerHistory, KycDocumentSummary, LoanBalance, SettledPayment
from .settings import ScoringSettings, scoring_settings
from .components import (
    calculate_utilization_pct,
    classify_payments,
    score_account_age,
    score_account_age_from,
    score_driving_performance,
    score_kyc_completeness,
    score_loan_utilization,
    score_payment_history,
)
from .credit_score import (
    calculate_credit_score,
    combine_components,
    explain_credit_score,
    interest_rate_for,
    max_loan_amount_for,
    score_to_rating,
)

__all__ = [
    # Settings
    "ScoringSettings",
    "scoring_settings",
    # Models
    "BorrowerHistory",
    "KycDocumentSummary",
    "LoanBalance",
    "SettledPayment",
    # Components
    "calculate_utilization_pct",
    "classify_payments",
    "score_account_age",
    "score_account_age_from",
    "score_driving_performance",
    "score_kyc_completeness",
    "score_loan_utilization",
    "score_payment_history",
    # Credit Score
    "calculate_credit_score",
    "combine_components",
    "explain_credit_score",
    "interest_rate_for",
    "max_loan_amount_for",
    "score_to_rating",
]
