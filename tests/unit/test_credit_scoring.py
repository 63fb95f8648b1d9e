"""
Unit Tests for the Driver Credit Scoring Module.

These tests verify:
1. Each component calculator and its band boundaries
2. Weighting of the components into the 0-1000 total
3. Rating thresholds and the loan terms attached to each rating
4. Scoring settings validation

Test Categories:
- test_payment_*: Payment history classification and scoring
- test_utilization_*: Loan utilization scoring
- test_account_age_*: Account tenure scoring
- test_driving_*: Telemetry-based scoring
- test_kyc_*: KYC completeness scoring
- test_combine_* / test_rating_*: Weighted total and rating mapping
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from loan_gateway.domain.entities import (
    CreditRating,
    DocumentStatus,
    DocumentType,
    DriverPerformance,
    ScoreBreakdown,
)
from loan_gateway.service.scoring import (
    BorrowerHistory,
    KycDocumentSummary,
    LoanBalance,
    ScoringSettings,
    SettledPayment,
    calculate_credit_score,
    calculate_utilization_pct,
    classify_payments,
    combine_components,
    explain_credit_score,
    interest_rate_for,
    max_loan_amount_for,
    score_account_age,
    score_driving_performance,
    score_kyc_completeness,
    score_loan_utilization,
    score_payment_history,
    score_to_rating,
)


# =============================================================================
# Test Fixtures
# =============================================================================

DUE = date(2024, 3, 1)


def make_payment(days_late: int, succeeded: bool = True) -> SettledPayment:
    """Helper to create a settled payment relative to a fixed due date."""
    return SettledPayment(
        succeeded=succeeded,
        settled_on=DUE + timedelta(days=days_late),
        due_date=DUE,
    )


def make_doc(doc_type: DocumentType, status: DocumentStatus = DocumentStatus.APPROVED):
    return KycDocumentSummary(document_type=doc_type, status=status)


# =============================================================================
# Payment History
# =============================================================================

class TestPaymentHistory:

    def test_payment_classification_boundaries(self):
        """Early and on the day are on time; up to 7 days is late; beyond is missed."""
        payments = [
            make_payment(-2),
            make_payment(0),
            make_payment(1),
            make_payment(7),
            make_payment(8),
            make_payment(-5, succeeded=False),
        ]

        assert classify_payments(payments) == (2, 2, 2)

    def test_payment_history_19_on_time_1_late(self):
        """95% on time lands in the 900 band."""
        payments = [make_payment(0) for _ in range(19)] + [make_payment(3)]

        assert score_payment_history(payments) == 900

    def test_payment_history_all_on_time(self):
        payments = [make_payment(-1) for _ in range(5)]

        assert score_payment_history(payments) == 1000

    def test_payment_history_no_payments_is_neutral(self):
        assert score_payment_history([]) == 500

    def test_payment_history_floor(self):
        """Below 70% on time gets the floor score."""
        payments = [make_payment(0)] + [make_payment(30) for _ in range(3)]

        assert score_payment_history(payments) == 200

    @pytest.mark.parametrize(
        "on_time,missed,expected",
        [
            (9, 1, 800),   # 90%
            (8, 2, 600),   # 80%
            (7, 3, 400),   # 70%
            (69, 31, 200),  # 69%
        ],
    )
    def test_payment_history_bands(self, on_time, missed, expected):
        payments = (
            [make_payment(0) for _ in range(on_time)]
            + [make_payment(0, succeeded=False) for _ in range(missed)]
        )

        assert score_payment_history(payments) == expected


# =============================================================================
# Loan Utilization
# =============================================================================

class TestLoanUtilization:

    def test_utilization_no_active_loans(self):
        assert score_loan_utilization([]) == 800

    def test_utilization_mostly_repaid(self):
        loans = [LoanBalance(principal=Decimal("100000"), amount_paid=Decimal("80000"))]

        assert calculate_utilization_pct(loans) == Decimal("20")
        assert score_loan_utilization(loans) == 1000

    def test_utilization_nothing_repaid(self):
        loans = [LoanBalance(principal=Decimal("100000"), amount_paid=Decimal("0"))]

        assert score_loan_utilization(loans) == 400

    def test_utilization_across_loans(self):
        """Utilization is computed over the sum of all active loans."""
        loans = [
            LoanBalance(principal=Decimal("100000"), amount_paid=Decimal("100000")),
            LoanBalance(principal=Decimal("100000"), amount_paid=Decimal("0")),
        ]

        assert calculate_utilization_pct(loans) == Decimal("50")
        assert score_loan_utilization(loans) == 800

    def test_utilization_overpaid_loan_scores_best_band(self):
        loans = [LoanBalance(principal=Decimal("100000"), amount_paid=Decimal("120000"))]

        assert calculate_utilization_pct(loans) < 0
        assert score_loan_utilization(loans) == 1000


# =============================================================================
# Account Age
# =============================================================================

class TestAccountAge:

    @pytest.mark.parametrize(
        "days,expected",
        [
            (0, 200),
            (89, 200),
            (90, 400),
            (180, 600),
            (364, 600),
            (365, 800),
            (730, 1000),
            (2000, 1000),
        ],
    )
    def test_account_age_bands(self, days, expected):
        assert score_account_age(days) == expected


# =============================================================================
# Driving Performance
# =============================================================================

class TestDrivingPerformance:

    def test_driving_no_telemetry_is_neutral(self):
        assert score_driving_performance(None) == 500

    def test_driving_strong_driver(self):
        performance = DriverPerformance(
            driver_id="drv_1",
            average_rating=4.7,
            acceptance_rate=0.93,
            total_trips=450,
            completed_trips=420,
        )

        # 350 (rating) + 250 (acceptance) + 250 (completion)
        assert score_driving_performance(performance) == 850

    def test_driving_top_driver_capped(self):
        performance = DriverPerformance(
            driver_id="drv_2",
            average_rating=4.9,
            acceptance_rate=0.99,
            total_trips=100,
            completed_trips=100,
        )

        assert score_driving_performance(performance) == 1000

    def test_driving_no_trips(self):
        """A driver with no trips still gets the lowest band for completion."""
        performance = DriverPerformance(
            driver_id="drv_3",
            average_rating=3.0,
            acceptance_rate=0.5,
            total_trips=0,
            completed_trips=0,
        )

        assert performance.completion_rate == 0.0
        assert score_driving_performance(performance) == 150


# =============================================================================
# KYC Completeness
# =============================================================================

class TestKycCompleteness:

    def test_kyc_full_set(self):
        documents = [
            make_doc(DocumentType.ID_CARD),
            make_doc(DocumentType.DRIVERS_LICENSE),
            make_doc(DocumentType.SELFIE),
        ]

        assert score_kyc_completeness(documents) == 1000

    def test_kyc_passport_counts_as_identity(self):
        documents = [
            make_doc(DocumentType.PASSPORT),
            make_doc(DocumentType.DRIVERS_LICENSE),
        ]

        assert score_kyc_completeness(documents) == 700

    def test_kyc_identity_only(self):
        assert score_kyc_completeness([make_doc(DocumentType.ID_CARD)]) == 600

    def test_kyc_pending_only(self):
        documents = [make_doc(DocumentType.SELFIE, DocumentStatus.PENDING)]

        assert score_kyc_completeness(documents) == 300

    def test_kyc_rejected_documents_score_nothing(self):
        documents = [make_doc(DocumentType.ID_CARD, DocumentStatus.REJECTED)]

        assert score_kyc_completeness(documents) == 0

    def test_kyc_no_documents(self):
        assert score_kyc_completeness([]) == 0


# =============================================================================
# Weighted Total and Rating
# =============================================================================

class TestCreditScore:

    def test_combine_all_max(self):
        breakdown = ScoreBreakdown(
            payment_history=1000,
            loan_utilization=1000,
            account_age=1000,
            driving_performance=1000,
            kyc_completeness=1000,
        )

        assert combine_components(breakdown) == 1000

    def test_combine_applies_weights(self):
        breakdown = ScoreBreakdown(
            payment_history=900,
            loan_utilization=800,
            account_age=200,
            driving_performance=500,
            kyc_completeness=0,
        )

        # 315 + 240 + 30 + 50 + 0
        assert combine_components(breakdown) == 635

    def test_combine_rounds_half_up(self):
        breakdown = ScoreBreakdown(
            payment_history=1,
            loan_utilization=0,
            account_age=0,
            driving_performance=0,
            kyc_completeness=5,
        )

        # 0.35 + 0.5 = 0.85
        assert combine_components(breakdown) == 1

    @pytest.mark.parametrize(
        "score,rating",
        [
            (1000, CreditRating.A),
            (800, CreditRating.A),
            (799, CreditRating.B),
            (650, CreditRating.B),
            (649, CreditRating.C),
            (500, CreditRating.C),
            (499, CreditRating.D),
            (350, CreditRating.D),
            (349, CreditRating.E),
            (0, CreditRating.E),
        ],
    )
    def test_rating_thresholds(self, score, rating):
        assert score_to_rating(score) == rating

    def test_rating_is_monotonic(self):
        order = ["E", "D", "C", "B", "A"]
        ranks = [order.index(score_to_rating(score).value) for score in range(0, 1001)]

        assert ranks == sorted(ranks)

    def test_rating_terms(self):
        assert max_loan_amount_for(CreditRating.A) == Decimal("2000000")
        assert interest_rate_for(CreditRating.A) == Decimal("12.0")
        assert max_loan_amount_for(CreditRating.C) == Decimal("1000000")
        assert interest_rate_for(CreditRating.D) == Decimal("24.0")
        assert max_loan_amount_for(CreditRating.E) == Decimal("0")

    def test_new_unverified_driver(self):
        """A driver who just registered with no history lands in D."""
        today = date(2024, 6, 1)
        history = BorrowerHistory(
            created_at=datetime(2024, 6, 1, 9, 0),
            as_of=today,
        )

        result = calculate_credit_score(history)

        assert result.breakdown.payment_history == 500
        assert result.breakdown.loan_utilization == 800
        assert result.breakdown.account_age == 200
        assert result.breakdown.driving_performance == 500
        assert result.breakdown.kyc_completeness == 0
        assert result.score == 495
        assert result.rating == CreditRating.D

    def test_established_driver(self):
        today = date(2024, 6, 1)
        history = BorrowerHistory(
            created_at=datetime(2022, 1, 1),
            payments=[make_payment(0) for _ in range(20)],
            active_loans=[LoanBalance(Decimal("500000"), Decimal("400000"))],
            kyc_documents=[
                make_doc(DocumentType.ID_CARD),
                make_doc(DocumentType.DRIVERS_LICENSE),
                make_doc(DocumentType.SELFIE),
            ],
            performance=DriverPerformance("drv", 4.9, 0.99, 100, 100),
            as_of=today,
        )

        result = calculate_credit_score(history)

        assert result.score == 1000
        assert result.rating == CreditRating.A

    def test_score_is_deterministic(self):
        history = BorrowerHistory(
            created_at=datetime(2023, 1, 1),
            payments=[make_payment(0), make_payment(10)],
            as_of=date(2024, 1, 1),
        )

        assert calculate_credit_score(history) == calculate_credit_score(history)

    def test_explain_credit_score(self):
        history = BorrowerHistory(created_at=datetime(2024, 1, 1), as_of=date(2024, 1, 1))

        text = explain_credit_score(calculate_credit_score(history))

        assert "Credit Score: 495/1000 (rating D)" in text
        assert "Payment history: 500" in text


# =============================================================================
# Settings
# =============================================================================

class TestScoringSettings:

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError):
            ScoringSettings(weight_payment_history=0.5)

    def test_bands_must_be_valid_json(self):
        with pytest.raises(ValidationError):
            ScoringSettings(account_age_bands_json="not json")

    def test_rating_thresholds_must_descend(self):
        with pytest.raises(ValidationError):
            ScoringSettings(rating_thresholds_json='[[500,"A"],[650,"B"]]')

    def test_custom_settings_change_scores(self):
        custom = ScoringSettings(neutral_driving_score=400)

        assert score_driving_performance(None, custom) == 400
