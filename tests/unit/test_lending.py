"""
Unit Tests for the Lending Policy Module.

These tests verify:
1. Eligibility rules report every failing reason at once
2. Amortization figures and rounding
3. Schedule generation sums exactly to the total repayment
4. Payment allocation conserves money and refunds undo it exactly
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from loan_gateway.domain.entities import (
    AccountStatus,
    Borrower,
    CreditRating,
    KycStatus,
    Loan,
    LoanStatus,
    ScheduleEntry,
    ScheduleEntryStatus,
)
from loan_gateway.service.lending import (
    LendingSettings,
    allocate_payment,
    amortize,
    credit_loan,
    debit_loan,
    evaluate_eligibility,
    generate_schedule,
    has_disqualifying_default,
    open_entries,
    reverse_allocations,
)

TODAY = date(2024, 6, 1)


# =============================================================================
# Test Fixtures
# =============================================================================

def make_borrower(**overrides) -> Borrower:
    values = dict(
        external_id="drv_100",
        name="Awa Diop",
        phone="+221770000000",
        kyc_status=KycStatus.VERIFIED,
        credit_score=700,
        credit_rating=CreditRating.B,
        created_at=datetime(2024, 1, 1),
    )
    values.update(overrides)
    return Borrower(**values)


def make_loan(borrower: Borrower, status: LoanStatus = LoanStatus.ACTIVE, **overrides) -> Loan:
    values = dict(
        borrower_id=borrower.id,
        principal=Decimal("500000"),
        interest_rate=Decimal("15"),
        term_weeks=26,
        total_repayment=Decimal("537500.00"),
        weekly_payment=Decimal("20673.08"),
        purpose="Vehicle maintenance",
        status=status,
    )
    values.update(overrides)
    return Loan(**values)


def make_entries(outstanding: list[str], amount_due: str = "1000") -> list[ScheduleEntry]:
    """Entries of ``amount_due`` each, already paid down to ``outstanding``."""
    loan_id = uuid4()
    entries = []
    for week, remaining in enumerate(outstanding, start=1):
        due = Decimal(amount_due)
        paid = due - Decimal(remaining)
        if paid >= due:
            status = ScheduleEntryStatus.PAID
        elif paid > 0:
            status = ScheduleEntryStatus.PARTIAL
        else:
            status = ScheduleEntryStatus.PENDING
        entries.append(
            ScheduleEntry(
                loan_id=loan_id,
                week_number=week,
                due_date=TODAY + timedelta(weeks=week),
                amount_due=due,
                amount_paid=paid,
                status=status,
            )
        )
    return entries


# =============================================================================
# Eligibility
# =============================================================================

class TestEligibility:

    def test_eligible_borrower(self):
        borrower = make_borrower()

        result = evaluate_eligibility(borrower, [], as_of=TODAY)

        assert result.eligible is True
        assert result.reasons == []
        assert result.max_loan_amount == Decimal("1500000")
        assert result.interest_rate == Decimal("15.0")
        assert result.active_loans == 0

    def test_all_failing_reasons_reported(self):
        """KYC, score and account age failures are reported together."""
        borrower = make_borrower(
            kyc_status=KycStatus.PENDING,
            credit_score=300,
            credit_rating=CreditRating.E,
            created_at=datetime(2024, 5, 25),
        )

        result = evaluate_eligibility(borrower, [], as_of=TODAY)

        assert result.eligible is False
        assert result.reasons == [
            "KYC verification required",
            "Credit score too low (minimum 350 required)",
            "Account must be at least 30 days old (current: 7 days)",
        ]
        assert result.max_loan_amount == Decimal("0")
        assert result.interest_rate is None

    def test_active_loan_limit(self):
        borrower = make_borrower()
        loans = [make_loan(borrower, LoanStatus.ACTIVE)]

        result = evaluate_eligibility(borrower, loans, as_of=TODAY)

        assert result.eligible is False
        assert "Maximum active loans limit reached" in result.reasons
        assert result.active_loans == 1

    def test_pending_and_completed_loans_do_not_count_as_active(self):
        borrower = make_borrower()
        loans = [
            make_loan(borrower, LoanStatus.PENDING),
            make_loan(borrower, LoanStatus.COMPLETED),
        ]

        result = evaluate_eligibility(borrower, loans, as_of=TODAY)

        assert result.eligible is True

    def test_default_disqualifies(self):
        borrower = make_borrower()
        loans = [make_loan(borrower, LoanStatus.DEFAULTED, defaulted_at=datetime(2020, 1, 1))]

        result = evaluate_eligibility(borrower, loans, as_of=TODAY)

        assert "Cannot apply with defaulted loans" in result.reasons

    def test_default_lookback_window(self):
        borrower = make_borrower()
        old = make_loan(borrower, LoanStatus.DEFAULTED, defaulted_at=datetime(2023, 1, 1))
        recent = make_loan(borrower, LoanStatus.DEFAULTED, defaulted_at=datetime(2024, 5, 1))

        assert has_disqualifying_default([old], as_of=TODAY) is True
        assert has_disqualifying_default([old], as_of=TODAY, lookback_days=180) is False
        assert has_disqualifying_default([recent], as_of=TODAY, lookback_days=180) is True

    def test_suspended_account(self):
        borrower = make_borrower(account_status=AccountStatus.SUSPENDED)

        result = evaluate_eligibility(borrower, [], as_of=TODAY)

        assert result.reasons == ["Account is suspended or deleted"]

    def test_custom_policy(self):
        borrower = make_borrower(credit_score=400, credit_rating=CreditRating.D)
        strict = LendingSettings(min_credit_score=500)

        result = evaluate_eligibility(borrower, [], as_of=TODAY, settings=strict)

        assert result.reasons == ["Credit score too low (minimum 500 required)"]


# =============================================================================
# Amortization
# =============================================================================

class TestAmortization:

    def test_amortize_reference_loan(self):
        result = amortize(Decimal("500000"), 26, Decimal("15"))

        assert result.interest_amount == Decimal("37500.00")
        assert result.total_repayment == Decimal("537500.00")
        assert result.weekly_payment == Decimal("20673.08")

    def test_amortize_zero_rate(self):
        result = amortize(Decimal("100000"), 4, Decimal("0"))

        assert result.interest_amount == Decimal("0.00")
        assert result.total_repayment == Decimal("100000.00")
        assert result.weekly_payment == Decimal("25000.00")

    def test_amortize_rounds_half_up(self):
        # 100000 * 12% * 1/52 = 230.769...
        result = amortize(Decimal("100000"), 1, Decimal("12"))

        assert result.interest_amount == Decimal("230.77")
        assert result.weekly_payment == Decimal("100230.77")

    def test_amortize_rejects_bad_term(self):
        with pytest.raises(ValueError):
            amortize(Decimal("100000"), 0, Decimal("12"))

    def test_amortize_to_dict_serializes_money_as_strings(self):
        data = amortize(Decimal("500000"), 26, Decimal("15")).to_dict()

        assert data["total_repayment"] == "537500.00"
        assert data["term_weeks"] == 26


# =============================================================================
# Schedule
# =============================================================================

class TestSchedule:

    def test_schedule_last_entry_absorbs_residue(self):
        amortization = amortize(Decimal("500000"), 26, Decimal("15"))
        start = date(2024, 6, 3)

        entries = generate_schedule(
            uuid4(),
            start,
            amortization.term_weeks,
            amortization.weekly_payment,
            amortization.total_repayment,
        )

        assert len(entries) == 26
        assert all(e.amount_due == Decimal("20673.08") for e in entries[:-1])
        assert entries[-1].amount_due == Decimal("20673.00")
        assert sum(e.amount_due for e in entries) == Decimal("537500.00")

    def test_schedule_weekly_due_dates(self):
        start = date(2024, 6, 3)

        entries = generate_schedule(uuid4(), start, 4, Decimal("25000"), Decimal("100000"))

        assert [e.week_number for e in entries] == [1, 2, 3, 4]
        assert entries[0].due_date == date(2024, 6, 10)
        assert entries[3].due_date == date(2024, 7, 1)
        assert all(e.status == ScheduleEntryStatus.PENDING for e in entries)
        assert all(e.amount_paid == Decimal("0") for e in entries)


# =============================================================================
# Allocation
# =============================================================================

class TestAllocation:

    def test_allocation_oldest_first(self):
        """Outstanding [0, 500, 1000] with 700 pays week 2 off and 200 into week 3."""
        entries = make_entries(["0", "500", "1000"])
        paid_at = datetime(2024, 6, 5, 12, 0)

        result = allocate_payment(uuid4(), Decimal("700"), entries, paid_at)

        assert [a.amount for a in result.allocations] == [Decimal("500"), Decimal("200")]
        assert result.first_entry_id == entries[1].id
        assert result.unallocated == Decimal("0")

        assert entries[1].status == ScheduleEntryStatus.PAID
        assert entries[1].paid_at == paid_at
        assert entries[2].status == ScheduleEntryStatus.PARTIAL
        assert entries[2].amount_paid == Decimal("200")
        assert entries[0].amount_paid == Decimal("1000")

    def test_allocation_conserves_amount(self):
        entries = make_entries(["1000", "1000"])

        result = allocate_payment(uuid4(), Decimal("2500"), entries, datetime(2024, 6, 5))

        assert result.allocated + result.unallocated == Decimal("2500")
        assert result.unallocated == Decimal("500")
        assert all(e.status == ScheduleEntryStatus.PAID for e in entries)

    def test_allocation_ignores_input_order(self):
        entries = make_entries(["1000", "1000", "1000"])

        result = allocate_payment(
            uuid4(), Decimal("1000"), list(reversed(entries)), datetime(2024, 6, 5)
        )

        assert result.first_entry_id == entries[0].id

    def test_allocation_rejects_non_positive_amount(self):
        with pytest.raises(ValueError):
            allocate_payment(uuid4(), Decimal("0"), make_entries(["1000"]), datetime.now())

    def test_refund_restores_entries(self):
        entries = make_entries(["0", "500", "1000"])
        before = [(e.amount_paid, e.status) for e in entries]
        result = allocate_payment(uuid4(), Decimal("700"), entries, datetime(2024, 6, 5))

        reverse_allocations(result.allocations, entries)

        assert [(e.amount_paid, e.status) for e in entries] == before
        assert all(e.paid_at is None for e in entries[1:])

    def test_open_entries_sorted(self):
        entries = make_entries(["0", "300", "1000"])

        assert [e.week_number for e in open_entries(list(reversed(entries)))] == [2, 3]


# =============================================================================
# Loan Aggregate
# =============================================================================

class TestLoanBalance:

    def test_credit_loan_completes_at_total(self):
        borrower = make_borrower()
        loan = make_loan(borrower, total_repayment=Decimal("1000"))

        assert credit_loan(loan, Decimal("400")) is False
        assert credit_loan(loan, Decimal("600")) is True
        assert loan.status == LoanStatus.COMPLETED
        assert loan.outstanding_balance == Decimal("0")

    def test_debit_loan_reopens_completed(self):
        borrower = make_borrower()
        loan = make_loan(borrower, total_repayment=Decimal("1000"))
        credit_loan(loan, Decimal("1000"))

        assert debit_loan(loan, Decimal("600")) is True
        assert loan.status == LoanStatus.ACTIVE
        assert loan.amount_paid == Decimal("400")

    def test_debit_loan_does_not_reopen_defaulted(self):
        borrower = make_borrower()
        loan = make_loan(borrower, LoanStatus.DEFAULTED, amount_paid=Decimal("500"))

        assert debit_loan(loan, Decimal("500")) is False
        assert loan.status == LoanStatus.DEFAULTED
        assert loan.amount_paid == Decimal("0")
