"""
Integration tests for data persistence.

These tests verify:
1. Entities survive a round trip through their repositories
2. Money keeps its two decimal places
3. Schedules come back ordered by week
4. Payment lookups used by settlement (provider reference, pending total)
5. GET /health reports database reachability
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
import pytest_asyncio

from loan_gateway.domain.entities import (
    Borrower,
    CreditRating,
    CreditScoreSnapshot,
    KycStatus,
    Loan,
    LoanStatus,
    Payment,
    PaymentAllocation,
    PaymentMethod,
    PaymentStatus,
    ScoreBreakdown,
)
from loan_gateway.infrastructure.repositories import (
    PostgresBorrowerRepository,
    PostgresCreditSnapshotRepository,
    PostgresLoanRepository,
    PostgresPaymentAllocationRepository,
    PostgresPaymentRepository,
    PostgresScheduleEntryRepository,
)
from loan_gateway.service.lending import amortize, generate_schedule


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def borrower(session) -> Borrower:
    entity = Borrower(
        external_id="drv_persist_1",
        name="Fatou Ndiaye",
        phone="+221770000009",
    )
    await PostgresBorrowerRepository(session).save(entity)
    await session.commit()
    return entity


@pytest_asyncio.fixture
async def loan(session, borrower) -> Loan:
    figures = amortize(Decimal("500000"), 26, Decimal("15"))
    entity = Loan(
        borrower_id=borrower.id,
        principal=figures.principal,
        interest_rate=figures.interest_rate,
        term_weeks=figures.term_weeks,
        total_repayment=figures.total_repayment,
        weekly_payment=figures.weekly_payment,
        purpose="Vehicle maintenance and tyres",
        status=LoanStatus.ACTIVE,
    )
    await PostgresLoanRepository(session).save(entity)
    await session.commit()
    return entity


class TestBorrowerPersistence:

    @pytest.mark.asyncio
    async def test_borrower_round_trip(self, session, borrower):
        repo = PostgresBorrowerRepository(session)

        loaded = await repo.get_by_id(borrower.id)

        assert loaded.external_id == "drv_persist_1"
        assert loaded.kyc_status == KycStatus.NOT_STARTED
        assert loaded.credit_score == borrower.credit_score
        assert loaded.credit_rating == borrower.credit_rating
        assert await repo.get_by_external_id("drv_persist_1") is not None
        assert await repo.get_by_external_id("drv_missing") is None

    @pytest.mark.asyncio
    async def test_borrower_update(self, session, borrower):
        repo = PostgresBorrowerRepository(session)
        borrower.kyc_status = KycStatus.VERIFIED
        borrower.credit_score = 720
        borrower.credit_rating = CreditRating.B

        await repo.update(borrower)
        await session.commit()

        loaded = await repo.get_by_id(borrower.id)
        assert loaded.kyc_status == KycStatus.VERIFIED
        assert loaded.credit_score == 720

    @pytest.mark.asyncio
    async def test_snapshots_newest_first(self, session, borrower):
        repo = PostgresCreditSnapshotRepository(session)
        breakdown = ScoreBreakdown(
            payment_history=500,
            loan_utilization=800,
            account_age=800,
            driving_performance=850,
            kyc_completeness=1000,
        )

        history = (
            (500, "Initial registration", datetime(2024, 1, 1)),
            (720, "KYC verified", datetime(2024, 2, 1)),
        )
        for score, reason, created_at in history:
            await repo.save(
                CreditScoreSnapshot(
                    borrower_id=borrower.id,
                    score=score,
                    rating=CreditRating.B if score >= 650 else CreditRating.C,
                    breakdown=breakdown,
                    reason=reason,
                    created_at=created_at,
                )
            )
        await session.commit()

        latest = await repo.get_latest(borrower.id)
        assert latest.reason == "KYC verified"
        assert latest.breakdown == breakdown
        assert len(await repo.list_by_borrower(borrower.id, limit=1)) == 1


class TestLoanPersistence:

    @pytest.mark.asyncio
    async def test_loan_money_round_trip(self, session, loan):
        loaded = await PostgresLoanRepository(session).get_by_id(loan.id)

        assert loaded.total_repayment == Decimal("537500.00")
        assert loaded.weekly_payment == Decimal("20673.08")
        assert loaded.outstanding_balance == Decimal("537500.00")
        assert loaded.status == LoanStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_schedule_ordered_by_week(self, session, loan):
        repo = PostgresScheduleEntryRepository(session)
        entries = generate_schedule(
            loan.id, date(2024, 6, 3), loan.term_weeks, loan.weekly_payment, loan.total_repayment
        )

        await repo.save_all(list(reversed(entries)))
        await session.commit()

        loaded = await repo.list_by_loan(loan.id)
        assert [e.week_number for e in loaded] == list(range(1, 27))
        assert loaded[0].due_date == date(2024, 6, 10)
        assert sum(e.amount_due for e in loaded) == Decimal("537500.00")

        by_id = await repo.get_by_ids([entries[0].id, entries[1].id])
        assert {e.id for e in by_id} == {entries[0].id, entries[1].id}

    @pytest.mark.asyncio
    async def test_list_all_filters_by_status(self, session, loan):
        repo = PostgresLoanRepository(session)

        active, total = await repo.list_all(status=LoanStatus.ACTIVE, limit=10, offset=0)
        pending, pending_total = await repo.list_all(status=LoanStatus.PENDING, limit=10, offset=0)

        assert [item.id for item in active] == [loan.id]
        assert total == 1
        assert pending == []
        assert pending_total == 0


class TestPaymentPersistence:

    def _payment(self, loan: Loan, amount: str, **overrides) -> Payment:
        return Payment(
            loan_id=loan.id,
            borrower_id=loan.borrower_id,
            amount=Decimal(amount),
            method=PaymentMethod.WAVE,
            **overrides,
        )

    @pytest.mark.asyncio
    async def test_lookup_by_provider_reference(self, session, loan):
        repo = PostgresPaymentRepository(session)
        payment = self._payment(loan, "20673.08", provider_reference="rail_tx_1")
        await repo.save(payment)
        await session.commit()

        found = await repo.get_by_provider_reference("rail_tx_1")

        assert found.id == payment.id
        assert found.amount == Decimal("20673.08")
        assert await repo.get_by_provider_reference("rail_tx_2") is None

    @pytest.mark.asyncio
    async def test_pending_total_counts_only_pending(self, session, loan):
        repo = PostgresPaymentRepository(session)
        await repo.save(self._payment(loan, "1000.50"))
        await repo.save(self._payment(loan, "2000.25"))
        await repo.save(self._payment(loan, "5000", status=PaymentStatus.SUCCESS))
        await session.commit()

        assert await repo.pending_total(loan.id) == Decimal("3000.75")

    @pytest.mark.asyncio
    async def test_pending_total_without_payments(self, session, loan):
        assert await PostgresPaymentRepository(session).pending_total(loan.id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_allocations_by_payment(self, session, loan):
        schedule_repo = PostgresScheduleEntryRepository(session)
        entries = generate_schedule(
            loan.id, date(2024, 6, 3), loan.term_weeks, loan.weekly_payment, loan.total_repayment
        )
        await schedule_repo.save_all(entries)

        payment = self._payment(loan, "30000", status=PaymentStatus.SUCCESS)
        await PostgresPaymentRepository(session).save(payment)

        repo = PostgresPaymentAllocationRepository(session)
        await repo.save_all([
            PaymentAllocation(payment.id, entries[0].id, Decimal("20673.08")),
            PaymentAllocation(payment.id, entries[1].id, Decimal("9326.92")),
        ])
        await session.commit()

        allocations = await repo.list_by_payment(payment.id)

        assert sum(a.amount for a in allocations) == Decimal("30000.00")
        assert {a.schedule_entry_id for a in allocations} == {entries[0].id, entries[1].id}


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_reports_database(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "ok"
        assert data["mock_mode"] is True
