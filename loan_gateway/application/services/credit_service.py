"""Credit service - records and serves borrower credit scores."""

from typing import List, Optional
from uuid import UUID

import structlog

from loan_gateway.application.dto import CreditHistoryResponse, CreditScoreResponse
from loan_gateway.core.metrics import record_score_recalculation
from loan_gateway.domain.entities import (
    Borrower,
    CreditScoreSnapshot,
    DriverPerformance,
    LoanStatus,
    NotificationType,
    PaymentStatus,
    ScoreBreakdown,
)
from loan_gateway.domain.exceptions import (
    BorrowerNotFoundException,
    DomainException,
    ExternalDependencyException,
)
from loan_gateway.domain.interfaces import (
    BorrowerRepository,
    CreditSnapshotRepository,
    KycDocumentRepository,
    LoanRepository,
    PaymentRepository,
    ScheduleEntryRepository,
    TelemetryClient,
    UnitOfWork,
)
from loan_gateway.service.lending.settings import LendingSettings, lending_settings
from loan_gateway.service.scoring import (
    BorrowerHistory,
    KycDocumentSummary,
    LoanBalance,
    ScoringSettings,
    SettledPayment,
    calculate_credit_score,
    interest_rate_for,
    max_loan_amount_for,
    scoring_settings,
)

from .notifier import Notifier

logger = structlog.get_logger(__name__)

INITIAL_REASON = "Initial registration"


class CreditService:
    """
    Application service for credit score use cases.

    A recalculation appends a snapshot and moves the borrower's current
    score pointer in one transaction. Recalculations are pushed by the
    operations that change a borrower's history; nothing polls.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        borrower_repository: BorrowerRepository,
        kyc_repository: KycDocumentRepository,
        snapshot_repository: CreditSnapshotRepository,
        loan_repository: LoanRepository,
        schedule_repository: ScheduleEntryRepository,
        payment_repository: PaymentRepository,
        telemetry_client: TelemetryClient,
        notifier: Notifier,
        scoring: ScoringSettings = scoring_settings,
        lending: LendingSettings = lending_settings,
    ):
        self._uow = uow
        self._borrower_repo = borrower_repository
        self._kyc_repo = kyc_repository
        self._snapshot_repo = snapshot_repository
        self._loan_repo = loan_repository
        self._schedule_repo = schedule_repository
        self._payment_repo = payment_repository
        self._telemetry = telemetry_client
        self._notifier = notifier
        self._scoring = scoring
        self._lending = lending

    async def seed(self, borrower: Borrower) -> CreditScoreSnapshot:
        """
        Record the starting snapshot of a newly registered borrower.

        Runs inside the caller's transaction.
        """
        neutral = self._scoring.initial_score
        snapshot = CreditScoreSnapshot(
            borrower_id=borrower.id,
            score=borrower.credit_score,
            rating=borrower.credit_rating,
            breakdown=ScoreBreakdown(
                payment_history=neutral,
                loan_utilization=neutral,
                account_age=neutral,
                driving_performance=neutral,
                kyc_completeness=neutral,
            ),
            reason=INITIAL_REASON,
        )
        await self._snapshot_repo.save(snapshot)
        record_score_recalculation(INITIAL_REASON, borrower.credit_rating.value)
        return snapshot

    async def recalculate(self, borrower_id: UUID, reason: str) -> CreditScoreSnapshot:
        """
        Recompute a borrower's score and record it.

        Each attempt runs in its own transaction. Storage failures are
        retried up to ``score_recalc_attempts`` times; domain errors are
        raised at once.

        Raises:
            BorrowerNotFoundException: If the borrower doesn't exist
        """
        attempts = self._lending.score_recalc_attempts

        for attempt in range(1, attempts + 1):
            try:
                return await self._recalculate_once(borrower_id, reason)
            except DomainException:
                raise
            except Exception as e:
                if attempt >= attempts:
                    raise
                logger.warning(
                    "credit_score_recalculation_retry",
                    borrower_id=str(borrower_id),
                    reason=reason,
                    attempt=attempt,
                    error=str(e),
                )

        raise RuntimeError("score recalculation attempts exhausted")

    async def refresh(self, borrower_id: UUID, reason: str) -> Optional[CreditScoreSnapshot]:
        """
        Recalculate after another operation has committed.

        The triggering operation stands even when every attempt fails, so
        the failure is logged rather than raised.
        """
        try:
            return await self.recalculate(borrower_id, reason)
        except Exception:
            logger.exception(
                "credit_score_recalculation_failed",
                borrower_id=str(borrower_id),
                reason=reason,
            )
            return None

    async def get_current_score(self, borrower_id: UUID) -> CreditScoreResponse:
        """
        Get a borrower's current score, its breakdown and the terms it unlocks.

        Raises:
            BorrowerNotFoundException: If the borrower doesn't exist
        """
        borrower = await self._get_borrower(borrower_id)
        snapshot = await self._snapshot_repo.get_latest(borrower.id)

        max_amount = max_loan_amount_for(borrower.credit_rating, self._scoring)
        rate = interest_rate_for(borrower.credit_rating, self._scoring) if max_amount > 0 else None

        return CreditScoreResponse.from_entities(borrower, snapshot, max_amount, rate)

    async def get_history(self, borrower_id: UUID, limit: int = 20) -> CreditHistoryResponse:
        """
        Get a borrower's recorded snapshots, newest first.

        Raises:
            BorrowerNotFoundException: If the borrower doesn't exist
        """
        borrower = await self._get_borrower(borrower_id)
        snapshots = await self._snapshot_repo.list_by_borrower(borrower.id, limit=limit)
        return CreditHistoryResponse.from_entities(str(borrower.id), snapshots)

    async def build_history(
        self,
        borrower: Borrower,
        performance: Optional[DriverPerformance] = None,
    ) -> BorrowerHistory:
        """Assemble the scoring inputs for ``borrower`` from storage."""
        loans = await self._loan_repo.list_by_borrower(borrower.id)
        documents = await self._kyc_repo.list_by_borrower(borrower.id)

        return BorrowerHistory(
            created_at=borrower.created_at,
            payments=await self._settled_payments(borrower.id),
            active_loans=[
                LoanBalance(principal=loan.principal, amount_paid=loan.amount_paid)
                for loan in loans
                if loan.status == LoanStatus.ACTIVE
            ],
            kyc_documents=[
                KycDocumentSummary(document_type=d.document_type, status=d.status)
                for d in documents
            ],
            performance=performance,
        )

    async def _recalculate_once(self, borrower_id: UUID, reason: str) -> CreditScoreSnapshot:
        borrower = await self._get_borrower(borrower_id)
        performance = await self._fetch_performance(borrower)

        async with self._uow.transaction():
            borrower = await self._get_borrower(borrower_id)
            history = await self.build_history(borrower, performance)
            credit_score = calculate_credit_score(history, self._scoring)

            previous_score = borrower.credit_score
            previous_rating = borrower.credit_rating

            snapshot = CreditScoreSnapshot(
                borrower_id=borrower.id,
                score=credit_score.score,
                rating=credit_score.rating,
                breakdown=credit_score.breakdown,
                reason=reason,
            )
            await self._snapshot_repo.save(snapshot)

            borrower.credit_score = credit_score.score
            borrower.credit_rating = credit_score.rating
            await self._borrower_repo.update(borrower)

        record_score_recalculation(reason, credit_score.rating.value)
        logger.info(
            "credit_score_recalculated",
            borrower_id=str(borrower.id),
            reason=reason,
            previous_score=previous_score,
            score=credit_score.score,
            rating=credit_score.rating.value,
        )

        if credit_score.score != previous_score:
            await self._notifier.notify(
                borrower.id,
                NotificationType.CREDIT_SCORE_CHANGED,
                previous_score=previous_score,
                previous_rating=previous_rating.value,
                score=credit_score.score,
                rating=credit_score.rating.value,
                reason=reason,
            )

        return snapshot

    async def _fetch_performance(self, borrower: Borrower) -> Optional[DriverPerformance]:
        try:
            return await self._telemetry.get_performance(borrower.external_id)
        except ExternalDependencyException as e:
            logger.warning(
                "telemetry_unavailable",
                borrower_id=str(borrower.id),
                error=e.message,
                code=e.code,
            )
            return None

    async def _settled_payments(self, borrower_id: UUID) -> List[SettledPayment]:
        payments = [
            p
            for p in await self._payment_repo.list_by_borrower(borrower_id)
            if p.status in (PaymentStatus.SUCCESS, PaymentStatus.FAILED)
            and p.schedule_entry_id is not None
        ]
        if not payments:
            return []

        entries = await self._schedule_repo.get_by_ids(
            list({p.schedule_entry_id for p in payments})
        )
        due_dates = {entry.id: entry.due_date for entry in entries}

        return [
            SettledPayment(
                succeeded=p.status == PaymentStatus.SUCCESS,
                settled_on=p.settled_at.date(),
                due_date=due_dates[p.schedule_entry_id],
            )
            for p in payments
            if p.schedule_entry_id in due_dates
        ]

    async def _get_borrower(self, borrower_id: UUID) -> Borrower:
        borrower = await self._borrower_repo.get_by_id(borrower_id)
        if borrower is None:
            raise BorrowerNotFoundException(str(borrower_id))
        return borrower
