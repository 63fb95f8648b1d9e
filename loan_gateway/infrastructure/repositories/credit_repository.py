"""PostgreSQL implementation of CreditSnapshotRepository."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from loan_gateway.domain.entities import CreditRating, CreditScoreSnapshot, ScoreBreakdown
from loan_gateway.domain.interfaces import CreditSnapshotRepository
from loan_gateway.infrastructure.database.models import CreditScoreSnapshotModel


class PostgresCreditSnapshotRepository(CreditSnapshotRepository):
    """
    PostgreSQL implementation of the credit snapshot repository.

    Rows are only ever inserted.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, snapshot: CreditScoreSnapshot) -> CreditScoreSnapshot:
        """Append a snapshot."""
        breakdown = snapshot.breakdown
        model = CreditScoreSnapshotModel(
            id=str(snapshot.id),
            borrower_id=str(snapshot.borrower_id),
            score=snapshot.score,
            rating=snapshot.rating.value,
            payment_history_score=breakdown.payment_history,
            loan_utilization_score=breakdown.loan_utilization,
            account_age_score=breakdown.account_age,
            driving_performance_score=breakdown.driving_performance,
            kyc_completeness_score=breakdown.kyc_completeness,
            reason=snapshot.reason,
            created_at=snapshot.created_at,
        )

        self._session.add(model)
        await self._session.flush()

        return snapshot

    async def get_latest(self, borrower_id: UUID) -> Optional[CreditScoreSnapshot]:
        """Retrieve the newest snapshot of a borrower."""
        snapshots = await self.list_by_borrower(borrower_id, limit=1)
        return snapshots[0] if snapshots else None

    async def list_by_borrower(
        self,
        borrower_id: UUID,
        limit: int = 20,
    ) -> List[CreditScoreSnapshot]:
        """Retrieve snapshots, newest first."""
        stmt = (
            select(CreditScoreSnapshotModel)
            .where(CreditScoreSnapshotModel.borrower_id == str(borrower_id))
            .order_by(CreditScoreSnapshotModel.created_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    def _to_entity(self, model: CreditScoreSnapshotModel) -> CreditScoreSnapshot:
        """Convert database model to domain entity."""
        return CreditScoreSnapshot(
            id=UUID(model.id),
            borrower_id=UUID(model.borrower_id),
            score=model.score,
            rating=CreditRating(model.rating),
            breakdown=ScoreBreakdown(
                payment_history=model.payment_history_score,
                loan_utilization=model.loan_utilization_score,
                account_age=model.account_age_score,
                driving_performance=model.driving_performance_score,
                kyc_completeness=model.kyc_completeness_score,
            ),
            reason=model.reason,
            created_at=model.created_at,
        )
