"""Data transfer objects for credit score operations."""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from loan_gateway.domain.entities import Borrower, CreditScoreSnapshot


@dataclass(frozen=True)
class ScoreBreakdownDTO:
    """The five component sub-scores."""

    payment_history: int
    loan_utilization: int
    account_age: int
    driving_performance: int
    kyc_completeness: int


@dataclass(frozen=True)
class CreditScoreResponse:
    """A borrower's current score and the terms it unlocks."""

    borrower_id: str
    score: int
    rating: str
    max_loan_amount: Decimal
    interest_rate: Optional[Decimal]
    breakdown: Optional[ScoreBreakdownDTO]
    updated_at: Optional[str]

    @classmethod
    def from_entities(
        cls,
        borrower: Borrower,
        snapshot: Optional[CreditScoreSnapshot],
        max_loan_amount: Decimal,
        interest_rate: Optional[Decimal],
    ) -> "CreditScoreResponse":
        return cls(
            borrower_id=str(borrower.id),
            score=borrower.credit_score,
            rating=borrower.credit_rating.value,
            max_loan_amount=max_loan_amount,
            interest_rate=interest_rate,
            breakdown=ScoreBreakdownDTO(**snapshot.breakdown.to_dict()) if snapshot else None,
            updated_at=snapshot.created_at.isoformat() + "Z" if snapshot else None,
        )


@dataclass(frozen=True)
class CreditSnapshotDTO:
    """One recorded recalculation."""

    snapshot_id: str
    score: int
    rating: str
    breakdown: ScoreBreakdownDTO
    reason: str
    created_at: str


@dataclass(frozen=True)
class CreditHistoryResponse:
    """A borrower's score history, newest first."""

    borrower_id: str
    snapshots: List[CreditSnapshotDTO]

    @classmethod
    def from_entities(
        cls,
        borrower_id: str,
        snapshots: List[CreditScoreSnapshot],
    ) -> "CreditHistoryResponse":
        return cls(
            borrower_id=borrower_id,
            snapshots=[
                CreditSnapshotDTO(
                    snapshot_id=str(s.id),
                    score=s.score,
                    rating=s.rating.value,
                    breakdown=ScoreBreakdownDTO(**s.breakdown.to_dict()),
                    reason=s.reason,
                    created_at=s.created_at.isoformat() + "Z",
                )
                for s in snapshots
            ],
        )
