"""Credit score entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from loan_gateway.utils.date_utils import utcnow


class CreditRating(str, Enum):
    """Letter grade derived from the numeric score; A is best."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"


@dataclass(frozen=True)
class ScoreBreakdown:
    """The five 0-1000 component sub-scores."""

    payment_history: int
    loan_utilization: int
    account_age: int
    driving_performance: int
    kyc_completeness: int

    def to_dict(self) -> dict:
        return {
            "payment_history": self.payment_history,
            "loan_utilization": self.loan_utilization,
            "account_age": self.account_age,
            "driving_performance": self.driving_performance,
            "kyc_completeness": self.kyc_completeness,
        }


@dataclass(frozen=True)
class CreditScore:
    """Result of a score computation, before it is recorded."""

    score: int
    rating: CreditRating
    breakdown: ScoreBreakdown


@dataclass(frozen=True)
class CreditScoreSnapshot:
    """
    Immutable record of one score recalculation.

    Snapshots are only ever appended; the borrower's current score is a
    pointer to the latest one.
    """

    borrower_id: UUID
    score: int
    rating: CreditRating
    breakdown: ScoreBreakdown
    reason: str
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
