"""Database infrastructure."""

from .connection import get_db_session, DatabaseSessionManager, db_manager
from .models import (
    Base,
    BorrowerModel,
    CreditScoreSnapshotModel,
    KycDocumentModel,
    LoanModel,
    PaymentAllocationModel,
    PaymentModel,
    ScheduleEntryModel,
)
from .unit_of_work import SqlAlchemyUnitOfWork

__all__ = [
    "get_db_session",
    "DatabaseSessionManager",
    "db_manager",
    "Base",
    "BorrowerModel",
    "CreditScoreSnapshotModel",
    "KycDocumentModel",
    "LoanModel",
    "PaymentAllocationModel",
    "PaymentModel",
    "ScheduleEntryModel",
    "SqlAlchemyUnitOfWork",
]
