"""Repository implementations."""

from .borrower_repository import PostgresBorrowerRepository, PostgresKycDocumentRepository
from .credit_repository import PostgresCreditSnapshotRepository
from .loan_repository import PostgresLoanRepository, PostgresScheduleEntryRepository
from .payment_repository import PostgresPaymentAllocationRepository, PostgresPaymentRepository

__all__ = [
    "PostgresBorrowerRepository",
    "PostgresKycDocumentRepository",
    "PostgresCreditSnapshotRepository",
    "PostgresLoanRepository",
    "PostgresScheduleEntryRepository",
    "PostgresPaymentAllocationRepository",
    "PostgresPaymentRepository",
]
