"""
Domain Interfaces (Ports)
"""

from .repositories import (
    BorrowerRepository,
    CreditSnapshotRepository,
    KycDocumentRepository,
    LoanRepository,
    PaymentAllocationRepository,
    PaymentRepository,
    ScheduleEntryRepository,
    UnitOfWork,
)
from .clients import NotificationSink, PaymentRailClient, TelemetryClient

__all__ = [
    "BorrowerRepository",
    "CreditSnapshotRepository",
    "KycDocumentRepository",
    "LoanRepository",
    "PaymentAllocationRepository",
    "PaymentRepository",
    "ScheduleEntryRepository",
    "UnitOfWork",
    "NotificationSink",
    "PaymentRailClient",
    "TelemetryClient",
]
