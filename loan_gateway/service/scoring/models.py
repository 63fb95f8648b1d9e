"""
Data models for credit scoring.

These are the normalized inputs the component calculators read. The
application layer assembles them from persisted borrowers, loans,
payments and KYC documents, so the calculators stay pure.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from loan_gateway.domain.entities import (
    DocumentStatus,
    DocumentType,
    DriverPerformance,
)


@dataclass(frozen=True)
class SettledPayment:
    """
    A settled payment tied to the schedule entry it was meant for.

    Attributes:
        succeeded: True for a successful payment, False for a failed one
        settled_on: Date the payment settled (or failed)
        due_date: Due date of the schedule entry it targeted
    """
    succeeded: bool
    settled_on: date
    due_date: date


@dataclass(frozen=True)
class LoanBalance:
    """Principal and repaid amount of one active loan."""
    principal: Decimal
    amount_paid: Decimal


@dataclass(frozen=True)
class KycDocumentSummary:
    """Type and review status of one submitted KYC document."""
    document_type: DocumentType
    status: DocumentStatus


@dataclass
class BorrowerHistory:
    """
    Everything the credit score is computed from.

    Attributes:
        created_at: When the borrower registered (drives account age)
        payments: Settled payments linked to schedule entries
        active_loans: Balances of the borrower's ACTIVE loans
        kyc_documents: Every submitted KYC document
        performance: Telemetry metrics, or None when unavailable/unmatched
        as_of: Reference date for age calculations (default: today UTC)
    """
    created_at: datetime
    payments: List[SettledPayment] = field(default_factory=list)
    active_loans: List[LoanBalance] = field(default_factory=list)
    kyc_documents: List[KycDocumentSummary] = field(default_factory=list)
    performance: Optional[DriverPerformance] = None
    as_of: Optional[date] = None
