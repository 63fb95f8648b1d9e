"""Application services (use cases)."""

from .notifier import Notifier
from .credit_service import CreditService
from .borrower_service import BorrowerService
from .kyc_service import KycService, missing_kyc_documents
from .loan_service import LoanService
from .payment_service import PaymentService

__all__ = [
    "Notifier",
    "CreditService",
    "BorrowerService",
    "KycService",
    "missing_kyc_documents",
    "LoanService",
    "PaymentService",
]
