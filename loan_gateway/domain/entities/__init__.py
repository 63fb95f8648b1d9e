"""Domain Entities - Core business objects."""

from .borrower import (
    AccountStatus,
    Borrower,
    DocumentStatus,
    DocumentType,
    KycDocument,
    KycStatus,
)
from .credit import CreditRating, CreditScore, CreditScoreSnapshot, ScoreBreakdown
from .loan import (
    LOAN_TRANSITIONS,
    Loan,
    LoanStatus,
    ScheduleEntry,
    ScheduleEntryStatus,
)
from .payment import (
    PAYMENT_TRANSITIONS,
    Payment,
    PaymentAllocation,
    PaymentMethod,
    PaymentStatus,
)
from .notification import NotificationIntent, NotificationType
from .integrations import (
    CheckoutSession,
    DriverPerformance,
    RailEvent,
    RailEventStatus,
)

__all__ = [
    "AccountStatus",
    "Borrower",
    "DocumentStatus",
    "DocumentType",
    "KycDocument",
    "KycStatus",
    "CreditRating",
    "CreditScore",
    "CreditScoreSnapshot",
    "ScoreBreakdown",
    "LOAN_TRANSITIONS",
    "Loan",
    "LoanStatus",
    "ScheduleEntry",
    "ScheduleEntryStatus",
    "PAYMENT_TRANSITIONS",
    "Payment",
    "PaymentAllocation",
    "PaymentMethod",
    "PaymentStatus",
    "NotificationIntent",
    "NotificationType",
    "CheckoutSession",
    "DriverPerformance",
    "RailEvent",
    "RailEventStatus",
]
