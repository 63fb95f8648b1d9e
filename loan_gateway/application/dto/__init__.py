"""Data Transfer Objects for application layer."""

from .borrower import (
    BorrowerResponse,
    KycDocumentResponse,
    KycStatusResponse,
    RegisterBorrowerRequest,
    ReviewKycDocumentRequest,
    SubmitKycDocumentRequest,
)
from .credit import CreditHistoryResponse, CreditScoreResponse, CreditSnapshotDTO, ScoreBreakdownDTO
from .loan import (
    ApproveLoanRequest,
    DefaultLoanRequest,
    LoanApplicationRequest,
    LoanApplicationResponse,
    LoanListResponse,
    LoanResponse,
    LoanScheduleResponse,
    RejectLoanRequest,
    ScheduleEntryDTO,
)
from .payment import (
    InitiatePaymentRequest,
    ManualPaymentRequest,
    PaymentResponse,
    RailEventResult,
)

__all__ = [
    "BorrowerResponse",
    "KycDocumentResponse",
    "KycStatusResponse",
    "RegisterBorrowerRequest",
    "ReviewKycDocumentRequest",
    "SubmitKycDocumentRequest",
    "CreditHistoryResponse",
    "CreditScoreResponse",
    "CreditSnapshotDTO",
    "ScoreBreakdownDTO",
    "ApproveLoanRequest",
    "DefaultLoanRequest",
    "LoanApplicationRequest",
    "LoanApplicationResponse",
    "LoanListResponse",
    "LoanResponse",
    "LoanScheduleResponse",
    "RejectLoanRequest",
    "ScheduleEntryDTO",
    "InitiatePaymentRequest",
    "ManualPaymentRequest",
    "PaymentResponse",
    "RailEventResult",
]
