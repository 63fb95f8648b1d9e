"""Pydantic schemas for API request/response validation."""

from .borrower import (
    BorrowerResponseSchema,
    CreditHistoryResponseSchema,
    CreditScoreResponseSchema,
    CreditSnapshotSchema,
    EligibilityResponseSchema,
    RecalculateScoreSchema,
    RegisterBorrowerSchema,
    ScoreBreakdownSchema,
)
from .kyc import (
    KycDocumentResponseSchema,
    KycStatusResponseSchema,
    ReviewKycDocumentSchema,
    SubmitKycDocumentSchema,
)
from .loan import (
    AmortizationSchema,
    ApproveLoanSchema,
    DefaultLoanSchema,
    LoanApplicationResponseSchema,
    LoanApplicationSchema,
    LoanListResponseSchema,
    LoanResponseSchema,
    LoanScheduleResponseSchema,
    RejectLoanSchema,
    ScheduleEntrySchema,
)
from .payment import (
    InitiatePaymentSchema,
    ManualPaymentSchema,
    PaymentListResponseSchema,
    PaymentReasonSchema,
    PaymentResponseSchema,
    RailEventResponseSchema,
)
from .error import ErrorResponseSchema

__all__ = [
    "BorrowerResponseSchema",
    "CreditHistoryResponseSchema",
    "CreditScoreResponseSchema",
    "CreditSnapshotSchema",
    "EligibilityResponseSchema",
    "RecalculateScoreSchema",
    "RegisterBorrowerSchema",
    "ScoreBreakdownSchema",
    "KycDocumentResponseSchema",
    "KycStatusResponseSchema",
    "ReviewKycDocumentSchema",
    "SubmitKycDocumentSchema",
    "AmortizationSchema",
    "ApproveLoanSchema",
    "DefaultLoanSchema",
    "LoanApplicationResponseSchema",
    "LoanApplicationSchema",
    "LoanListResponseSchema",
    "LoanResponseSchema",
    "LoanScheduleResponseSchema",
    "RejectLoanSchema",
    "ScheduleEntrySchema",
    "InitiatePaymentSchema",
    "ManualPaymentSchema",
    "PaymentListResponseSchema",
    "PaymentReasonSchema",
    "PaymentResponseSchema",
    "RailEventResponseSchema",
    "ErrorResponseSchema",
]
