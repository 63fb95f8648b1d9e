"""Domain Exceptions - Business rule violations and domain errors."""

from .base import (
    DomainException,
    ValidationException,
    NotFoundException,
    ConflictException,
    PolicyViolationException,
    ExternalDependencyException,
)
from .borrower import (
    BorrowerNotFoundException,
    BorrowerAlreadyExistsException,
    KycDocumentNotFoundException,
    KycDocumentAlreadyReviewedException,
)
from .loan import (
    LoanNotFoundException,
    InvalidLoanTransitionException,
    OpenLoanApplicationException,
    LoanNotEligibleException,
    LoanAmountExceededException,
)
from .payment import (
    PaymentNotFoundException,
    InvalidPaymentTransitionException,
    LoanNotActiveException,
)
from .integrations import (
    TelemetryException,
    TelemetryTimeoutException,
    PaymentRailException,
    PaymentRailTimeoutException,
)

__all__ = [
    "DomainException",
    "ValidationException",
    "NotFoundException",
    "ConflictException",
    "PolicyViolationException",
    "ExternalDependencyException",
    "BorrowerNotFoundException",
    "BorrowerAlreadyExistsException",
    "KycDocumentNotFoundException",
    "KycDocumentAlreadyReviewedException",
    "LoanNotFoundException",
    "InvalidLoanTransitionException",
    "OpenLoanApplicationException",
    "LoanNotEligibleException",
    "LoanAmountExceededException",
    "PaymentNotFoundException",
    "InvalidPaymentTransitionException",
    "LoanNotActiveException",
    "TelemetryException",
    "TelemetryTimeoutException",
    "PaymentRailException",
    "PaymentRailTimeoutException",
]
