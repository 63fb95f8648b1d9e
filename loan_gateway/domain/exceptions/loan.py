"""Loan-related domain exceptions."""

from typing import List

from .base import ConflictException, NotFoundException, PolicyViolationException


class LoanNotFoundException(NotFoundException):
    """Raised when a loan cannot be found."""

    def __init__(self, loan_id: str):
        super().__init__("Loan", loan_id, code="LOAN_NOT_FOUND")
        self.loan_id = loan_id


class InvalidLoanTransitionException(ConflictException):
    """Raised when a loan transition is not allowed from its current status."""

    def __init__(self, loan_id: str, current_status: str, target_status: str):
        super().__init__(
            message=(
                f"Cannot move loan {loan_id} from {current_status} to {target_status}"
            ),
            current_status=current_status,
            code="INVALID_LOAN_TRANSITION",
        )
        self.loan_id = loan_id
        self.target_status = target_status


class OpenLoanApplicationException(ConflictException):
    """Raised when a borrower already has a pending or approved loan."""

    def __init__(self, loan_id: str, current_status: str):
        super().__init__(
            message=f"Borrower already has an open loan application: {loan_id}",
            current_status=current_status,
            code="OPEN_LOAN_APPLICATION",
        )
        self.loan_id = loan_id


class LoanNotEligibleException(PolicyViolationException):
    """Raised when the eligibility policy rejects an application."""

    def __init__(self, reasons: List[str]):
        super().__init__(
            message="Not eligible for loan",
            reasons=reasons,
            code="LOAN_NOT_ELIGIBLE",
        )


class LoanAmountExceededException(PolicyViolationException):
    """Raised when the requested amount exceeds the rating's maximum."""

    def __init__(self, requested: str, maximum: str):
        reason = f"Requested amount {requested} exceeds maximum loan amount of {maximum}"
        super().__init__(
            message=reason,
            reasons=[reason],
            code="LOAN_AMOUNT_EXCEEDED",
        )
