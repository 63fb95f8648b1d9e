"""Payment-related domain exceptions."""

from .base import ConflictException, NotFoundException


class PaymentNotFoundException(NotFoundException):
    """Raised when a payment cannot be found."""

    def __init__(self, payment_id: str):
        super().__init__("Payment", payment_id, code="PAYMENT_NOT_FOUND")
        self.payment_id = payment_id


class InvalidPaymentTransitionException(ConflictException):
    """Raised when a payment transition is not allowed from its current status."""

    def __init__(self, payment_id: str, current_status: str, target_status: str):
        super().__init__(
            message=(
                f"Cannot move payment {payment_id} from {current_status} to {target_status}"
            ),
            current_status=current_status,
            code="INVALID_PAYMENT_TRANSITION",
        )
        self.payment_id = payment_id
        self.target_status = target_status


class LoanNotActiveException(ConflictException):
    """Raised when a payment targets a loan that is not being repaid."""

    def __init__(self, loan_id: str, current_status: str):
        super().__init__(
            message=f"Loan is not active: {loan_id}",
            current_status=current_status,
            code="LOAN_NOT_ACTIVE",
        )
        self.loan_id = loan_id
