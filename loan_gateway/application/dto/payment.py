"""Data transfer objects for payment operations."""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from loan_gateway.domain.entities import Payment, PaymentMethod
from loan_gateway.service.lending.settings import LendingSettings, lending_settings


@dataclass(frozen=True)
class InitiatePaymentRequest:
    """Input data for a borrower-initiated repayment."""
    borrower_id: str
    loan_id: str
    amount: Decimal
    method: PaymentMethod
    reference: Optional[str] = None

    def validate(self, settings: LendingSettings = lending_settings) -> List[str]:
        errors = []

        if self.amount > settings.max_payment_amount:
            errors.append(f"amount must not exceed {settings.max_payment_amount}")

        return errors


@dataclass(frozen=True)
class ManualPaymentRequest:
    """Admin record of a payment collected outside the payment rail."""
    borrower_id: str
    loan_id: str
    amount: Decimal
    method: PaymentMethod
    reference: str

    def validate(self, settings: LendingSettings = lending_settings) -> List[str]:
        errors = []

        if not self.reference or not self.reference.strip():
            errors.append("reference is required")

        return errors


@dataclass(frozen=True)
class PaymentResponse:
    """Response data for a payment."""

    payment_id: str
    loan_id: str
    borrower_id: str
    amount: Decimal
    method: str
    status: str
    schedule_entry_id: Optional[str]
    reference: Optional[str]
    provider_reference: Optional[str]
    failure_reason: Optional[str]
    unallocated_amount: Decimal
    processed_at: Optional[str]
    refunded_at: Optional[str]
    created_at: str
    checkout_url: Optional[str] = None

    @classmethod
    def from_entity(
        cls,
        payment: Payment,
        checkout_url: Optional[str] = None,
    ) -> "PaymentResponse":
        def stamp(value) -> Optional[str]:
            return value.isoformat() + "Z" if value else None

        return cls(
            payment_id=str(payment.id),
            loan_id=str(payment.loan_id),
            borrower_id=str(payment.borrower_id),
            amount=payment.amount,
            method=payment.method.value,
            status=payment.status.value,
            schedule_entry_id=str(payment.schedule_entry_id) if payment.schedule_entry_id else None,
            reference=payment.reference,
            provider_reference=payment.provider_reference,
            failure_reason=payment.failure_reason,
            unallocated_amount=payment.unallocated_amount,
            processed_at=stamp(payment.processed_at),
            refunded_at=stamp(payment.refunded_at),
            created_at=stamp(payment.created_at),
            checkout_url=checkout_url,
        )


@dataclass(frozen=True)
class RailEventResult:
    """Acknowledgement returned to the payment rail."""

    received: bool
    processed: bool
    payment_id: Optional[str] = None
    status: Optional[str] = None
