"""Payment Pydantic schemas."""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from loan_gateway.domain.entities import PaymentMethod


class InitiatePaymentSchema(BaseModel):
    """Schema for POST /v1/payments request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "borrower_id": "550e8400-e29b-41d4-a716-446655440000",
                    "loan_id": "7c9e6679-7425-40de-944b-e07fc1f90ae7",
                    "amount": "20673.08",
                    "method": "WAVE",
                }
            ]
        }
    )
    borrower_id: UUID
    loan_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    method: PaymentMethod
    reference: Optional[str] = Field(None, max_length=255)


class ManualPaymentSchema(BaseModel):
    """Schema for POST /v1/payments/manual request body."""

    borrower_id: UUID
    loan_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    method: PaymentMethod = PaymentMethod.CASH
    reference: str = Field(..., min_length=1, max_length=255)


class PaymentReasonSchema(BaseModel):
    """Schema for refund and failure request bodies."""

    reason: str = Field(..., min_length=1, max_length=500)


class PaymentResponseSchema(BaseModel):
    """Schema for a payment."""

    model_config = ConfigDict(from_attributes=True)

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
    checkout_url: Optional[str] = Field(
        None,
        description="Where the borrower completes the payment; only set for rail checkouts",
    )


class PaymentListResponseSchema(BaseModel):
    """Schema for payment listings."""

    payments: list[PaymentResponseSchema]


class RailEventResponseSchema(BaseModel):
    """Acknowledgement returned to the payment rail."""

    model_config = ConfigDict(from_attributes=True)

    received: bool
    processed: bool
    payment_id: Optional[str] = None
    status: Optional[str] = None
