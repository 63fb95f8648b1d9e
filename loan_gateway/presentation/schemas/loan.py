"""Loan Pydantic schemas."""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class LoanApplicationSchema(BaseModel):
    """Schema for POST /v1/loans request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "borrower_id": "550e8400-e29b-41d4-a716-446655440000",
                    "amount": "500000",
                    "term_weeks": 26,
                    "purpose": "Replace worn tyres and brake pads",
                }
            ]
        }
    )
    borrower_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    term_weeks: int = Field(..., gt=0)
    purpose: str


class ApproveLoanSchema(BaseModel):
    """Schema for POST /v1/loans/{id}/approve request body."""

    approved_by: str = Field(..., min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    term_weeks: Optional[int] = Field(None, gt=0)
    interest_rate: Optional[Decimal] = Field(None, ge=0, decimal_places=2)


class RejectLoanSchema(BaseModel):
    """Schema for POST /v1/loans/{id}/reject request body."""

    reason: str


class DefaultLoanSchema(BaseModel):
    """Schema for POST /v1/loans/{id}/default request body."""

    reason: str = Field(..., min_length=1)


class LoanResponseSchema(BaseModel):
    """Schema for a loan."""

    model_config = ConfigDict(from_attributes=True)

    loan_id: str
    borrower_id: str
    principal: Decimal
    interest_rate: Decimal
    term_weeks: int
    interest_amount: Decimal
    total_repayment: Decimal
    weekly_payment: Decimal
    amount_paid: Decimal
    outstanding_balance: Decimal
    status: str
    purpose: str
    approved_by: Optional[str]
    approved_at: Optional[str]
    start_date: Optional[str]
    end_date: Optional[str]
    disbursed_at: Optional[str]
    rejection_reason: Optional[str]
    defaulted_at: Optional[str]
    created_at: str


class AmortizationSchema(BaseModel):
    """Repayment figures computed for an application."""

    principal: Decimal
    interest_rate: Decimal
    term_weeks: int
    interest_amount: Decimal
    total_repayment: Decimal
    weekly_payment: Decimal


class LoanApplicationResponseSchema(BaseModel):
    """Schema for POST /v1/loans response."""

    loan: LoanResponseSchema
    calculations: AmortizationSchema


class ScheduleEntrySchema(BaseModel):
    """Single installment within a schedule."""

    model_config = ConfigDict(from_attributes=True)

    entry_id: str
    week_number: int
    due_date: str
    amount_due: Decimal
    amount_paid: Decimal
    status: str
    paid_at: Optional[str]


class LoanScheduleResponseSchema(BaseModel):
    """Schema for GET /v1/loans/{id}/schedule response."""

    model_config = ConfigDict(from_attributes=True)

    loan_id: str
    total_repayment: Decimal
    entries: list[ScheduleEntrySchema] = Field(..., description="Ordered by week number")


class LoanListResponseSchema(BaseModel):
    """Schema for GET /v1/loans response."""

    model_config = ConfigDict(from_attributes=True)

    loans: list[LoanResponseSchema]
    page: int
    limit: int
    total: int
    total_pages: int
