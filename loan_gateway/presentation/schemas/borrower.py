"""Borrower and credit score Pydantic schemas."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RegisterBorrowerSchema(BaseModel):
    """Schema for POST /v1/borrowers request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "external_id": "drv_7f3a91",
                    "name": "Awa Diop",
                    "phone": "+221771234567",
                }
            ]
        }
    )
    external_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Driver identifier in the fleet telemetry feed",
    )
    name: str = Field(..., min_length=2, max_length=255)
    phone: str = Field(..., min_length=8, max_length=32)

    @field_validator("external_id")
    @classmethod
    def validate_external_id(cls, v: str) -> str:
        """Ensure external_id is not just whitespace."""
        if not v.strip():
            raise ValueError("external_id cannot be empty or whitespace")
        return v.strip()


class BorrowerResponseSchema(BaseModel):
    """Schema for a borrower."""

    model_config = ConfigDict(from_attributes=True)

    borrower_id: str
    external_id: str
    name: str
    phone: str
    account_status: str
    kyc_status: str
    credit_score: int = Field(..., ge=0, le=1000)
    credit_rating: str
    created_at: str


class EligibilityResponseSchema(BaseModel):
    """Schema for GET /v1/borrowers/{id}/eligibility response."""

    eligible: bool
    reasons: list[str] = Field(..., description="Every failing rule; empty when eligible")
    max_loan_amount: Decimal
    interest_rate: Optional[Decimal] = Field(
        None,
        description="Annual rate in percent; null when the rating lends nothing",
    )
    credit_score: int
    credit_rating: str
    kyc_status: str
    active_loans: int


class ScoreBreakdownSchema(BaseModel):
    """The five component sub-scores (0-1000 each)."""

    model_config = ConfigDict(from_attributes=True)

    payment_history: int
    loan_utilization: int
    account_age: int
    driving_performance: int
    kyc_completeness: int


class CreditScoreResponseSchema(BaseModel):
    """Schema for GET /v1/borrowers/{id}/credit-score response."""

    model_config = ConfigDict(from_attributes=True)

    borrower_id: str
    score: int = Field(..., ge=0, le=1000)
    rating: str
    max_loan_amount: Decimal
    interest_rate: Optional[Decimal]
    breakdown: Optional[ScoreBreakdownSchema]
    updated_at: Optional[str]


class CreditSnapshotSchema(BaseModel):
    """One recorded score recalculation."""

    model_config = ConfigDict(from_attributes=True)

    snapshot_id: str
    score: int
    rating: str
    breakdown: ScoreBreakdownSchema
    reason: str
    created_at: str


class CreditHistoryResponseSchema(BaseModel):
    """Schema for GET /v1/borrowers/{id}/credit-score/history response."""

    model_config = ConfigDict(from_attributes=True)

    borrower_id: str
    snapshots: list[CreditSnapshotSchema] = Field(..., description="Newest first")


class RecalculateScoreSchema(BaseModel):
    """Schema for POST /v1/borrowers/{id}/credit-score/recalculate request body."""

    reason: str = Field("Manual recalculation", min_length=1, max_length=255)
