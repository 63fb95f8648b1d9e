"""Pydantic schema for API error responses."""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponseSchema(BaseModel):
    """Standard error response format for all API errors."""
    error: str = Field(
        ...,
        description="Error code",
        examples=["LOAN_NOT_FOUND"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Loan not found: 550e8400-e29b-41d4-a716-446655440000"],
    )
    request_id: str | None = Field(
        None,
        description="Request ID for tracing",
    )
    details: dict[str, Any] | None = Field(
        None,
        description="Failing policy reasons, validation errors or the current status of a conflicting entity",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": "LOAN_NOT_ELIGIBLE",
                    "message": "Not eligible for loan",
                    "request_id": "abc123",
                    "details": {
                        "reasons": [
                            "KYC verification required",
                            "Account must be at least 30 days old (current: 3 days)",
                        ]
                    },
                }
            ]
        }
    }
