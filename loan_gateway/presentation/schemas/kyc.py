"""KYC Pydantic schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from loan_gateway.domain.entities import DocumentStatus, DocumentType


class SubmitKycDocumentSchema(BaseModel):
    """Schema for POST /v1/borrowers/{id}/kyc/documents request body."""

    document_type: DocumentType
    document_number: Optional[str] = Field(None, max_length=100)


class ReviewKycDocumentSchema(BaseModel):
    """Schema for POST /v1/kyc/documents/{id}/review request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "status": "REJECTED",
                    "reviewed_by": "admin_01",
                    "rejection_reason": "Document photo is blurry",
                }
            ]
        }
    )
    status: DocumentStatus
    reviewed_by: str = Field(..., min_length=1, max_length=255)
    rejection_reason: Optional[str] = Field(
        None,
        description="Required when rejecting",
    )


class KycDocumentResponseSchema(BaseModel):
    """Schema for a KYC document."""

    model_config = ConfigDict(from_attributes=True)

    document_id: str
    borrower_id: str
    document_type: str
    document_number: Optional[str]
    status: str
    rejection_reason: Optional[str]
    reviewed_by: Optional[str]
    reviewed_at: Optional[str]
    created_at: str


class KycStatusResponseSchema(BaseModel):
    """Schema for GET /v1/borrowers/{id}/kyc response."""

    model_config = ConfigDict(from_attributes=True)

    borrower_id: str
    kyc_status: str
    documents: list[KycDocumentResponseSchema] = Field(..., description="Newest first")
    missing_documents: list[str]
    is_complete: bool
