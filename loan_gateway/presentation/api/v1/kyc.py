"""KYC review API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends

from loan_gateway.application.dto import ReviewKycDocumentRequest
from loan_gateway.application.services import KycService
from loan_gateway.core.dependencies import get_kyc_service
from loan_gateway.presentation.schemas import (
    ErrorResponseSchema,
    KycDocumentResponseSchema,
    ReviewKycDocumentSchema,
)

kyc_router = APIRouter(
    prefix="/kyc",
    responses={
        404: {"model": ErrorResponseSchema, "description": "Document not found"},
        409: {"model": ErrorResponseSchema, "description": "Document already reviewed"},
        422: {"model": ErrorResponseSchema, "description": "Invalid request"},
    },
)


@kyc_router.post(
    "/documents/{document_id}/review",
    response_model=KycDocumentResponseSchema,
    summary="Review KYC Document",
    description="""
    Approve or reject a pending document.

    Approving the last missing identity, license or selfie document
    verifies the borrower and recalculates their credit score.
    """,
)
async def review_kyc_document(
    document_id: UUID,
    request: ReviewKycDocumentSchema,
    kyc_service: Annotated[KycService, Depends(get_kyc_service)],
) -> KycDocumentResponseSchema:
    dto = ReviewKycDocumentRequest(
        status=request.status,
        reviewed_by=request.reviewed_by,
        rejection_reason=request.rejection_reason,
    )
    response = await kyc_service.review(document_id, dto)
    return KycDocumentResponseSchema.model_validate(response)
