"""Borrower API endpoints: registration, eligibility and credit score."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query

from loan_gateway.application.dto import RegisterBorrowerRequest, SubmitKycDocumentRequest
from loan_gateway.application.services import (
    BorrowerService,
    CreditService,
    KycService,
    LoanService,
    PaymentService,
)
from loan_gateway.core.dependencies import (
    get_borrower_service,
    get_credit_service,
    get_kyc_service,
    get_loan_service,
    get_payment_service,
)
from loan_gateway.presentation.schemas import (
    BorrowerResponseSchema,
    CreditHistoryResponseSchema,
    CreditScoreResponseSchema,
    EligibilityResponseSchema,
    ErrorResponseSchema,
    KycDocumentResponseSchema,
    KycStatusResponseSchema,
    LoanResponseSchema,
    PaymentListResponseSchema,
    PaymentResponseSchema,
    RecalculateScoreSchema,
    RegisterBorrowerSchema,
    SubmitKycDocumentSchema,
)

borrower_router = APIRouter(
    prefix="/borrowers",
    responses={
        404: {"model": ErrorResponseSchema, "description": "Borrower not found"},
        422: {"model": ErrorResponseSchema, "description": "Invalid request"},
    },
)


@borrower_router.post(
    "",
    response_model=BorrowerResponseSchema,
    status_code=201,
    summary="Register Borrower",
    description="Register a driver. The borrower starts with a 500 (C) credit score.",
    responses={
        409: {"model": ErrorResponseSchema, "description": "External id already registered"},
    },
)
async def register_borrower(
    request: RegisterBorrowerSchema,
    borrower_service: Annotated[BorrowerService, Depends(get_borrower_service)],
) -> BorrowerResponseSchema:
    dto = RegisterBorrowerRequest(
        external_id=request.external_id,
        name=request.name,
        phone=request.phone,
    )
    response = await borrower_service.register(dto)
    return BorrowerResponseSchema.model_validate(response)


@borrower_router.get(
    "/{borrower_id}",
    response_model=BorrowerResponseSchema,
    summary="Get Borrower",
)
async def get_borrower(
    borrower_id: UUID,
    borrower_service: Annotated[BorrowerService, Depends(get_borrower_service)],
) -> BorrowerResponseSchema:
    response = await borrower_service.get(borrower_id)
    return BorrowerResponseSchema.model_validate(response)


@borrower_router.get(
    "/{borrower_id}/eligibility",
    response_model=EligibilityResponseSchema,
    summary="Check Loan Eligibility",
    description="""
    Evaluate the borrower against the lending policy.

    Every rule is checked and every failing rule is reported, along with
    the maximum amount and rate the borrower's rating unlocks.
    """,
)
async def check_eligibility(
    borrower_id: UUID,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> EligibilityResponseSchema:
    result = await loan_service.check_eligibility(borrower_id)

    return EligibilityResponseSchema(
        eligible=result.eligible,
        reasons=list(result.reasons),
        max_loan_amount=result.max_loan_amount,
        interest_rate=result.interest_rate,
        credit_score=result.credit_score,
        credit_rating=result.credit_rating.value,
        kyc_status=result.kyc_status.value,
        active_loans=result.active_loans,
    )


@borrower_router.get(
    "/{borrower_id}/credit-score",
    response_model=CreditScoreResponseSchema,
    summary="Get Credit Score",
)
async def get_credit_score(
    borrower_id: UUID,
    credit_service: Annotated[CreditService, Depends(get_credit_service)],
) -> CreditScoreResponseSchema:
    response = await credit_service.get_current_score(borrower_id)
    return CreditScoreResponseSchema.model_validate(response)


@borrower_router.get(
    "/{borrower_id}/credit-score/history",
    response_model=CreditHistoryResponseSchema,
    summary="Get Credit Score History",
    description="Recorded score recalculations, newest first.",
)
async def get_credit_history(
    borrower_id: UUID,
    credit_service: Annotated[CreditService, Depends(get_credit_service)],
    limit: Annotated[
        int,
        Query(ge=1, le=100, description="Maximum number of snapshots to return"),
    ] = 20,
) -> CreditHistoryResponseSchema:
    response = await credit_service.get_history(borrower_id, limit)
    return CreditHistoryResponseSchema.model_validate(response)


@borrower_router.post(
    "/{borrower_id}/credit-score/recalculate",
    response_model=CreditScoreResponseSchema,
    summary="Recalculate Credit Score",
)
async def recalculate_credit_score(
    borrower_id: UUID,
    credit_service: Annotated[CreditService, Depends(get_credit_service)],
    request: Annotated[RecalculateScoreSchema, Body()] = RecalculateScoreSchema(),
) -> CreditScoreResponseSchema:
    await credit_service.recalculate(borrower_id, request.reason)
    response = await credit_service.get_current_score(borrower_id)
    return CreditScoreResponseSchema.model_validate(response)


@borrower_router.get(
    "/{borrower_id}/loans",
    response_model=list[LoanResponseSchema],
    summary="List Borrower Loans",
    description="The borrower's loans, newest first.",
)
async def list_borrower_loans(
    borrower_id: UUID,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> list[LoanResponseSchema]:
    loans = await loan_service.list_by_borrower(borrower_id)
    return [LoanResponseSchema.model_validate(loan) for loan in loans]


@borrower_router.get(
    "/{borrower_id}/payments",
    response_model=PaymentListResponseSchema,
    summary="List Borrower Payments",
    description="The borrower's payments, newest first.",
)
async def list_borrower_payments(
    borrower_id: UUID,
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> PaymentListResponseSchema:
    payments = await payment_service.list_by_borrower(borrower_id, page, limit)
    return PaymentListResponseSchema(
        payments=[PaymentResponseSchema.model_validate(p) for p in payments]
    )


@borrower_router.post(
    "/{borrower_id}/kyc/documents",
    response_model=KycDocumentResponseSchema,
    status_code=201,
    summary="Submit KYC Document",
)
async def submit_kyc_document(
    borrower_id: UUID,
    request: SubmitKycDocumentSchema,
    kyc_service: Annotated[KycService, Depends(get_kyc_service)],
) -> KycDocumentResponseSchema:
    dto = SubmitKycDocumentRequest(
        borrower_id=str(borrower_id),
        document_type=request.document_type,
        document_number=request.document_number,
    )
    response = await kyc_service.submit(dto)
    return KycDocumentResponseSchema.model_validate(response)


@borrower_router.get(
    "/{borrower_id}/kyc",
    response_model=KycStatusResponseSchema,
    summary="Get KYC Status",
    description="Submitted documents and the required documents still missing.",
)
async def get_kyc_status(
    borrower_id: UUID,
    kyc_service: Annotated[KycService, Depends(get_kyc_service)],
) -> KycStatusResponseSchema:
    response = await kyc_service.status(borrower_id)
    return KycStatusResponseSchema.model_validate(response)
