"""Loan API endpoints."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from loan_gateway.application.dto import (
    ApproveLoanRequest,
    DefaultLoanRequest,
    LoanApplicationRequest,
    RejectLoanRequest,
)
from loan_gateway.application.services import LoanService
from loan_gateway.core.dependencies import get_loan_service
from loan_gateway.domain.entities import LoanStatus
from loan_gateway.presentation.schemas import (
    ApproveLoanSchema,
    DefaultLoanSchema,
    ErrorResponseSchema,
    LoanApplicationResponseSchema,
    LoanApplicationSchema,
    LoanListResponseSchema,
    LoanResponseSchema,
    LoanScheduleResponseSchema,
    RejectLoanSchema,
)

loan_router = APIRouter(
    prefix="/loans",
    responses={
        404: {"model": ErrorResponseSchema, "description": "Loan or borrower not found"},
        409: {"model": ErrorResponseSchema, "description": "Transition not allowed"},
        422: {"model": ErrorResponseSchema, "description": "Invalid request or policy violation"},
    },
)


@loan_router.post(
    "",
    response_model=LoanApplicationResponseSchema,
    status_code=201,
    summary="Apply for Loan",
    description="""
    Create a PENDING loan application.

    The borrower must pass every eligibility rule and the amount must not
    exceed what their rating allows. The returned calculations are a
    preview at the rating's rate.
    """,
)
async def apply_for_loan(
    request: LoanApplicationSchema,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanApplicationResponseSchema:
    dto = LoanApplicationRequest(
        borrower_id=str(request.borrower_id),
        amount=request.amount,
        term_weeks=request.term_weeks,
        purpose=request.purpose,
    )
    response = await loan_service.apply(dto)

    return LoanApplicationResponseSchema(
        loan=LoanResponseSchema.model_validate(response.loan),
        calculations=response.calculations,
    )


@loan_router.get(
    "",
    response_model=LoanListResponseSchema,
    summary="List Loans",
    description="Page through all loans, newest first.",
)
async def list_loans(
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
    status: Annotated[Optional[LoanStatus], Query()] = None,
    borrower_id: Annotated[Optional[UUID], Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> LoanListResponseSchema:
    response = await loan_service.list_loans(status, borrower_id, page, limit)
    return LoanListResponseSchema.model_validate(response)


@loan_router.get(
    "/{loan_id}",
    response_model=LoanResponseSchema,
    summary="Get Loan",
)
async def get_loan(
    loan_id: UUID,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanResponseSchema:
    return LoanResponseSchema.model_validate(await loan_service.get(loan_id))


@loan_router.get(
    "/{loan_id}/schedule",
    response_model=LoanScheduleResponseSchema,
    summary="Get Repayment Schedule",
)
async def get_schedule(
    loan_id: UUID,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanScheduleResponseSchema:
    response = await loan_service.get_schedule(loan_id)
    return LoanScheduleResponseSchema.model_validate(response)


@loan_router.post(
    "/{loan_id}/approve",
    response_model=LoanResponseSchema,
    summary="Approve Loan",
    description="Approve a PENDING loan, optionally overriding amount, term or rate.",
)
async def approve_loan(
    loan_id: UUID,
    request: ApproveLoanSchema,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanResponseSchema:
    dto = ApproveLoanRequest(
        approved_by=request.approved_by,
        amount=request.amount,
        term_weeks=request.term_weeks,
        interest_rate=request.interest_rate,
    )
    return LoanResponseSchema.model_validate(await loan_service.approve(loan_id, dto))


@loan_router.post(
    "/{loan_id}/reject",
    response_model=LoanResponseSchema,
    summary="Reject Loan",
)
async def reject_loan(
    loan_id: UUID,
    request: RejectLoanSchema,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanResponseSchema:
    dto = RejectLoanRequest(reason=request.reason)
    return LoanResponseSchema.model_validate(await loan_service.reject(loan_id, dto))


@loan_router.post(
    "/{loan_id}/disburse",
    response_model=LoanResponseSchema,
    summary="Disburse Loan",
)
async def disburse_loan(
    loan_id: UUID,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanResponseSchema:
    return LoanResponseSchema.model_validate(await loan_service.disburse(loan_id))


@loan_router.post(
    "/{loan_id}/default",
    response_model=LoanResponseSchema,
    summary="Mark Loan Defaulted",
)
async def default_loan(
    loan_id: UUID,
    request: DefaultLoanSchema,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanResponseSchema:
    dto = DefaultLoanRequest(reason=request.reason)
    return LoanResponseSchema.model_validate(await loan_service.mark_defaulted(loan_id, dto))
