"""Payment API endpoints, including the payment rail callback."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends

from loan_gateway.application.dto import InitiatePaymentRequest, ManualPaymentRequest
from loan_gateway.application.services import PaymentService
from loan_gateway.core.dependencies import get_payment_service
from loan_gateway.presentation.schemas import (
    ErrorResponseSchema,
    InitiatePaymentSchema,
    ManualPaymentSchema,
    PaymentListResponseSchema,
    PaymentReasonSchema,
    PaymentResponseSchema,
    RailEventResponseSchema,
)

payment_router = APIRouter(
    prefix="/payments",
    responses={
        404: {"model": ErrorResponseSchema, "description": "Payment, loan or borrower not found"},
        409: {"model": ErrorResponseSchema, "description": "Transition not allowed"},
        422: {"model": ErrorResponseSchema, "description": "Invalid request"},
    },
)


@payment_router.post(
    "",
    response_model=PaymentResponseSchema,
    status_code=201,
    summary="Initiate Payment",
    description="""
    Start a repayment on an ACTIVE loan.

    In mock mode the payment settles at once; otherwise the response
    carries the checkout URL and the payment settles when the payment
    rail reports back.
    """,
    responses={
        503: {"model": ErrorResponseSchema, "description": "Payment rail unavailable"},
    },
)
async def initiate_payment(
    request: InitiatePaymentSchema,
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentResponseSchema:
    dto = InitiatePaymentRequest(
        borrower_id=str(request.borrower_id),
        loan_id=str(request.loan_id),
        amount=request.amount,
        method=request.method,
        reference=request.reference,
    )
    return PaymentResponseSchema.model_validate(await payment_service.initiate(dto))


@payment_router.post(
    "/manual",
    response_model=PaymentResponseSchema,
    status_code=201,
    summary="Record Manual Payment",
    description="Record and apply a payment collected outside the payment rail.",
)
async def record_manual_payment(
    request: ManualPaymentSchema,
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentResponseSchema:
    dto = ManualPaymentRequest(
        borrower_id=str(request.borrower_id),
        loan_id=str(request.loan_id),
        amount=request.amount,
        method=request.method,
        reference=request.reference,
    )
    return PaymentResponseSchema.model_validate(await payment_service.record_manual(dto))


@payment_router.post(
    "/rail/webhook",
    response_model=RailEventResponseSchema,
    summary="Payment Rail Webhook",
    description="Receives terminal checkout events from the payment rail.",
)
async def rail_webhook(
    payload: Annotated[dict[str, Any], Body()],
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
) -> RailEventResponseSchema:
    result = await payment_service.handle_rail_event(payload)
    return RailEventResponseSchema.model_validate(result)


@payment_router.get(
    "/loan/{loan_id}",
    response_model=PaymentListResponseSchema,
    summary="List Loan Payments",
)
async def list_loan_payments(
    loan_id: UUID,
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentListResponseSchema:
    payments = await payment_service.list_by_loan(loan_id)
    return PaymentListResponseSchema(
        payments=[PaymentResponseSchema.model_validate(p) for p in payments]
    )


@payment_router.get(
    "/{payment_id}",
    response_model=PaymentResponseSchema,
    summary="Get Payment",
)
async def get_payment(
    payment_id: UUID,
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentResponseSchema:
    return PaymentResponseSchema.model_validate(await payment_service.get(payment_id))


@payment_router.post(
    "/{payment_id}/refund",
    response_model=PaymentResponseSchema,
    summary="Refund Payment",
    description="Undo a successful payment's allocations and reopen a completed loan.",
)
async def refund_payment(
    payment_id: UUID,
    request: PaymentReasonSchema,
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentResponseSchema:
    response = await payment_service.refund(payment_id, request.reason)
    return PaymentResponseSchema.model_validate(response)


@payment_router.post(
    "/{payment_id}/fail",
    response_model=PaymentResponseSchema,
    summary="Mark Payment Failed",
)
async def fail_payment(
    payment_id: UUID,
    request: PaymentReasonSchema,
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentResponseSchema:
    response = await payment_service.mark_failed(payment_id, request.reason)
    return PaymentResponseSchema.model_validate(response)
