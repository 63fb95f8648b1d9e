"""Payment service - repayments, allocation and refunds."""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncIterator, Dict, List, Optional, Tuple
from uuid import UUID

import structlog

from loan_gateway.application.dto import (
    InitiatePaymentRequest,
    ManualPaymentRequest,
    PaymentResponse,
    RailEventResult,
)
from loan_gateway.core.metrics import record_payment
from loan_gateway.domain.entities import (
    Borrower,
    Loan,
    LoanStatus,
    NotificationType,
    Payment,
    PaymentMethod,
    PaymentStatus,
    RailEventStatus,
)
from loan_gateway.domain.exceptions import (
    BorrowerNotFoundException,
    ExternalDependencyException,
    LoanNotActiveException,
    LoanNotFoundException,
    PaymentNotFoundException,
    ValidationException,
)
from loan_gateway.domain.interfaces import (
    BorrowerRepository,
    LoanRepository,
    PaymentAllocationRepository,
    PaymentRailClient,
    PaymentRepository,
    ScheduleEntryRepository,
    UnitOfWork,
)
from loan_gateway.service.lending import (
    LendingSettings,
    allocate_payment,
    credit_loan,
    debit_loan,
    lending_settings,
    open_entries,
    reverse_allocations,
)
from loan_gateway.utils.date_utils import utcnow
from loan_gateway.utils.money import ZERO

from .credit_service import CreditService
from .notifier import Notifier

logger = structlog.get_logger(__name__)

RAIL_FAILURE_REASON = "Payment failed at provider"

# Serializes settlement of payments on the same loan within this process.
# An entry lives only while some request holds or waits for it.
_loan_locks: Dict[UUID, asyncio.Lock] = {}
_loan_lock_users: Dict[UUID, int] = defaultdict(int)


@asynccontextmanager
async def loan_lock(loan_id: UUID) -> AsyncIterator[None]:
    lock = _loan_locks.setdefault(loan_id, asyncio.Lock())
    _loan_lock_users[loan_id] += 1
    try:
        async with lock:
            yield
    finally:
        _loan_lock_users[loan_id] -= 1
        if not _loan_lock_users[loan_id]:
            del _loan_lock_users[loan_id]
            del _loan_locks[loan_id]


class PaymentService:
    """
    Application service for payment use cases.

    Settling a payment (success, failure or refund) holds the loan's
    in-process lock and locks the payment and loan rows, so payments on
    one loan are applied one at a time.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        borrower_repository: BorrowerRepository,
        loan_repository: LoanRepository,
        schedule_repository: ScheduleEntryRepository,
        payment_repository: PaymentRepository,
        allocation_repository: PaymentAllocationRepository,
        payment_rail: PaymentRailClient,
        credit_service: CreditService,
        notifier: Notifier,
        mock_mode: bool = True,
        currency: str = "XOF",
        settings: LendingSettings = lending_settings,
    ):
        self._uow = uow
        self._borrower_repo = borrower_repository
        self._loan_repo = loan_repository
        self._schedule_repo = schedule_repository
        self._payment_repo = payment_repository
        self._allocation_repo = allocation_repository
        self._payment_rail = payment_rail
        self._credit_service = credit_service
        self._notifier = notifier
        self._mock_mode = mock_mode
        self._currency = currency
        self._settings = settings

    async def initiate(self, request: InitiatePaymentRequest) -> PaymentResponse:
        """
        Start a borrower repayment.

        In mock mode the payment settles immediately. Otherwise a checkout
        is opened with the payment rail and the payment stays PENDING
        until the rail reports back.

        Raises:
            ValidationException: If the amount is out of bounds or exceeds
                the outstanding balance
            BorrowerNotFoundException: If the borrower doesn't exist
            LoanNotFoundException: If the loan doesn't exist or belongs to
                someone else
            LoanNotActiveException: If the loan is not being repaid
            PaymentRailException: If the checkout could not be opened
        """
        errors = request.validate(self._settings)
        if errors:
            raise ValidationException("; ".join(errors), errors)

        borrower, payment = await self._create_payment(
            borrower_id=UUID(request.borrower_id),
            loan_id=UUID(request.loan_id),
            amount=request.amount,
            method=request.method,
            reference=request.reference,
        )

        if self._mock_mode:
            return await self.process_success(payment.id)

        try:
            checkout = await self._payment_rail.initiate_checkout(
                amount=payment.amount,
                currency=self._currency,
                payer_ref=borrower.phone,
                description=f"Loan repayment {payment.loan_id}",
                client_reference=str(payment.id),
            )
        except ExternalDependencyException as e:
            logger.error(
                "checkout_failed",
                payment_id=str(payment.id),
                error=e.message,
                code=e.code,
            )
            await self.mark_failed(payment.id, f"Checkout could not be opened: {e.message}")
            raise

        async with self._uow.transaction():
            payment.provider_reference = checkout.provider_reference
            await self._payment_repo.update(payment)

        logger.info(
            "payment_initiated",
            payment_id=str(payment.id),
            loan_id=str(payment.loan_id),
            amount=str(payment.amount),
            provider_reference=checkout.provider_reference,
        )

        return PaymentResponse.from_entity(payment, checkout_url=checkout.checkout_url)

    async def record_manual(self, request: ManualPaymentRequest) -> PaymentResponse:
        """
        Record a payment collected outside the payment rail and apply it.

        Raises:
            ValidationException: If the amount is too small, exceeds the
                outstanding balance or the reference is missing
            BorrowerNotFoundException: If the borrower doesn't exist
            LoanNotFoundException: If the loan doesn't exist
            LoanNotActiveException: If the loan is not being repaid
        """
        errors = request.validate(self._settings)
        if errors:
            raise ValidationException("; ".join(errors), errors)

        _, payment = await self._create_payment(
            borrower_id=UUID(request.borrower_id),
            loan_id=UUID(request.loan_id),
            amount=request.amount,
            method=request.method,
            reference=request.reference.strip(),
        )
        logger.info("manual_payment_recorded", payment_id=str(payment.id))

        return await self.process_success(payment.id)

    async def process_success(self, payment_id: UUID) -> PaymentResponse:
        """
        Apply a successful payment to its loan.

        Marks the payment SUCCESS, spreads it over the open installments
        oldest first, adds it to the loan's paid amount and completes the
        loan once fully repaid. Everything commits together.

        Raises:
            PaymentNotFoundException: If the payment doesn't exist
            InvalidPaymentTransitionException: If the payment is not PENDING
        """
        loan_id = await self._loan_id_of(payment_id)

        async with loan_lock(loan_id):
            async with self._uow.transaction():
                payment = await self._get_payment(payment_id, for_update=True)
                payment.transition_to(PaymentStatus.SUCCESS)
                payment.processed_at = utcnow()

                loan = await self._get_loan(payment.loan_id, for_update=True)
                entries = await self._schedule_repo.list_by_loan(loan.id)

                allocation = allocate_payment(
                    payment.id, payment.amount, entries, payment.processed_at
                )
                completed = credit_loan(loan, payment.amount)

                payment.schedule_entry_id = allocation.first_entry_id
                payment.unallocated_amount = allocation.unallocated

                await self._schedule_repo.update_all(allocation.touched)
                await self._allocation_repo.save_all(allocation.allocations)
                await self._loan_repo.update(loan)
                await self._payment_repo.update(payment)

        record_payment(PaymentStatus.SUCCESS.value, allocation.allocated)
        log = logger.bind(payment_id=str(payment.id), loan_id=str(loan.id))
        if allocation.unallocated > ZERO:
            log.warning("payment_overpaid", unallocated=str(allocation.unallocated))
        log.info(
            "payment_processed",
            amount=str(payment.amount),
            entries_touched=len(allocation.touched),
            outstanding_balance=str(loan.outstanding_balance),
            loan_completed=completed,
        )

        await self._credit_service.refresh(payment.borrower_id, "Payment processed")
        await self._notifier.notify(
            payment.borrower_id,
            NotificationType.PAYMENT_SUCCESS,
            payment_id=str(payment.id),
            loan_id=str(loan.id),
            amount=str(payment.amount),
            outstanding_balance=str(loan.outstanding_balance),
            loan_completed=completed,
        )

        return PaymentResponse.from_entity(payment)

    async def mark_failed(self, payment_id: UUID, reason: str) -> PaymentResponse:
        """
        Record that a pending payment failed.

        The loan and its schedule are untouched. The payment is linked to
        the oldest open installment it was meant for, so it counts as a
        missed payment in the borrower's history.

        Raises:
            ValidationException: If no reason is given
            PaymentNotFoundException: If the payment doesn't exist
            InvalidPaymentTransitionException: If the payment is not PENDING
        """
        if not reason or not reason.strip():
            raise ValidationException("reason is required")

        loan_id = await self._loan_id_of(payment_id)

        async with loan_lock(loan_id):
            async with self._uow.transaction():
                payment = await self._get_payment(payment_id, for_update=True)
                payment.transition_to(PaymentStatus.FAILED)
                payment.failure_reason = reason.strip()
                payment.processed_at = utcnow()

                pending = open_entries(await self._schedule_repo.list_by_loan(payment.loan_id))
                if pending:
                    payment.schedule_entry_id = pending[0].id

                await self._payment_repo.update(payment)

        record_payment(PaymentStatus.FAILED.value)
        logger.warning(
            "payment_failed",
            payment_id=str(payment.id),
            loan_id=str(payment.loan_id),
            reason=payment.failure_reason,
        )

        await self._notifier.notify(
            payment.borrower_id,
            NotificationType.PAYMENT_FAILED,
            payment_id=str(payment.id),
            loan_id=str(payment.loan_id),
            amount=str(payment.amount),
            reason=payment.failure_reason,
        )

        return PaymentResponse.from_entity(payment)

    async def refund(self, payment_id: UUID, reason: str) -> PaymentResponse:
        """
        Refund a successful payment.

        Undoes exactly what the payment allocated, latest week first, and
        removes it from the loan's paid amount. A loan the payment had
        completed goes back to ACTIVE.

        Raises:
            ValidationException: If no reason is given
            PaymentNotFoundException: If the payment doesn't exist
            InvalidPaymentTransitionException: If the payment is not SUCCESS
        """
        if not reason or not reason.strip():
            raise ValidationException("reason is required")

        loan_id = await self._loan_id_of(payment_id)

        async with loan_lock(loan_id):
            async with self._uow.transaction():
                payment = await self._get_payment(payment_id, for_update=True)
                payment.transition_to(PaymentStatus.REFUNDED)
                payment.refunded_at = utcnow()

                loan = await self._get_loan(payment.loan_id, for_update=True)
                allocations = await self._allocation_repo.list_by_payment(payment.id)
                entries = await self._schedule_repo.list_by_loan(loan.id)

                touched = reverse_allocations(allocations, entries)
                reopened = debit_loan(loan, payment.amount)

                await self._schedule_repo.update_all(touched)
                await self._loan_repo.update(loan)
                await self._payment_repo.update(payment)

        record_payment(PaymentStatus.REFUNDED.value)
        logger.info(
            "payment_refunded",
            payment_id=str(payment.id),
            loan_id=str(loan.id),
            amount=str(payment.amount),
            reason=reason.strip(),
            loan_reopened=reopened,
        )

        await self._credit_service.refresh(payment.borrower_id, "Payment refunded")
        await self._notifier.notify(
            payment.borrower_id,
            NotificationType.PAYMENT_REFUNDED,
            payment_id=str(payment.id),
            loan_id=str(loan.id),
            amount=str(payment.amount),
            reason=reason.strip(),
        )

        return PaymentResponse.from_entity(payment)

    async def handle_rail_event(self, payload: dict) -> RailEventResult:
        """
        Settle a payment from a payment rail callback.

        Events that cannot be parsed, that reference an unknown payment or
        that arrive after the payment already settled are acknowledged
        without effect.

        A success whose amount or currency differs from the payment is
        acknowledged too and leaves the payment PENDING for manual review.
        """
        event = self._payment_rail.parse_event(payload)
        if event is None:
            logger.warning("rail_event_ignored", event_type=payload.get("type"))
            return RailEventResult(received=True, processed=False)

        log = logger.bind(
            transaction_id=event.transaction_id,
            client_reference=event.client_reference,
            status=event.status.value,
        )

        payment = await self._payment_repo.get_by_provider_reference(event.transaction_id)
        if payment is None:
            log.warning("rail_event_unknown_payment")
            return RailEventResult(received=True, processed=False)

        if payment.status != PaymentStatus.PENDING:
            log.info("rail_event_duplicate", payment_status=payment.status.value)
            return RailEventResult(
                received=True,
                processed=False,
                payment_id=str(payment.id),
                status=payment.status.value,
            )

        if event.status == RailEventStatus.SUCCESS and (
            event.amount != payment.amount or event.currency != self._currency
        ):
            log.error(
                "rail_event_amount_mismatch",
                payment_id=str(payment.id),
                expected_amount=str(payment.amount),
                expected_currency=self._currency,
                amount=str(event.amount),
                currency=event.currency,
            )
            return RailEventResult(
                received=True,
                processed=False,
                payment_id=str(payment.id),
                status=payment.status.value,
            )

        if event.status == RailEventStatus.SUCCESS:
            result = await self.process_success(payment.id)
        else:
            result = await self.mark_failed(payment.id, RAIL_FAILURE_REASON)

        log.info("rail_event_processed", payment_id=result.payment_id)
        return RailEventResult(
            received=True,
            processed=True,
            payment_id=result.payment_id,
            status=result.status,
        )

    async def get(self, payment_id: UUID) -> PaymentResponse:
        """
        Get a payment by ID.

        Raises:
            PaymentNotFoundException: If the payment doesn't exist
        """
        return PaymentResponse.from_entity(await self._get_payment(payment_id))

    async def list_by_loan(self, loan_id: UUID) -> List[PaymentResponse]:
        """
        Get a loan's payments.

        Raises:
            LoanNotFoundException: If the loan doesn't exist
        """
        loan = await self._get_loan(loan_id)
        payments = await self._payment_repo.list_by_loan(loan.id)
        return [PaymentResponse.from_entity(p) for p in payments]

    async def list_by_borrower(
        self,
        borrower_id: UUID,
        page: int = 1,
        limit: int = 20,
    ) -> List[PaymentResponse]:
        """
        Get a page of a borrower's payments, newest first.

        Raises:
            BorrowerNotFoundException: If the borrower doesn't exist
        """
        borrower = await self._get_borrower(borrower_id)
        page = max(1, page)
        limit = max(1, min(100, limit))
        payments = await self._payment_repo.list_by_borrower(
            borrower.id, limit=limit, offset=(page - 1) * limit
        )
        return [PaymentResponse.from_entity(p) for p in payments]

    async def _create_payment(
        self,
        borrower_id: UUID,
        loan_id: UUID,
        amount: Decimal,
        method: PaymentMethod,
        reference: Optional[str],
    ) -> Tuple[Borrower, Payment]:
        borrower = await self._get_borrower(borrower_id)

        async with loan_lock(loan_id):
            async with self._uow.transaction():
                loan = await self._loan_repo.get_by_id(loan_id, for_update=True)
                if loan is None or loan.borrower_id != borrower.id:
                    raise LoanNotFoundException(str(loan_id))
                if loan.status != LoanStatus.ACTIVE:
                    raise LoanNotActiveException(str(loan.id), loan.status.value)

                payable = loan.outstanding_balance - await self._payment_repo.pending_total(loan.id)
                if amount > payable:
                    raise ValidationException(
                        f"Payment amount exceeds outstanding balance of {max(payable, ZERO)}"
                    )

                # The last repayment may fall below the usual minimum
                minimum = min(self._settings.min_payment_amount, payable)
                if amount < minimum:
                    raise ValidationException(f"amount must be at least {minimum}")

                payment = Payment(
                    loan_id=loan.id,
                    borrower_id=borrower.id,
                    amount=amount,
                    method=method,
                    reference=reference,
                )
                await self._payment_repo.save(payment)

        return borrower, payment

    async def _loan_id_of(self, payment_id: UUID) -> UUID:
        return (await self._get_payment(payment_id)).loan_id

    async def _get_payment(self, payment_id: UUID, for_update: bool = False) -> Payment:
        payment = await self._payment_repo.get_by_id(payment_id, for_update=for_update)
        if payment is None:
            raise PaymentNotFoundException(str(payment_id))
        return payment

    async def _get_loan(self, loan_id: UUID, for_update: bool = False) -> Loan:
        loan = await self._loan_repo.get_by_id(loan_id, for_update=for_update)
        if loan is None:
            raise LoanNotFoundException(str(loan_id))
        return loan

    async def _get_borrower(self, borrower_id: UUID) -> Borrower:
        borrower = await self._borrower_repo.get_by_id(borrower_id)
        if borrower is None:
            raise BorrowerNotFoundException(str(borrower_id))
        return borrower
