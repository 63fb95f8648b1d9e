"""Loan service - orchestrates the loan lifecycle."""

from typing import List, Optional
from uuid import UUID

import structlog

from loan_gateway.application.dto import (
    ApproveLoanRequest,
    DefaultLoanRequest,
    LoanApplicationRequest,
    LoanApplicationResponse,
    LoanListResponse,
    LoanResponse,
    LoanScheduleResponse,
    RejectLoanRequest,
)
from loan_gateway.core.metrics import (
    record_default,
    record_disbursement,
    record_loan_application,
    record_loan_decision,
)
from loan_gateway.domain.entities import Borrower, Loan, LoanStatus, NotificationType
from loan_gateway.domain.exceptions import (
    BorrowerNotFoundException,
    LoanAmountExceededException,
    LoanNotEligibleException,
    LoanNotFoundException,
    OpenLoanApplicationException,
    ValidationException,
)
from loan_gateway.domain.interfaces import (
    BorrowerRepository,
    LoanRepository,
    ScheduleEntryRepository,
    UnitOfWork,
)
from loan_gateway.service.lending import (
    EligibilityResult,
    LendingSettings,
    amortize,
    evaluate_eligibility,
    generate_schedule,
    lending_settings,
)
from loan_gateway.service.scoring import ScoringSettings, scoring_settings
from loan_gateway.utils.date_utils import add_weeks, utcnow

from .credit_service import CreditService
from .notifier import Notifier

logger = structlog.get_logger(__name__)

OPEN_APPLICATION_STATUSES = (LoanStatus.PENDING, LoanStatus.APPROVED)


class LoanService:
    """
    Application service for loan use cases.

    Every state change goes through the loan's transition table; anything
    it does not list is rejected with the loan's current status.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        borrower_repository: BorrowerRepository,
        loan_repository: LoanRepository,
        schedule_repository: ScheduleEntryRepository,
        credit_service: CreditService,
        notifier: Notifier,
        settings: LendingSettings = lending_settings,
        scoring: ScoringSettings = scoring_settings,
    ):
        self._uow = uow
        self._borrower_repo = borrower_repository
        self._loan_repo = loan_repository
        self._schedule_repo = schedule_repository
        self._credit_service = credit_service
        self._notifier = notifier
        self._settings = settings
        self._scoring = scoring

    async def check_eligibility(self, borrower_id: UUID) -> EligibilityResult:
        """
        Evaluate a borrower against the lending policy.

        Raises:
            BorrowerNotFoundException: If the borrower doesn't exist
        """
        borrower = await self._get_borrower(borrower_id)
        loans = await self._loan_repo.list_by_borrower(borrower.id)
        return evaluate_eligibility(
            borrower, loans, settings=self._settings, scoring=self._scoring
        )

    async def apply(self, request: LoanApplicationRequest) -> LoanApplicationResponse:
        """
        Create a PENDING loan application.

        The loan is priced at the rate of the borrower's current rating;
        the amounts are a preview until approval fixes them.

        Raises:
            ValidationException: If request validation fails
            LoanNotEligibleException: With every failing rule
            OpenLoanApplicationException: If a PENDING or APPROVED loan exists
            LoanAmountExceededException: If the amount exceeds the rating's maximum
        """
        errors = request.validate(self._settings)
        if errors:
            raise ValidationException("; ".join(errors), errors)

        borrower = await self._get_borrower(UUID(request.borrower_id))
        log = logger.bind(
            borrower_id=str(borrower.id),
            amount=str(request.amount),
            term_weeks=request.term_weeks,
        )

        loans = await self._loan_repo.list_by_borrower(borrower.id)
        eligibility = evaluate_eligibility(
            borrower, loans, settings=self._settings, scoring=self._scoring
        )
        if not eligibility.eligible:
            record_loan_application("ineligible")
            log.info("loan_application_ineligible", reasons=eligibility.reasons)
            raise LoanNotEligibleException(eligibility.reasons)

        open_loan = next(
            (loan for loan in loans if loan.status in OPEN_APPLICATION_STATUSES), None
        )
        if open_loan is not None:
            record_loan_application("conflict")
            raise OpenLoanApplicationException(str(open_loan.id), open_loan.status.value)

        if request.amount > eligibility.max_loan_amount:
            record_loan_application("exceeds_limit")
            raise LoanAmountExceededException(
                str(request.amount), str(eligibility.max_loan_amount)
            )

        preview = amortize(request.amount, request.term_weeks, eligibility.interest_rate)
        loan = Loan(
            borrower_id=borrower.id,
            principal=preview.principal,
            interest_rate=preview.interest_rate,
            term_weeks=preview.term_weeks,
            total_repayment=preview.total_repayment,
            weekly_payment=preview.weekly_payment,
            purpose=request.purpose.strip(),
        )

        async with self._uow.transaction():
            await self._loan_repo.save(loan)

        record_loan_application("submitted")
        log.info(
            "loan_application_submitted",
            loan_id=str(loan.id),
            interest_rate=str(loan.interest_rate),
            total_repayment=str(loan.total_repayment),
        )

        return LoanApplicationResponse.from_entities(loan, preview)

    async def approve(self, loan_id: UUID, request: ApproveLoanRequest) -> LoanResponse:
        """
        Approve a PENDING loan and fix its schedule.

        Optional overrides replace the applied amount, term or rate before
        the final amortization. The loan update and the schedule insert
        commit together.

        Raises:
            ValidationException: If request validation fails
            LoanNotFoundException: If the loan doesn't exist
            InvalidLoanTransitionException: If the loan is not PENDING
        """
        errors = request.validate(self._settings)
        if errors:
            raise ValidationException("; ".join(errors), errors)

        async with self._uow.transaction():
            loan = await self._get_loan(loan_id, for_update=True)
            loan.transition_to(LoanStatus.APPROVED)

            amortization = amortize(
                request.amount if request.amount is not None else loan.principal,
                request.term_weeks if request.term_weeks is not None else loan.term_weeks,
                request.interest_rate if request.interest_rate is not None else loan.interest_rate,
            )

            approved_at = utcnow()
            loan.principal = amortization.principal
            loan.interest_rate = amortization.interest_rate
            loan.term_weeks = amortization.term_weeks
            loan.total_repayment = amortization.total_repayment
            loan.weekly_payment = amortization.weekly_payment
            loan.approved_by = request.approved_by.strip()
            loan.approved_at = approved_at
            loan.start_date = approved_at.date()
            loan.end_date = add_weeks(loan.start_date, loan.term_weeks)

            schedule = generate_schedule(
                loan.id,
                loan.start_date,
                loan.term_weeks,
                loan.weekly_payment,
                loan.total_repayment,
            )
            await self._loan_repo.update(loan)
            await self._schedule_repo.save_all(schedule)

        record_loan_decision(approved=True)
        logger.info(
            "loan_approved",
            loan_id=str(loan.id),
            borrower_id=str(loan.borrower_id),
            approved_by=loan.approved_by,
            principal=str(loan.principal),
            total_repayment=str(loan.total_repayment),
            installments=len(schedule),
        )

        await self._credit_service.refresh(loan.borrower_id, "Loan approved")
        await self._notifier.notify(
            loan.borrower_id,
            NotificationType.LOAN_APPROVED,
            loan_id=str(loan.id),
            principal=str(loan.principal),
            interest_rate=str(loan.interest_rate),
            term_weeks=loan.term_weeks,
            total_repayment=str(loan.total_repayment),
            weekly_payment=str(loan.weekly_payment),
            start_date=loan.start_date.isoformat(),
        )

        return LoanResponse.from_entity(loan)

    async def reject(self, loan_id: UUID, request: RejectLoanRequest) -> LoanResponse:
        """
        Reject a PENDING loan.

        Raises:
            ValidationException: If the reason is missing or out of bounds
            LoanNotFoundException: If the loan doesn't exist
            InvalidLoanTransitionException: If the loan is not PENDING
        """
        errors = request.validate(self._settings)
        if errors:
            raise ValidationException("; ".join(errors), errors)

        async with self._uow.transaction():
            loan = await self._get_loan(loan_id, for_update=True)
            loan.transition_to(LoanStatus.REJECTED)
            loan.rejection_reason = request.reason.strip()
            await self._loan_repo.update(loan)

        record_loan_decision(approved=False)
        logger.info("loan_rejected", loan_id=str(loan.id), reason=loan.rejection_reason)

        await self._notifier.notify(
            loan.borrower_id,
            NotificationType.LOAN_REJECTED,
            loan_id=str(loan.id),
            reason=loan.rejection_reason,
        )

        return LoanResponse.from_entity(loan)

    async def disburse(self, loan_id: UUID) -> LoanResponse:
        """
        Record that an APPROVED loan's funds were paid out.

        Raises:
            LoanNotFoundException: If the loan doesn't exist
            InvalidLoanTransitionException: If the loan is not APPROVED
        """
        async with self._uow.transaction():
            loan = await self._get_loan(loan_id, for_update=True)
            loan.transition_to(LoanStatus.ACTIVE)
            loan.disbursed_at = utcnow()
            await self._loan_repo.update(loan)

        record_disbursement(loan.principal)
        logger.info("loan_disbursed", loan_id=str(loan.id), principal=str(loan.principal))

        await self._notifier.notify(
            loan.borrower_id,
            NotificationType.LOAN_DISBURSED,
            loan_id=str(loan.id),
            principal=str(loan.principal),
            first_due_date=add_weeks(loan.start_date, 1).isoformat() if loan.start_date else None,
        )

        return LoanResponse.from_entity(loan)

    async def mark_defaulted(self, loan_id: UUID, request: DefaultLoanRequest) -> LoanResponse:
        """
        Mark an ACTIVE loan as defaulted.

        Raises:
            ValidationException: If no reason is given
            LoanNotFoundException: If the loan doesn't exist
            InvalidLoanTransitionException: If the loan is not ACTIVE
        """
        errors = request.validate()
        if errors:
            raise ValidationException("; ".join(errors), errors)

        async with self._uow.transaction():
            loan = await self._get_loan(loan_id, for_update=True)
            loan.transition_to(LoanStatus.DEFAULTED)
            loan.defaulted_at = utcnow()
            await self._loan_repo.update(loan)

        record_default()
        logger.warning(
            "loan_defaulted",
            loan_id=str(loan.id),
            borrower_id=str(loan.borrower_id),
            outstanding_balance=str(loan.outstanding_balance),
            reason=request.reason.strip(),
        )

        await self._credit_service.refresh(loan.borrower_id, "Loan defaulted")

        return LoanResponse.from_entity(loan)

    async def get(self, loan_id: UUID) -> LoanResponse:
        """
        Get a loan by ID.

        Raises:
            LoanNotFoundException: If the loan doesn't exist
        """
        return LoanResponse.from_entity(await self._get_loan(loan_id))

    async def get_schedule(self, loan_id: UUID) -> LoanScheduleResponse:
        """
        Get a loan's repayment schedule ordered by week.

        Loans that were never approved have an empty schedule.

        Raises:
            LoanNotFoundException: If the loan doesn't exist
        """
        loan = await self._get_loan(loan_id)
        entries = await self._schedule_repo.list_by_loan(loan.id)
        return LoanScheduleResponse.from_entities(loan, entries)

    async def list_by_borrower(self, borrower_id: UUID) -> List[LoanResponse]:
        """
        Get a borrower's loans, newest first.

        Raises:
            BorrowerNotFoundException: If the borrower doesn't exist
        """
        borrower = await self._get_borrower(borrower_id)
        loans = await self._loan_repo.list_by_borrower(borrower.id)
        return [LoanResponse.from_entity(loan) for loan in loans]

    async def list_loans(
        self,
        status: Optional[LoanStatus] = None,
        borrower_id: Optional[UUID] = None,
        page: int = 1,
        limit: int = 20,
    ) -> LoanListResponse:
        """Page through all loans, newest first, optionally filtered."""
        page = max(1, page)
        limit = max(1, min(100, limit))

        loans, total = await self._loan_repo.list_all(
            status=status,
            borrower_id=borrower_id,
            limit=limit,
            offset=(page - 1) * limit,
        )

        return LoanListResponse(
            loans=[LoanResponse.from_entity(loan) for loan in loans],
            page=page,
            limit=limit,
            total=total,
        )

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
