"""PostgreSQL repository implementations for loans and their schedules."""

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from loan_gateway.domain.entities import Loan, LoanStatus, ScheduleEntry, ScheduleEntryStatus
from loan_gateway.domain.exceptions import LoanNotFoundException
from loan_gateway.domain.interfaces import LoanRepository, ScheduleEntryRepository
from loan_gateway.infrastructure.database.models import LoanModel, ScheduleEntryModel
from loan_gateway.utils.money import quantize_money


class PostgresLoanRepository(LoanRepository):
    """PostgreSQL-backed loan repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, loan: Loan) -> Loan:
        model = LoanModel(id=str(loan.id), borrower_id=str(loan.borrower_id))
        self._apply(model, loan)
        model.created_at = loan.created_at

        self._session.add(model)
        await self._session.flush()

        return loan

    async def update(self, loan: Loan) -> Loan:
        model = await self._get_model(loan.id)
        if model is None:
            raise LoanNotFoundException(str(loan.id))

        self._apply(model, loan)
        await self._session.flush()

        return loan

    async def get_by_id(self, loan_id: UUID, for_update: bool = False) -> Optional[Loan]:
        model = await self._get_model(loan_id, for_update=for_update)
        if model is None:
            return None
        return self._to_entity(model)

    async def list_by_borrower(self, borrower_id: UUID) -> List[Loan]:
        stmt = (
            select(LoanModel)
            .where(LoanModel.borrower_id == str(borrower_id))
            .order_by(LoanModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    async def list_all(
        self,
        status: Optional[LoanStatus] = None,
        borrower_id: Optional[UUID] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Loan], int]:
        filters = []
        if status is not None:
            filters.append(LoanModel.status == status.value)
        if borrower_id is not None:
            filters.append(LoanModel.borrower_id == str(borrower_id))

        stmt = (
            select(LoanModel)
            .where(*filters)
            .order_by(LoanModel.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        count_stmt = select(func.count()).select_from(LoanModel).where(*filters)

        result = await self._session.execute(stmt)
        total = await self._session.scalar(count_stmt)

        return [self._to_entity(model) for model in result.scalars().all()], int(total or 0)

    async def _get_model(self, loan_id: UUID, for_update: bool = False) -> Optional[LoanModel]:
        stmt = select(LoanModel).where(LoanModel.id == str(loan_id))
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _apply(self, model: LoanModel, loan: Loan) -> None:
        """Copy the mutable loan fields onto the model."""
        model.principal = loan.principal
        model.interest_rate = loan.interest_rate
        model.term_weeks = loan.term_weeks
        model.total_repayment = loan.total_repayment
        model.weekly_payment = loan.weekly_payment
        model.amount_paid = loan.amount_paid
        model.status = loan.status.value
        model.purpose = loan.purpose
        model.approved_by = loan.approved_by
        model.approved_at = loan.approved_at
        model.start_date = loan.start_date
        model.end_date = loan.end_date
        model.disbursed_at = loan.disbursed_at
        model.rejection_reason = loan.rejection_reason
        model.defaulted_at = loan.defaulted_at

    def _to_entity(self, model: LoanModel) -> Loan:
        return Loan(
            id=UUID(model.id),
            borrower_id=UUID(model.borrower_id),
            principal=quantize_money(model.principal),
            interest_rate=quantize_money(model.interest_rate),
            term_weeks=model.term_weeks,
            total_repayment=quantize_money(model.total_repayment),
            weekly_payment=quantize_money(model.weekly_payment),
            amount_paid=quantize_money(model.amount_paid),
            status=LoanStatus(model.status),
            purpose=model.purpose,
            approved_by=model.approved_by,
            approved_at=model.approved_at,
            start_date=model.start_date,
            end_date=model.end_date,
            disbursed_at=model.disbursed_at,
            rejection_reason=model.rejection_reason,
            defaulted_at=model.defaulted_at,
            created_at=model.created_at,
        )


class PostgresScheduleEntryRepository(ScheduleEntryRepository):
    """PostgreSQL-backed repayment schedule repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save_all(self, entries: List[ScheduleEntry]) -> List[ScheduleEntry]:
        self._session.add_all(
            [
                ScheduleEntryModel(
                    id=str(entry.id),
                    loan_id=str(entry.loan_id),
                    week_number=entry.week_number,
                    due_date=entry.due_date,
                    amount_due=entry.amount_due,
                    amount_paid=entry.amount_paid,
                    status=entry.status.value,
                    paid_at=entry.paid_at,
                )
                for entry in entries
            ]
        )
        await self._session.flush()

        return entries

    async def update_all(self, entries: List[ScheduleEntry]) -> List[ScheduleEntry]:
        if not entries:
            return entries

        by_id = {str(entry.id): entry for entry in entries}
        stmt = select(ScheduleEntryModel).where(ScheduleEntryModel.id.in_(list(by_id)))
        result = await self._session.execute(stmt)

        for model in result.scalars().all():
            entry = by_id[model.id]
            model.amount_paid = entry.amount_paid
            model.status = entry.status.value
            model.paid_at = entry.paid_at

        await self._session.flush()

        return entries

    async def list_by_loan(self, loan_id: UUID) -> List[ScheduleEntry]:
        stmt = (
            select(ScheduleEntryModel)
            .where(ScheduleEntryModel.loan_id == str(loan_id))
            .order_by(ScheduleEntryModel.week_number.asc())
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    async def get_by_ids(self, entry_ids: List[UUID]) -> List[ScheduleEntry]:
        if not entry_ids:
            return []

        stmt = select(ScheduleEntryModel).where(
            ScheduleEntryModel.id.in_([str(entry_id) for entry_id in entry_ids])
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    def _to_entity(self, model: ScheduleEntryModel) -> ScheduleEntry:
        return ScheduleEntry(
            id=UUID(model.id),
            loan_id=UUID(model.loan_id),
            week_number=model.week_number,
            due_date=model.due_date,
            amount_due=quantize_money(model.amount_due),
            amount_paid=quantize_money(model.amount_paid),
            status=ScheduleEntryStatus(model.status),
            paid_at=model.paid_at,
        )
