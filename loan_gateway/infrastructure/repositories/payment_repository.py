"""PostgreSQL implementations of the payment and allocation repositories."""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from loan_gateway.domain.entities import (
    Payment,
    PaymentAllocation,
    PaymentMethod,
    PaymentStatus,
)
from loan_gateway.domain.exceptions import PaymentNotFoundException
from loan_gateway.domain.interfaces import PaymentAllocationRepository, PaymentRepository
from loan_gateway.infrastructure.database.models import PaymentAllocationModel, PaymentModel
from loan_gateway.utils.money import ZERO, quantize_money


class PostgresPaymentRepository(PaymentRepository):
    """
    PostgreSQL implementation of the Payment repository.

    Uses SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, payment: Payment) -> Payment:
        """Persist a payment to the database."""
        model = PaymentModel(
            id=str(payment.id),
            loan_id=str(payment.loan_id),
            borrower_id=str(payment.borrower_id),
            amount=payment.amount,
            method=payment.method.value,
            created_at=payment.created_at,
        )
        self._apply(model, payment)

        self._session.add(model)
        await self._session.flush()

        return payment

    async def update(self, payment: Payment) -> Payment:
        """Update an existing payment record."""
        model = await self._get_model(payment.id)
        if model is None:
            raise PaymentNotFoundException(str(payment.id))

        self._apply(model, payment)
        await self._session.flush()

        return payment

    async def get_by_id(self, payment_id: UUID, for_update: bool = False) -> Optional[Payment]:
        """Retrieve a payment by ID."""
        model = await self._get_model(payment_id, for_update=for_update)
        if model is None:
            return None
        return self._to_entity(model)

    async def get_by_provider_reference(self, provider_reference: str) -> Optional[Payment]:
        """Retrieve a payment by the rail's transaction id."""
        stmt = select(PaymentModel).where(PaymentModel.provider_reference == provider_reference)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def list_by_loan(self, loan_id: UUID) -> List[Payment]:
        """Retrieve a loan's payments, newest first."""
        stmt = (
            select(PaymentModel)
            .where(PaymentModel.loan_id == str(loan_id))
            .order_by(PaymentModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    async def list_by_borrower(
        self,
        borrower_id: UUID,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Payment]:
        """Retrieve a borrower's payments, newest first."""
        stmt = (
            select(PaymentModel)
            .where(PaymentModel.borrower_id == str(borrower_id))
            .order_by(PaymentModel.created_at.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    async def pending_total(self, loan_id: UUID) -> Decimal:
        """Sum of the loan's PENDING payments."""
        stmt = select(func.coalesce(func.sum(PaymentModel.amount), 0)).where(
            PaymentModel.loan_id == str(loan_id),
            PaymentModel.status == PaymentStatus.PENDING.value,
        )
        total = await self._session.scalar(stmt)
        return quantize_money(total) if total is not None else ZERO

    async def _get_model(self, payment_id: UUID, for_update: bool = False) -> Optional[PaymentModel]:
        stmt = select(PaymentModel).where(PaymentModel.id == str(payment_id))
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _apply(self, model: PaymentModel, payment: Payment) -> None:
        """Copy the mutable payment fields onto the model."""
        model.status = payment.status.value
        model.schedule_entry_id = (
            str(payment.schedule_entry_id) if payment.schedule_entry_id else None
        )
        model.reference = payment.reference
        model.provider_reference = payment.provider_reference
        model.failure_reason = payment.failure_reason
        model.unallocated_amount = payment.unallocated_amount
        model.processed_at = payment.processed_at
        model.refunded_at = payment.refunded_at

    def _to_entity(self, model: PaymentModel) -> Payment:
        """Convert database model to domain entity."""
        return Payment(
            id=UUID(model.id),
            loan_id=UUID(model.loan_id),
            borrower_id=UUID(model.borrower_id),
            amount=quantize_money(model.amount),
            method=PaymentMethod(model.method),
            status=PaymentStatus(model.status),
            schedule_entry_id=UUID(model.schedule_entry_id) if model.schedule_entry_id else None,
            reference=model.reference,
            provider_reference=model.provider_reference,
            failure_reason=model.failure_reason,
            unallocated_amount=quantize_money(model.unallocated_amount),
            processed_at=model.processed_at,
            refunded_at=model.refunded_at,
            created_at=model.created_at,
        )


class PostgresPaymentAllocationRepository(PaymentAllocationRepository):
    """PostgreSQL-backed payment allocation repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save_all(self, allocations: List[PaymentAllocation]) -> List[PaymentAllocation]:
        self._session.add_all(
            [
                PaymentAllocationModel(
                    id=str(allocation.id),
                    payment_id=str(allocation.payment_id),
                    schedule_entry_id=str(allocation.schedule_entry_id),
                    amount=allocation.amount,
                    created_at=allocation.created_at,
                )
                for allocation in allocations
            ]
        )
        await self._session.flush()

        return allocations

    async def list_by_payment(self, payment_id: UUID) -> List[PaymentAllocation]:
        stmt = (
            select(PaymentAllocationModel)
            .where(PaymentAllocationModel.payment_id == str(payment_id))
            .order_by(PaymentAllocationModel.created_at.asc())
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [
            PaymentAllocation(
                id=UUID(model.id),
                payment_id=UUID(model.payment_id),
                schedule_entry_id=UUID(model.schedule_entry_id),
                amount=quantize_money(model.amount),
                created_at=model.created_at,
            )
            for model in models
        ]
