"""PostgreSQL implementations of the borrower and KYC repositories."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from loan_gateway.domain.entities import (
    AccountStatus,
    Borrower,
    CreditRating,
    DocumentStatus,
    DocumentType,
    KycDocument,
    KycStatus,
)
from loan_gateway.domain.exceptions import BorrowerNotFoundException, KycDocumentNotFoundException
from loan_gateway.domain.interfaces import BorrowerRepository, KycDocumentRepository
from loan_gateway.infrastructure.database.models import BorrowerModel, KycDocumentModel


class PostgresBorrowerRepository(BorrowerRepository):
    """
    PostgreSQL implementation of the Borrower repository.

    Uses SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, borrower: Borrower) -> Borrower:
        """Persist a borrower to the database."""
        model = BorrowerModel(
            id=str(borrower.id),
            external_id=borrower.external_id,
            name=borrower.name,
            phone=borrower.phone,
            account_status=borrower.account_status.value,
            kyc_status=borrower.kyc_status.value,
            credit_score=borrower.credit_score,
            credit_rating=borrower.credit_rating.value,
            created_at=borrower.created_at,
        )

        self._session.add(model)
        await self._session.flush()

        return borrower

    async def update(self, borrower: Borrower) -> Borrower:
        """Update an existing borrower record."""
        model = await self._get_model(borrower.id)
        if model is None:
            raise BorrowerNotFoundException(str(borrower.id))

        model.name = borrower.name
        model.phone = borrower.phone
        model.account_status = borrower.account_status.value
        model.kyc_status = borrower.kyc_status.value
        model.credit_score = borrower.credit_score
        model.credit_rating = borrower.credit_rating.value

        await self._session.flush()

        return borrower

    async def get_by_id(self, borrower_id: UUID) -> Optional[Borrower]:
        """Retrieve a borrower by ID."""
        model = await self._get_model(borrower_id)
        if model is None:
            return None
        return self._to_entity(model)

    async def get_by_external_id(self, external_id: str) -> Optional[Borrower]:
        """Retrieve a borrower by external driver identifier."""
        stmt = select(BorrowerModel).where(BorrowerModel.external_id == external_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def _get_model(self, borrower_id: UUID) -> Optional[BorrowerModel]:
        stmt = select(BorrowerModel).where(BorrowerModel.id == str(borrower_id))
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: BorrowerModel) -> Borrower:
        """Convert database model to domain entity."""
        return Borrower(
            id=UUID(model.id),
            external_id=model.external_id,
            name=model.name,
            phone=model.phone,
            account_status=AccountStatus(model.account_status),
            kyc_status=KycStatus(model.kyc_status),
            credit_score=model.credit_score,
            credit_rating=CreditRating(model.credit_rating),
            created_at=model.created_at,
        )


class PostgresKycDocumentRepository(KycDocumentRepository):
    """PostgreSQL-backed KYC document repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, document: KycDocument) -> KycDocument:
        model = KycDocumentModel(
            id=str(document.id),
            borrower_id=str(document.borrower_id),
            document_type=document.document_type.value,
            document_number=document.document_number,
            status=document.status.value,
            rejection_reason=document.rejection_reason,
            reviewed_by=document.reviewed_by,
            reviewed_at=document.reviewed_at,
            created_at=document.created_at,
        )

        self._session.add(model)
        await self._session.flush()

        return document

    async def update(self, document: KycDocument) -> KycDocument:
        stmt = select(KycDocumentModel).where(KycDocumentModel.id == str(document.id))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            raise KycDocumentNotFoundException(str(document.id))

        model.status = document.status.value
        model.rejection_reason = document.rejection_reason
        model.reviewed_by = document.reviewed_by
        model.reviewed_at = document.reviewed_at

        await self._session.flush()

        return document

    async def get_by_id(self, document_id: UUID) -> Optional[KycDocument]:
        stmt = select(KycDocumentModel).where(KycDocumentModel.id == str(document_id))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def list_by_borrower(self, borrower_id: UUID) -> List[KycDocument]:
        stmt = (
            select(KycDocumentModel)
            .where(KycDocumentModel.borrower_id == str(borrower_id))
            .order_by(KycDocumentModel.created_at.asc())
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    def _to_entity(self, model: KycDocumentModel) -> KycDocument:
        return KycDocument(
            id=UUID(model.id),
            borrower_id=UUID(model.borrower_id),
            document_type=DocumentType(model.document_type),
            document_number=model.document_number,
            status=DocumentStatus(model.status),
            rejection_reason=model.rejection_reason,
            reviewed_by=model.reviewed_by,
            reviewed_at=model.reviewed_at,
            created_at=model.created_at,
        )
