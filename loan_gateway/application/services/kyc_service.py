"""KYC service - document submission and review."""

from typing import List, Sequence
from uuid import UUID

import structlog

from loan_gateway.application.dto import (
    KycDocumentResponse,
    KycStatusResponse,
    ReviewKycDocumentRequest,
    SubmitKycDocumentRequest,
)
from loan_gateway.domain.entities import (
    Borrower,
    DocumentStatus,
    DocumentType,
    KycDocument,
    KycStatus,
    NotificationType,
)
from loan_gateway.domain.exceptions import (
    BorrowerNotFoundException,
    KycDocumentAlreadyReviewedException,
    KycDocumentNotFoundException,
    ValidationException,
)
from loan_gateway.domain.interfaces import BorrowerRepository, KycDocumentRepository, UnitOfWork
from loan_gateway.utils.date_utils import utcnow

from .credit_service import CreditService
from .notifier import Notifier

logger = structlog.get_logger(__name__)

KYC_VERIFIED_REASON = "KYC verified"


def missing_kyc_documents(documents: Sequence[KycDocument]) -> List[str]:
    """Required documents that have no approved submission yet."""
    approved = {d.document_type for d in documents if d.status == DocumentStatus.APPROVED}

    missing = []
    if not any(t.is_identity for t in approved):
        missing.append("ID_CARD or PASSPORT")
    if DocumentType.DRIVERS_LICENSE not in approved:
        missing.append(DocumentType.DRIVERS_LICENSE.value)
    if DocumentType.SELFIE not in approved:
        missing.append(DocumentType.SELFIE.value)
    return missing


class KycService:
    """
    Application service for KYC use cases.

    A borrower becomes VERIFIED once an identity document, a driver's
    license and a selfie are all approved.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        borrower_repository: BorrowerRepository,
        kyc_repository: KycDocumentRepository,
        credit_service: CreditService,
        notifier: Notifier,
    ):
        self._uow = uow
        self._borrower_repo = borrower_repository
        self._kyc_repo = kyc_repository
        self._credit_service = credit_service
        self._notifier = notifier

    async def submit(self, request: SubmitKycDocumentRequest) -> KycDocumentResponse:
        """
        Submit a document for review.

        A borrower who had not started KYC, or whose KYC was rejected, moves
        to PENDING.

        Raises:
            BorrowerNotFoundException: If the borrower doesn't exist
        """
        borrower = await self._get_borrower(UUID(request.borrower_id))

        document = KycDocument(
            borrower_id=borrower.id,
            document_type=request.document_type,
            document_number=request.document_number,
        )

        async with self._uow.transaction():
            await self._kyc_repo.save(document)
            if borrower.kyc_status in (KycStatus.NOT_STARTED, KycStatus.REJECTED):
                borrower.kyc_status = KycStatus.PENDING
                await self._borrower_repo.update(borrower)

        logger.info(
            "kyc_document_submitted",
            borrower_id=str(borrower.id),
            document_id=str(document.id),
            document_type=document.document_type.value,
        )

        return KycDocumentResponse.from_entity(document)

    async def review(
        self,
        document_id: UUID,
        request: ReviewKycDocumentRequest,
    ) -> KycDocumentResponse:
        """
        Approve or reject a pending document.

        Rejecting any document marks the borrower's KYC REJECTED. Approving
        the last missing required document verifies the borrower and
        triggers a score recalculation.

        Raises:
            ValidationException: If request validation fails
            KycDocumentNotFoundException: If the document doesn't exist
            KycDocumentAlreadyReviewedException: If the document is not pending
        """
        errors = request.validate()
        if errors:
            raise ValidationException("; ".join(errors), errors)

        log = logger.bind(document_id=str(document_id), status=request.status.value)
        verified = False

        async with self._uow.transaction():
            document = await self._kyc_repo.get_by_id(document_id)
            if document is None:
                raise KycDocumentNotFoundException(str(document_id))
            if document.status != DocumentStatus.PENDING:
                raise KycDocumentAlreadyReviewedException(
                    str(document_id), document.status.value
                )

            document.status = request.status
            document.reviewed_by = request.reviewed_by.strip()
            document.reviewed_at = utcnow()
            if request.status == DocumentStatus.REJECTED:
                document.rejection_reason = request.rejection_reason.strip()
            await self._kyc_repo.update(document)

            borrower = await self._get_borrower(document.borrower_id)
            if request.status == DocumentStatus.REJECTED:
                borrower.kyc_status = KycStatus.REJECTED
                await self._borrower_repo.update(borrower)
            elif borrower.kyc_status != KycStatus.VERIFIED:
                documents = await self._kyc_repo.list_by_borrower(borrower.id)
                if not missing_kyc_documents(documents):
                    borrower.kyc_status = KycStatus.VERIFIED
                    await self._borrower_repo.update(borrower)
                    verified = True

        log.info("kyc_document_reviewed", borrower_id=str(borrower.id), verified=verified)

        if request.status == DocumentStatus.REJECTED:
            await self._notifier.notify(
                borrower.id,
                NotificationType.KYC_REJECTED,
                document_id=str(document.id),
                document_type=document.document_type.value,
                reason=document.rejection_reason,
            )
        elif verified:
            await self._credit_service.refresh(borrower.id, KYC_VERIFIED_REASON)
            await self._notifier.notify(
                borrower.id,
                NotificationType.KYC_APPROVED,
                document_id=str(document.id),
            )

        return KycDocumentResponse.from_entity(document)

    async def status(self, borrower_id: UUID) -> KycStatusResponse:
        """
        Summarize a borrower's KYC progress.

        Raises:
            BorrowerNotFoundException: If the borrower doesn't exist
        """
        borrower = await self._get_borrower(borrower_id)
        documents = await self._kyc_repo.list_by_borrower(borrower.id)
        missing = missing_kyc_documents(documents)

        return KycStatusResponse(
            borrower_id=str(borrower.id),
            kyc_status=borrower.kyc_status.value,
            documents=[
                KycDocumentResponse.from_entity(d)
                for d in sorted(documents, key=lambda d: d.created_at, reverse=True)
            ],
            missing_documents=missing,
            is_complete=not missing,
        )

    async def _get_borrower(self, borrower_id: UUID) -> Borrower:
        borrower = await self._borrower_repo.get_by_id(borrower_id)
        if borrower is None:
            raise BorrowerNotFoundException(str(borrower_id))
        return borrower
