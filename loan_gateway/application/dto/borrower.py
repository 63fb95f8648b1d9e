"""Data transfer objects for borrower and KYC operations."""

from dataclasses import dataclass
from typing import List, Optional

from loan_gateway.domain.entities import Borrower, DocumentStatus, DocumentType, KycDocument
from loan_gateway.service.lending.settings import LendingSettings, lending_settings


@dataclass(frozen=True)
class RegisterBorrowerRequest:
    """Input data for registering a driver."""
    external_id: str
    name: str
    phone: str

    def validate(self) -> List[str]:
        errors = []

        if not self.external_id or not self.external_id.strip():
            errors.append("external_id is required")

        if not self.name or len(self.name.strip()) < 2:
            errors.append("name must be at least 2 characters")

        if not self.phone or len(self.phone.strip()) < 8:
            errors.append("phone must be at least 8 characters")

        return errors


@dataclass(frozen=True)
class BorrowerResponse:
    """Response data for a borrower."""

    borrower_id: str
    external_id: str
    name: str
    phone: str
    account_status: str
    kyc_status: str
    credit_score: int
    credit_rating: str
    created_at: str

    @classmethod
    def from_entity(cls, borrower: Borrower) -> "BorrowerResponse":
        return cls(**borrower.to_dict())


@dataclass(frozen=True)
class SubmitKycDocumentRequest:
    """Input data for submitting a KYC document."""
    borrower_id: str
    document_type: DocumentType
    document_number: Optional[str] = None


@dataclass(frozen=True)
class ReviewKycDocumentRequest:
    """Admin verdict on a pending KYC document."""
    status: DocumentStatus
    reviewed_by: str
    rejection_reason: Optional[str] = None

    def validate(self, settings: LendingSettings = lending_settings) -> List[str]:
        errors = []

        if self.status not in (DocumentStatus.APPROVED, DocumentStatus.REJECTED):
            errors.append("status must be APPROVED or REJECTED")

        if not self.reviewed_by or not self.reviewed_by.strip():
            errors.append("reviewed_by is required")

        if self.status == DocumentStatus.REJECTED:
            reason = (self.rejection_reason or "").strip()
            if not reason:
                errors.append("rejection_reason is required when rejecting")
            elif not (
                settings.min_rejection_reason_length
                <= len(reason)
                <= settings.max_rejection_reason_length
            ):
                errors.append(
                    f"rejection_reason must be between {settings.min_rejection_reason_length} "
                    f"and {settings.max_rejection_reason_length} characters"
                )

        return errors


@dataclass(frozen=True)
class KycDocumentResponse:
    """Response data for a KYC document."""

    document_id: str
    borrower_id: str
    document_type: str
    document_number: Optional[str]
    status: str
    rejection_reason: Optional[str]
    reviewed_by: Optional[str]
    reviewed_at: Optional[str]
    created_at: str

    @classmethod
    def from_entity(cls, document: KycDocument) -> "KycDocumentResponse":
        return cls(
            document_id=str(document.id),
            borrower_id=str(document.borrower_id),
            document_type=document.document_type.value,
            document_number=document.document_number,
            status=document.status.value,
            rejection_reason=document.rejection_reason,
            reviewed_by=document.reviewed_by,
            reviewed_at=document.reviewed_at.isoformat() + "Z" if document.reviewed_at else None,
            created_at=document.created_at.isoformat() + "Z",
        )


@dataclass(frozen=True)
class KycStatusResponse:
    """A borrower's KYC progress."""

    borrower_id: str
    kyc_status: str
    documents: List[KycDocumentResponse]
    missing_documents: List[str]
    is_complete: bool
