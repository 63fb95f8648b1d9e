"""Borrower and KYC domain exceptions."""

from .base import ConflictException, NotFoundException


class BorrowerNotFoundException(NotFoundException):
    """Raised when a borrower cannot be found."""

    def __init__(self, borrower_id: str):
        super().__init__("Borrower", borrower_id, code="BORROWER_NOT_FOUND")
        self.borrower_id = borrower_id


class BorrowerAlreadyExistsException(ConflictException):
    """Raised when registering an external id that is already taken."""

    def __init__(self, external_id: str):
        super().__init__(
            message=f"Borrower already registered: {external_id}",
            code="BORROWER_ALREADY_EXISTS",
        )
        self.external_id = external_id


class KycDocumentNotFoundException(NotFoundException):
    """Raised when a KYC document cannot be found."""

    def __init__(self, document_id: str):
        super().__init__("KYC document", document_id, code="KYC_DOCUMENT_NOT_FOUND")
        self.document_id = document_id


class KycDocumentAlreadyReviewedException(ConflictException):
    """Raised when reviewing a document that is no longer pending."""

    def __init__(self, document_id: str, current_status: str):
        super().__init__(
            message=f"Cannot review document with status: {current_status}",
            current_status=current_status,
            code="KYC_DOCUMENT_ALREADY_REVIEWED",
        )
        self.document_id = document_id
