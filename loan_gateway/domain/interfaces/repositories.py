"""Repository interfaces for data persistence."""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncIterator, List, Optional, Tuple
from uuid import UUID

from loan_gateway.domain.entities import (
    Borrower,
    CreditScoreSnapshot,
    KycDocument,
    Loan,
    LoanStatus,
    Payment,
    PaymentAllocation,
    ScheduleEntry,
)


class UnitOfWork(ABC):
    """
    Transaction boundary shared by the repositories of one request.

    Writes made through any repository become visible to reads in the
    same transaction and are made durable together by ``commit``.
    """

    @abstractmethod
    async def commit(self) -> None:
        """Make every pending write durable."""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """Discard every pending write."""
        ...

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["UnitOfWork"]:
        """
        Run a block atomically.

        Commits when the block exits normally and rolls back, re-raising,
        when it raises.
        """
        try:
            yield self
            await self.commit()
        except Exception:
            await self.rollback()
            raise


class BorrowerRepository(ABC):
    """
    Abstract repository for Borrower persistence.

    Borrowers are never hard-deleted.
    """

    @abstractmethod
    async def save(self, borrower: Borrower) -> Borrower:
        """
        Persist a new borrower.

        Args:
            borrower: The borrower to save

        Returns:
            The saved borrower
        """
        ...

    @abstractmethod
    async def update(self, borrower: Borrower) -> Borrower:
        """
        Update an existing borrower.

        Args:
            borrower: The borrower to update

        Returns:
            The updated borrower
        """
        ...

    @abstractmethod
    async def get_by_id(self, borrower_id: UUID) -> Optional[Borrower]:
        """
        Retrieve a borrower by ID.

        Args:
            borrower_id: The borrower's unique identifier

        Returns:
            The borrower if found, None otherwise
        """
        ...

    @abstractmethod
    async def get_by_external_id(self, external_id: str) -> Optional[Borrower]:
        """
        Retrieve a borrower by the driver identifier used by the fleet.

        Args:
            external_id: The driver's external identifier

        Returns:
            The borrower if found, None otherwise
        """
        ...


class KycDocumentRepository(ABC):
    """Abstract repository for KYC document persistence."""

    @abstractmethod
    async def save(self, document: KycDocument) -> KycDocument:
        """Persist a newly submitted document."""
        ...

    @abstractmethod
    async def update(self, document: KycDocument) -> KycDocument:
        """Update a document after review."""
        ...

    @abstractmethod
    async def get_by_id(self, document_id: UUID) -> Optional[KycDocument]:
        """Retrieve a document by ID, or None."""
        ...

    @abstractmethod
    async def list_by_borrower(self, borrower_id: UUID) -> List[KycDocument]:
        """
        Retrieve every document a borrower submitted.

        Returns:
            Documents ordered by created_at ascending
        """
        ...


class CreditSnapshotRepository(ABC):
    """
    Abstract repository for credit score snapshots.

    Snapshots are append-only; there is no update operation.
    """

    @abstractmethod
    async def save(self, snapshot: CreditScoreSnapshot) -> CreditScoreSnapshot:
        """Append a snapshot."""
        ...

    @abstractmethod
    async def get_latest(self, borrower_id: UUID) -> Optional[CreditScoreSnapshot]:
        """Retrieve the newest snapshot of a borrower, or None."""
        ...

    @abstractmethod
    async def list_by_borrower(
        self,
        borrower_id: UUID,
        limit: int = 20,
    ) -> List[CreditScoreSnapshot]:
        """
        Retrieve a borrower's score history.

        Args:
            borrower_id: The borrower's unique identifier
            limit: Maximum number of snapshots to return

        Returns:
            Snapshots ordered by created_at descending
        """
        ...


class LoanRepository(ABC):
    """Abstract repository for Loan persistence."""

    @abstractmethod
    async def save(self, loan: Loan) -> Loan:
        """Persist a new loan."""
        ...

    @abstractmethod
    async def update(self, loan: Loan) -> Loan:
        """Update an existing loan."""
        ...

    @abstractmethod
    async def get_by_id(self, loan_id: UUID, for_update: bool = False) -> Optional[Loan]:
        """
        Retrieve a loan by ID.

        Args:
            loan_id: The loan's unique identifier
            for_update: Lock the row until the transaction ends

        Returns:
            The loan if found, None otherwise
        """
        ...

    @abstractmethod
    async def list_by_borrower(self, borrower_id: UUID) -> List[Loan]:
        """
        Retrieve every loan of a borrower.

        Returns:
            Loans ordered by created_at descending
        """
        ...

    @abstractmethod
    async def list_all(
        self,
        status: Optional[LoanStatus] = None,
        borrower_id: Optional[UUID] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Loan], int]:
        """
        Page through loans.

        Args:
            status: Only loans in this status
            borrower_id: Only loans of this borrower
            limit: Page size
            offset: Number of loans to skip

        Returns:
            (loans ordered by created_at descending, total matching count)
        """
        ...


class ScheduleEntryRepository(ABC):
    """Abstract repository for repayment schedule entries."""

    @abstractmethod
    async def save_all(self, entries: List[ScheduleEntry]) -> List[ScheduleEntry]:
        """Insert a loan's schedule as one batch."""
        ...

    @abstractmethod
    async def update_all(self, entries: List[ScheduleEntry]) -> List[ScheduleEntry]:
        """Persist paid amounts and statuses of changed entries."""
        ...

    @abstractmethod
    async def list_by_loan(self, loan_id: UUID) -> List[ScheduleEntry]:
        """
        Retrieve a loan's schedule.

        Returns:
            Entries ordered by week_number ascending
        """
        ...

    @abstractmethod
    async def get_by_ids(self, entry_ids: List[UUID]) -> List[ScheduleEntry]:
        """Retrieve the entries with the given IDs, in any order."""
        ...


class PaymentRepository(ABC):
    """Abstract repository for Payment persistence."""

    @abstractmethod
    async def save(self, payment: Payment) -> Payment:
        """Persist a new payment."""
        ...

    @abstractmethod
    async def update(self, payment: Payment) -> Payment:
        """Update an existing payment."""
        ...

    @abstractmethod
    async def get_by_id(self, payment_id: UUID, for_update: bool = False) -> Optional[Payment]:
        """
        Retrieve a payment by ID.

        Args:
            payment_id: The payment's unique identifier
            for_update: Lock the row until the transaction ends

        Returns:
            The payment if found, None otherwise
        """
        ...

    @abstractmethod
    async def get_by_provider_reference(self, provider_reference: str) -> Optional[Payment]:
        """Retrieve a payment by the payment rail's transaction id, or None."""
        ...

    @abstractmethod
    async def list_by_loan(self, loan_id: UUID) -> List[Payment]:
        """
        Retrieve every payment made against a loan.

        Returns:
            Payments ordered by created_at descending
        """
        ...

    @abstractmethod
    async def list_by_borrower(
        self,
        borrower_id: UUID,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Payment]:
        """
        Retrieve a borrower's payments.

        Args:
            borrower_id: The borrower's unique identifier
            limit: Maximum number of payments to return, None for all
            offset: Number of payments to skip

        Returns:
            Payments ordered by created_at descending
        """
        ...

    @abstractmethod
    async def pending_total(self, loan_id: UUID) -> Decimal:
        """Sum of the loan's payments still awaiting settlement."""
        ...


class PaymentAllocationRepository(ABC):
    """Abstract repository for payment allocations."""

    @abstractmethod
    async def save_all(self, allocations: List[PaymentAllocation]) -> List[PaymentAllocation]:
        """Record how a payment was spread over schedule entries."""
        ...

    @abstractmethod
    async def list_by_payment(self, payment_id: UUID) -> List[PaymentAllocation]:
        """Retrieve a payment's allocations."""
        ...
