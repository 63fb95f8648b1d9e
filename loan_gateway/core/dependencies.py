"""Dependency injection for FastAPI."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from loan_gateway.core.config import Settings, get_settings, settings
from loan_gateway.domain.interfaces import NotificationSink, PaymentRailClient, TelemetryClient
from loan_gateway.infrastructure.database import SqlAlchemyUnitOfWork, get_db_session
from loan_gateway.infrastructure.repositories import (
    PostgresBorrowerRepository,
    PostgresCreditSnapshotRepository,
    PostgresKycDocumentRepository,
    PostgresLoanRepository,
    PostgresPaymentAllocationRepository,
    PostgresPaymentRepository,
    PostgresScheduleEntryRepository,
)
from loan_gateway.infrastructure.clients import (
    HttpNotificationSink,
    HttpPaymentRailClient,
    HttpTelemetryClient,
    LoggingNotificationSink,
    MockPaymentRailClient,
    MockTelemetryClient,
)
from loan_gateway.application.services import (
    BorrowerService,
    CreditService,
    KycService,
    LoanService,
    Notifier,
    PaymentService,
)


# Unit of work
async def get_unit_of_work(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> SqlAlchemyUnitOfWork:
    """Get a UnitOfWork bound to the request session."""
    return SqlAlchemyUnitOfWork(session)


# Repository dependencies
async def get_borrower_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresBorrowerRepository:
    """Get a BorrowerRepository instance."""
    return PostgresBorrowerRepository(session)


async def get_kyc_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresKycDocumentRepository:
    """Get a KycDocumentRepository instance."""
    return PostgresKycDocumentRepository(session)


async def get_snapshot_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresCreditSnapshotRepository:
    """Get a CreditSnapshotRepository instance."""
    return PostgresCreditSnapshotRepository(session)


async def get_loan_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresLoanRepository:
    """Get a LoanRepository instance."""
    return PostgresLoanRepository(session)


async def get_schedule_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresScheduleEntryRepository:
    """Get a ScheduleEntryRepository instance."""
    return PostgresScheduleEntryRepository(session)


async def get_payment_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresPaymentRepository:
    """Get a PaymentRepository instance."""
    return PostgresPaymentRepository(session)


async def get_allocation_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresPaymentAllocationRepository:
    """Get a PaymentAllocationRepository instance."""
    return PostgresPaymentAllocationRepository(session)


# External client dependencies
def get_telemetry_client() -> TelemetryClient:
    """Get a TelemetryClient; the in-memory one unless live telemetry is configured."""
    if settings.mock_mode or not settings.telemetry_enabled:
        return MockTelemetryClient()
    return HttpTelemetryClient()


def get_payment_rail_client() -> PaymentRailClient:
    """Get a PaymentRailClient; the in-memory one unless the live rail is configured."""
    if settings.mock_mode or not settings.payment_rail_enabled:
        return MockPaymentRailClient()
    return HttpPaymentRailClient()


def get_notification_sink() -> NotificationSink:
    """Get a NotificationSink; intents are only logged when no webhook is set."""
    if settings.notification_webhook_url:
        return HttpNotificationSink()
    return LoggingNotificationSink()


def get_notifier(
    sink: Annotated[NotificationSink, Depends(get_notification_sink)],
) -> Notifier:
    """Get a Notifier around the configured sink."""
    return Notifier(sink)


# Service dependencies
async def get_credit_service(
    uow: Annotated[SqlAlchemyUnitOfWork, Depends(get_unit_of_work)],
    borrower_repo: Annotated[PostgresBorrowerRepository, Depends(get_borrower_repository)],
    kyc_repo: Annotated[PostgresKycDocumentRepository, Depends(get_kyc_repository)],
    snapshot_repo: Annotated[PostgresCreditSnapshotRepository, Depends(get_snapshot_repository)],
    loan_repo: Annotated[PostgresLoanRepository, Depends(get_loan_repository)],
    schedule_repo: Annotated[PostgresScheduleEntryRepository, Depends(get_schedule_repository)],
    payment_repo: Annotated[PostgresPaymentRepository, Depends(get_payment_repository)],
    telemetry_client: Annotated[TelemetryClient, Depends(get_telemetry_client)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
) -> CreditService:
    """Get a CreditService instance with all dependencies."""
    return CreditService(
        uow=uow,
        borrower_repository=borrower_repo,
        kyc_repository=kyc_repo,
        snapshot_repository=snapshot_repo,
        loan_repository=loan_repo,
        schedule_repository=schedule_repo,
        payment_repository=payment_repo,
        telemetry_client=telemetry_client,
        notifier=notifier,
    )


async def get_borrower_service(
    uow: Annotated[SqlAlchemyUnitOfWork, Depends(get_unit_of_work)],
    borrower_repo: Annotated[PostgresBorrowerRepository, Depends(get_borrower_repository)],
    credit_service: Annotated[CreditService, Depends(get_credit_service)],
) -> BorrowerService:
    """Get a BorrowerService instance."""
    return BorrowerService(
        uow=uow,
        borrower_repository=borrower_repo,
        credit_service=credit_service,
    )


async def get_kyc_service(
    uow: Annotated[SqlAlchemyUnitOfWork, Depends(get_unit_of_work)],
    borrower_repo: Annotated[PostgresBorrowerRepository, Depends(get_borrower_repository)],
    kyc_repo: Annotated[PostgresKycDocumentRepository, Depends(get_kyc_repository)],
    credit_service: Annotated[CreditService, Depends(get_credit_service)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
) -> KycService:
    """Get a KycService instance."""
    return KycService(
        uow=uow,
        borrower_repository=borrower_repo,
        kyc_repository=kyc_repo,
        credit_service=credit_service,
        notifier=notifier,
    )


async def get_loan_service(
    uow: Annotated[SqlAlchemyUnitOfWork, Depends(get_unit_of_work)],
    borrower_repo: Annotated[PostgresBorrowerRepository, Depends(get_borrower_repository)],
    loan_repo: Annotated[PostgresLoanRepository, Depends(get_loan_repository)],
    schedule_repo: Annotated[PostgresScheduleEntryRepository, Depends(get_schedule_repository)],
    credit_service: Annotated[CreditService, Depends(get_credit_service)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
) -> LoanService:
    """Get a LoanService instance."""
    return LoanService(
        uow=uow,
        borrower_repository=borrower_repo,
        loan_repository=loan_repo,
        schedule_repository=schedule_repo,
        credit_service=credit_service,
        notifier=notifier,
    )


async def get_payment_service(
    uow: Annotated[SqlAlchemyUnitOfWork, Depends(get_unit_of_work)],
    borrower_repo: Annotated[PostgresBorrowerRepository, Depends(get_borrower_repository)],
    loan_repo: Annotated[PostgresLoanRepository, Depends(get_loan_repository)],
    schedule_repo: Annotated[PostgresScheduleEntryRepository, Depends(get_schedule_repository)],
    payment_repo: Annotated[PostgresPaymentRepository, Depends(get_payment_repository)],
    allocation_repo: Annotated[
        PostgresPaymentAllocationRepository, Depends(get_allocation_repository)
    ],
    payment_rail: Annotated[PaymentRailClient, Depends(get_payment_rail_client)],
    credit_service: Annotated[CreditService, Depends(get_credit_service)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
    app_settings: Annotated[Settings, Depends(get_settings)],
) -> PaymentService:
    """Get a PaymentService instance."""
    return PaymentService(
        uow=uow,
        borrower_repository=borrower_repo,
        loan_repository=loan_repo,
        schedule_repository=schedule_repo,
        payment_repository=payment_repo,
        allocation_repository=allocation_repo,
        payment_rail=payment_rail,
        credit_service=credit_service,
        notifier=notifier,
        mock_mode=app_settings.mock_mode,
        currency=app_settings.currency,
    )
