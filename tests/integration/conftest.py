"""
Fixtures for integration tests.

Provides:
- Test client for FastAPI app
- In-memory database for testing
- In-memory telemetry, payment rail and notification sink
- Helpers that onboard a verified borrower and open an active loan
"""

from datetime import timedelta
from typing import AsyncGenerator, Callable, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import update
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from loan_gateway.main import app
from loan_gateway.core.config import Settings, get_settings
from loan_gateway.core.dependencies import (
    get_notification_sink,
    get_payment_rail_client,
    get_telemetry_client,
)
from loan_gateway.domain.entities import DriverPerformance
from loan_gateway.domain.exceptions import PaymentRailException, TelemetryException
from loan_gateway.infrastructure.clients import (
    LoggingNotificationSink,
    MockPaymentRailClient,
    MockTelemetryClient,
)
from loan_gateway.infrastructure.database import Base, BorrowerModel, get_db_session
from loan_gateway.utils.date_utils import utcnow


# =============================================================================
# Failing Clients
# =============================================================================

class FailingTelemetryClient(MockTelemetryClient):
    """Telemetry provider that is always down."""

    def __init__(self):
        super().__init__()
        self.call_count = 0

    async def get_performance(self, external_id: str) -> Optional[DriverPerformance]:
        self.call_count += 1
        raise TelemetryException(message="Telemetry unavailable", status_code=500)


class FailingPaymentRailClient(MockPaymentRailClient):
    """Payment rail that refuses every checkout."""

    async def initiate_checkout(self, amount, currency, payer_ref, description, client_reference):
        raise PaymentRailException(message="Rail unavailable", status_code=502)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture
def telemetry_client() -> MockTelemetryClient:
    return MockTelemetryClient()


@pytest.fixture
def payment_rail() -> MockPaymentRailClient:
    return MockPaymentRailClient()


@pytest.fixture
def notification_sink() -> LoggingNotificationSink:
    return LoggingNotificationSink()


@pytest.fixture
def app_settings() -> Settings:
    """Settings for the app under test; mock mode settles payments at once."""
    return Settings(mock_mode=True)


def _install_overrides(
    session_factory: async_sessionmaker[AsyncSession],
    telemetry_client,
    payment_rail,
    notification_sink,
    app_settings: Settings,
) -> None:
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_telemetry_client] = lambda: telemetry_client
    app.dependency_overrides[get_payment_rail_client] = lambda: payment_rail
    app.dependency_overrides[get_notification_sink] = lambda: notification_sink
    app.dependency_overrides[get_settings] = lambda: app_settings


@pytest_asyncio.fixture
async def client(
    session_factory,
    telemetry_client,
    payment_rail,
    notification_sink,
    app_settings,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with mocked dependencies.

    This client:
    - Uses an in-memory SQLite database
    - Uses in-memory telemetry and payment rail clients
    - Records notification intents instead of delivering them
    """
    _install_overrides(
        session_factory, telemetry_client, payment_rail, notification_sink, app_settings
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# Helper Fixtures
# =============================================================================

@pytest.fixture
def borrower_request() -> dict:
    """Registration body for a driver."""
    return {
        "external_id": "drv_awa_001",
        "name": "Awa Diop",
        "phone": "+221770000001",
    }


@pytest.fixture
def loan_request() -> Callable[[str], dict]:
    """Build an application body for the given borrower."""

    def build(borrower_id: str, amount: str = "500000", term_weeks: int = 26) -> dict:
        return {
            "borrower_id": borrower_id,
            "amount": amount,
            "term_weeks": term_weeks,
            "purpose": "Vehicle maintenance and tyres",
        }

    return build


@pytest.fixture
def backdate_borrower(session_factory):
    """Move a borrower's registration date into the past."""

    async def backdate(borrower_id: str, days: int = 400) -> None:
        async with session_factory() as session:
            await session.execute(
                update(BorrowerModel)
                .where(BorrowerModel.id == borrower_id)
                .values(created_at=utcnow() - timedelta(days=days))
            )
            await session.commit()

    return backdate


async def verify_kyc(client: AsyncClient, borrower_id: str) -> None:
    """Submit and approve the full KYC document set."""
    for doc_type in ("ID_CARD", "DRIVERS_LICENSE", "SELFIE"):
        submitted = await client.post(
            f"/v1/borrowers/{borrower_id}/kyc/documents",
            json={"document_type": doc_type, "document_number": f"{doc_type}-42"},
        )
        assert submitted.status_code == 201

        reviewed = await client.post(
            f"/v1/kyc/documents/{submitted.json()['document_id']}/review",
            json={"status": "APPROVED", "reviewed_by": "ops@fleet"},
        )
        assert reviewed.status_code == 200


@pytest_asyncio.fixture
async def verified_borrower(client, borrower_request, backdate_borrower) -> dict:
    """A borrower old enough to borrow, with KYC verified."""
    response = await client.post("/v1/borrowers", json=borrower_request)
    assert response.status_code == 201
    borrower_id = response.json()["borrower_id"]

    await backdate_borrower(borrower_id)
    await verify_kyc(client, borrower_id)

    response = await client.get(f"/v1/borrowers/{borrower_id}")
    return response.json()


async def open_active_loan(client: AsyncClient, borrower_id: str, body: dict) -> dict:
    """Apply, approve and disburse a loan, returning the disbursed loan."""
    applied = await client.post("/v1/loans", json=body)
    assert applied.status_code == 201, applied.text
    loan_id = applied.json()["loan"]["loan_id"]

    approved = await client.post(
        f"/v1/loans/{loan_id}/approve",
        json={"approved_by": "ops@fleet"},
    )
    assert approved.status_code == 200, approved.text

    disbursed = await client.post(f"/v1/loans/{loan_id}/disburse")
    assert disbursed.status_code == 200, disbursed.text
    return disbursed.json()


@pytest_asyncio.fixture
async def active_loan(client, verified_borrower, loan_request) -> dict:
    """A disbursed 500000 / 26 week loan for the verified borrower."""
    return await open_active_loan(
        client,
        verified_borrower["borrower_id"],
        loan_request(verified_borrower["borrower_id"]),
    )
