"""
Integration tests for the Payment endpoints.

These tests verify:
1. Repayments settle against the schedule oldest installment first
2. Balance and state checks before a payment is accepted
3. Refunds undoing exactly what a payment allocated
4. Payment rail checkouts settled by rail callbacks
"""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from loan_gateway.application.services.payment_service import _loan_locks, loan_lock
from loan_gateway.core.config import Settings
from loan_gateway.core.dependencies import get_payment_rail_client
from loan_gateway.domain.entities import NotificationType
from loan_gateway.infrastructure.database import Base
from loan_gateway.infrastructure.repositories import PostgresPaymentAllocationRepository
from loan_gateway.main import app
from tests.integration.conftest import FailingPaymentRailClient


def payment_body(loan: dict, amount: str, method: str = "WAVE") -> dict:
    return {
        "borrower_id": loan["borrower_id"],
        "loan_id": loan["loan_id"],
        "amount": amount,
        "method": method,
    }


def manual_body(loan: dict, amount: str, reference: str = "cash-desk-001") -> dict:
    return {
        "borrower_id": loan["borrower_id"],
        "loan_id": loan["loan_id"],
        "amount": amount,
        "method": "CASH",
        "reference": reference,
    }


async def get_schedule(client: AsyncClient, loan_id: str) -> list[dict]:
    response = await client.get(f"/v1/loans/{loan_id}/schedule")
    assert response.status_code == 200
    return response.json()["entries"]


# =============================================================================
# Repayments
# =============================================================================

class TestRepayment:
    """Tests for POST /v1/payments in mock mode."""

    @pytest.mark.asyncio
    async def test_weekly_payment_settles_first_installment(
        self,
        client: AsyncClient,
        active_loan: dict,
        notification_sink,
    ):
        response = await client.post(
            "/v1/payments", json=payment_body(active_loan, "20673.08")
        )

        assert response.status_code == 201
        payment = response.json()
        assert payment["status"] == "SUCCESS"
        assert payment["processed_at"] is not None
        assert Decimal(payment["unallocated_amount"]) == Decimal("0")

        entries = await get_schedule(client, active_loan["loan_id"])
        assert payment["schedule_entry_id"] == entries[0]["entry_id"]
        assert entries[0]["status"] == "PAID"
        assert entries[0]["paid_at"] is not None
        assert entries[1]["status"] == "PENDING"

        loan = (await client.get(f"/v1/loans/{active_loan['loan_id']}")).json()
        assert Decimal(loan["amount_paid"]) == Decimal("20673.08")
        assert Decimal(loan["outstanding_balance"]) == Decimal("516826.92")

        assert notification_sink.sent[-1].type == NotificationType.PAYMENT_SUCCESS

    @pytest.mark.asyncio
    async def test_payment_updates_credit_score(self, client: AsyncClient, active_loan: dict):
        """
        One on-time payment lifts payment history to 1000 while utilization
        of the fresh loan drops to 400.
        """
        await client.post("/v1/payments", json=payment_body(active_loan, "20673.08"))

        score = (
            await client.get(f"/v1/borrowers/{active_loan['borrower_id']}/credit-score")
        ).json()

        assert score["breakdown"]["payment_history"] == 1000
        assert score["breakdown"]["loan_utilization"] == 400
        assert score["score"] == 775
        assert score["rating"] == "B"

    @pytest.mark.asyncio
    async def test_partial_payment_spans_installments(
        self,
        client: AsyncClient,
        active_loan: dict,
    ):
        await client.post("/v1/payments", json=payment_body(active_loan, "30000"))

        entries = await get_schedule(client, active_loan["loan_id"])
        assert entries[0]["status"] == "PAID"
        assert entries[1]["status"] == "PARTIAL"
        assert Decimal(entries[1]["amount_paid"]) == Decimal("9326.92")
        assert entries[2]["status"] == "PENDING"

    @pytest.mark.asyncio
    async def test_payment_above_outstanding_rejected(
        self,
        client: AsyncClient,
        active_loan: dict,
    ):
        response = await client.post(
            "/v1/payments", json=payment_body(active_loan, "537500.01")
        )

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_payment_below_minimum_rejected(
        self,
        client: AsyncClient,
        active_loan: dict,
    ):
        response = await client.post("/v1/payments", json=payment_body(active_loan, "999"))

        assert response.status_code == 422
        assert response.json()["message"] == "amount must be at least 1000"

    @pytest.mark.asyncio
    async def test_residual_balance_below_minimum_can_be_paid(
        self,
        client: AsyncClient,
        active_loan: dict,
    ):
        await client.post("/v1/payments/manual", json=manual_body(active_loan, "537000.00"))

        too_small = await client.post("/v1/payments", json=payment_body(active_loan, "400"))
        assert too_small.status_code == 422
        assert too_small.json()["message"] == "amount must be at least 500.00"

        response = await client.post("/v1/payments", json=payment_body(active_loan, "500.00"))

        assert response.status_code == 201
        assert response.json()["status"] == "SUCCESS"

        loan = (await client.get(f"/v1/loans/{active_loan['loan_id']}")).json()
        assert loan["status"] == "COMPLETED"
        assert Decimal(loan["outstanding_balance"]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_payment_on_approved_loan_conflicts(
        self,
        client: AsyncClient,
        verified_borrower: dict,
        loan_request,
    ):
        applied = await client.post(
            "/v1/loans", json=loan_request(verified_borrower["borrower_id"])
        )
        loan = applied.json()["loan"]
        await client.post(
            f"/v1/loans/{loan['loan_id']}/approve", json={"approved_by": "ops@fleet"}
        )

        response = await client.post("/v1/payments", json=payment_body(loan, "20673.08"))

        assert response.status_code == 409
        data = response.json()
        assert data["error"] == "LOAN_NOT_ACTIVE"
        assert data["details"] == {"current_status": "APPROVED"}

    @pytest.mark.asyncio
    async def test_payment_for_someone_elses_loan(
        self,
        client: AsyncClient,
        active_loan: dict,
    ):
        other = (
            await client.post(
                "/v1/borrowers",
                json={"external_id": "drv_other", "name": "Ibou Fall", "phone": "+221770000002"},
            )
        ).json()

        response = await client.post(
            "/v1/payments",
            json={**payment_body(active_loan, "20673.08"), "borrower_id": other["borrower_id"]},
        )

        assert response.status_code == 404
        assert response.json()["error"] == "LOAN_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_full_repayment_completes_loan(
        self,
        client: AsyncClient,
        active_loan: dict,
    ):
        response = await client.post(
            "/v1/payments/manual", json=manual_body(active_loan, "537500.00")
        )

        assert response.status_code == 201
        assert response.json()["reference"] == "cash-desk-001"

        loan = (await client.get(f"/v1/loans/{active_loan['loan_id']}")).json()
        assert loan["status"] == "COMPLETED"
        assert Decimal(loan["outstanding_balance"]) == Decimal("0")

        entries = await get_schedule(client, active_loan["loan_id"])
        assert all(e["status"] == "PAID" for e in entries)

        # A completed loan frees the borrower to apply again
        eligibility = (
            await client.get(f"/v1/borrowers/{active_loan['borrower_id']}/eligibility")
        ).json()
        assert eligibility["active_loans"] == 0

    @pytest.mark.asyncio
    async def test_manual_payment_requires_reference(
        self,
        client: AsyncClient,
        active_loan: dict,
    ):
        response = await client.post(
            "/v1/payments/manual", json=manual_body(active_loan, "5000", reference=" ")
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_payment_listings(self, client: AsyncClient, active_loan: dict):
        first = (
            await client.post("/v1/payments", json=payment_body(active_loan, "20673.08"))
        ).json()
        second = (
            await client.post("/v1/payments", json=payment_body(active_loan, "20673.08"))
        ).json()

        by_loan = (await client.get(f"/v1/payments/loan/{active_loan['loan_id']}")).json()
        assert {p["payment_id"] for p in by_loan["payments"]} == {
            first["payment_id"],
            second["payment_id"],
        }

        by_borrower = (
            await client.get(
                f"/v1/borrowers/{active_loan['borrower_id']}/payments",
                params={"page": 1, "limit": 1},
            )
        ).json()
        assert len(by_borrower["payments"]) == 1

        single = await client.get(f"/v1/payments/{first['payment_id']}")
        assert single.status_code == 200
        assert single.json()["amount"] == first["amount"]

    @pytest.mark.asyncio
    async def test_unknown_payment(self, client: AsyncClient):
        response = await client.get(f"/v1/payments/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "PAYMENT_NOT_FOUND"


# =============================================================================
# Refunds
# =============================================================================

class TestRefund:
    """Tests for POST /v1/payments/{id}/refund."""

    @pytest.mark.asyncio
    async def test_refund_restores_schedule(self, client: AsyncClient, active_loan: dict):
        before = await get_schedule(client, active_loan["loan_id"])
        payment = (
            await client.post("/v1/payments", json=payment_body(active_loan, "30000"))
        ).json()

        response = await client.post(
            f"/v1/payments/{payment['payment_id']}/refund",
            json={"reason": "Charged twice by the operator"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "REFUNDED"
        assert response.json()["refunded_at"] is not None

        after = await get_schedule(client, active_loan["loan_id"])
        assert [(Decimal(e["amount_paid"]), e["status"]) for e in after] == [
            (Decimal(e["amount_paid"]), e["status"]) for e in before
        ]

        loan = (await client.get(f"/v1/loans/{active_loan['loan_id']}")).json()
        assert Decimal(loan["amount_paid"]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_refund_reopens_completed_loan(
        self,
        client: AsyncClient,
        active_loan: dict,
        notification_sink,
    ):
        payment = (
            await client.post(
                "/v1/payments/manual", json=manual_body(active_loan, "537500.00")
            )
        ).json()

        await client.post(
            f"/v1/payments/{payment['payment_id']}/refund",
            json={"reason": "Cash was counterfeit"},
        )

        loan = (await client.get(f"/v1/loans/{active_loan['loan_id']}")).json()
        assert loan["status"] == "ACTIVE"
        assert Decimal(loan["outstanding_balance"]) == Decimal("537500.00")
        assert notification_sink.sent[-1].type == NotificationType.PAYMENT_REFUNDED

    @pytest.mark.asyncio
    async def test_refund_twice_conflicts(self, client: AsyncClient, active_loan: dict):
        payment = (
            await client.post("/v1/payments", json=payment_body(active_loan, "20673.08"))
        ).json()
        refund_url = f"/v1/payments/{payment['payment_id']}/refund"
        await client.post(refund_url, json={"reason": "Duplicate charge"})

        response = await client.post(refund_url, json={"reason": "Duplicate charge"})

        assert response.status_code == 409
        data = response.json()
        assert data["error"] == "INVALID_PAYMENT_TRANSITION"
        assert data["details"] == {"current_status": "REFUNDED"}

    @pytest.mark.asyncio
    async def test_refund_requires_reason(self, client: AsyncClient, active_loan: dict):
        payment = (
            await client.post("/v1/payments", json=payment_body(active_loan, "20673.08"))
        ).json()

        response = await client.post(
            f"/v1/payments/{payment['payment_id']}/refund", json={"reason": ""}
        )

        assert response.status_code == 422


# =============================================================================
# Payment Rail
# =============================================================================

class TestPaymentRail:
    """Tests for checkouts settled through the payment rail callback."""

    @pytest.fixture
    def app_settings(self) -> Settings:
        return Settings(mock_mode=False)

    @pytest_asyncio.fixture
    async def pending_payment(self, client: AsyncClient, active_loan: dict) -> dict:
        response = await client.post(
            "/v1/payments", json=payment_body(active_loan, "20673.08")
        )
        assert response.status_code == 201
        return response.json()

    def rail_event(self, payment: dict, payment_status: str = "successful") -> dict:
        return {
            "id": payment["provider_reference"],
            "payment_status": payment_status,
            "checkout_status": "complete",
            "amount": payment["amount"],
            "currency": "XOF",
            "client_reference": payment["payment_id"],
        }

    @pytest.mark.asyncio
    async def test_checkout_leaves_payment_pending(
        self,
        client: AsyncClient,
        pending_payment: dict,
        payment_rail,
        active_loan: dict,
    ):
        assert pending_payment["status"] == "PENDING"
        assert pending_payment["provider_reference"].startswith("mock_rail_")
        assert pending_payment["checkout_url"].endswith(pending_payment["provider_reference"])
        assert len(payment_rail.checkouts) == 1

        loan = (await client.get(f"/v1/loans/{active_loan['loan_id']}")).json()
        assert Decimal(loan["amount_paid"]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_successful_callback_settles_payment(
        self,
        client: AsyncClient,
        pending_payment: dict,
        active_loan: dict,
    ):
        response = await client.post(
            "/v1/payments/rail/webhook", json=self.rail_event(pending_payment)
        )

        assert response.status_code == 200
        assert response.json() == {
            "received": True,
            "processed": True,
            "payment_id": pending_payment["payment_id"],
            "status": "SUCCESS",
        }

        entries = await get_schedule(client, active_loan["loan_id"])
        assert entries[0]["status"] == "PAID"

    @pytest.mark.asyncio
    async def test_duplicate_callback_is_acknowledged(
        self,
        client: AsyncClient,
        pending_payment: dict,
        active_loan: dict,
    ):
        event = self.rail_event(pending_payment)
        await client.post("/v1/payments/rail/webhook", json=event)

        response = await client.post("/v1/payments/rail/webhook", json=event)

        assert response.status_code == 200
        assert response.json()["processed"] is False
        assert response.json()["status"] == "SUCCESS"

        loan = (await client.get(f"/v1/loans/{active_loan['loan_id']}")).json()
        assert Decimal(loan["amount_paid"]) == Decimal("20673.08")

    @pytest.mark.asyncio
    async def test_failed_callback(
        self,
        client: AsyncClient,
        pending_payment: dict,
        notification_sink,
    ):
        response = await client.post(
            "/v1/payments/rail/webhook",
            json=self.rail_event(pending_payment, payment_status="cancelled"),
        )

        assert response.json()["status"] == "FAILED"

        payment = (await client.get(f"/v1/payments/{pending_payment['payment_id']}")).json()
        assert payment["failure_reason"] == "Payment failed at provider"
        assert payment["schedule_entry_id"] is not None
        assert notification_sink.sent[-1].type == NotificationType.PAYMENT_FAILED

    @pytest.mark.asyncio
    async def test_callback_with_different_amount_is_held(
        self,
        client: AsyncClient,
        pending_payment: dict,
        active_loan: dict,
    ):
        event = {**self.rail_event(pending_payment), "amount": "20000.00"}

        response = await client.post("/v1/payments/rail/webhook", json=event)

        assert response.status_code == 200
        assert response.json()["processed"] is False
        assert response.json()["status"] == "PENDING"

        loan = (await client.get(f"/v1/loans/{active_loan['loan_id']}")).json()
        assert Decimal(loan["amount_paid"]) == Decimal("0")

        settled = await client.post(
            "/v1/payments/rail/webhook", json=self.rail_event(pending_payment)
        )
        assert settled.json()["status"] == "SUCCESS"

    @pytest.mark.asyncio
    async def test_unknown_and_malformed_callbacks(self, client: AsyncClient):
        unknown = await client.post(
            "/v1/payments/rail/webhook",
            json={"id": "tx_unknown", "payment_status": "successful"},
        )
        malformed = await client.post(
            "/v1/payments/rail/webhook", json={"type": "checkout.session.completed"}
        )

        assert unknown.status_code == 200
        assert unknown.json()["processed"] is False
        assert malformed.status_code == 200
        assert malformed.json() == {
            "received": True,
            "processed": False,
            "payment_id": None,
            "status": None,
        }

    @pytest.mark.asyncio
    async def test_mark_pending_payment_failed(self, client: AsyncClient, pending_payment: dict):
        response = await client.post(
            f"/v1/payments/{pending_payment['payment_id']}/fail",
            json={"reason": "Borrower abandoned checkout"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "FAILED"

        response = await client.post(
            f"/v1/payments/{pending_payment['payment_id']}/refund",
            json={"reason": "Not applicable"},
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_pending_payments_reserve_balance(
        self,
        client: AsyncClient,
        active_loan: dict,
    ):
        await client.post("/v1/payments", json=payment_body(active_loan, "537000"))

        response = await client.post("/v1/payments", json=payment_body(active_loan, "1000"))

        assert response.status_code == 422
        assert "500" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_rail_outage_fails_payment(self, client: AsyncClient, active_loan: dict):
        app.dependency_overrides[get_payment_rail_client] = lambda: FailingPaymentRailClient()

        response = await client.post(
            "/v1/payments", json=payment_body(active_loan, "20673.08")
        )

        assert response.status_code == 503
        assert response.json()["error"] == "PAYMENT_RAIL_ERROR"

        payments = (
            await client.get(f"/v1/payments/loan/{active_loan['loan_id']}")
        ).json()["payments"]
        assert len(payments) == 1
        assert payments[0]["status"] == "FAILED"
        assert payments[0]["failure_reason"].startswith("Checkout could not be opened")



# =============================================================================
# Settlement Integrity
# =============================================================================

class TestSettlementIntegrity:
    """Settlement is all-or-nothing and payments on one loan apply in turn."""

    @pytest_asyncio.fixture
    async def test_engine(self, tmp_path):
        """File database, so concurrent requests each get their own connection."""
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / 'loans.db'}",
            poolclass=NullPool,
        )

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        yield engine

        await engine.dispose()

    @pytest.mark.asyncio
    async def test_failed_settlement_changes_nothing(
        self,
        client: AsyncClient,
        active_loan: dict,
    ):
        transport = ASGITransport(app=app, raise_app_exceptions=False)

        with patch.object(
            PostgresPaymentAllocationRepository,
            "save_all",
            AsyncMock(side_effect=RuntimeError("disk full")),
        ):
            async with AsyncClient(transport=transport, base_url="http://test") as raw:
                response = await raw.post(
                    "/v1/payments", json=payment_body(active_loan, "30000")
                )

        assert response.status_code == 500

        payments = (
            await client.get(f"/v1/payments/loan/{active_loan['loan_id']}")
        ).json()["payments"]
        assert [p["status"] for p in payments] == ["PENDING"]

        loan = (await client.get(f"/v1/loans/{active_loan['loan_id']}")).json()
        assert Decimal(loan["amount_paid"]) == Decimal("0")
        assert loan["status"] == "ACTIVE"

        entries = await get_schedule(client, active_loan["loan_id"])
        assert all(Decimal(e["amount_paid"]) == Decimal("0") for e in entries)
        assert {e["status"] for e in entries} == {"PENDING"}

    @pytest.mark.asyncio
    async def test_concurrent_payments_on_one_loan(
        self,
        client: AsyncClient,
        active_loan: dict,
    ):
        responses = await asyncio.gather(
            client.post("/v1/payments", json=payment_body(active_loan, "30000")),
            client.post("/v1/payments", json=payment_body(active_loan, "20000")),
        )

        assert [r.status_code for r in responses] == [201, 201]
        assert {r.json()["status"] for r in responses} == {"SUCCESS"}

        loan = (await client.get(f"/v1/loans/{active_loan['loan_id']}")).json()
        entries = await get_schedule(client, active_loan["loan_id"])

        assert Decimal(loan["amount_paid"]) == Decimal("50000")
        assert sum(Decimal(e["amount_paid"]) for e in entries) == Decimal(loan["amount_paid"])
        assert [e["status"] for e in entries[:3]] == ["PAID", "PAID", "PARTIAL"]

    @pytest.mark.asyncio
    async def test_loan_locks_released_after_use(self):
        loan_id = uuid4()
        order = []

        async def settle(name: str):
            async with loan_lock(loan_id):
                order.append(name)
                await asyncio.sleep(0)

        await asyncio.gather(settle("first"), settle("second"))

        assert order == ["first", "second"]
        assert loan_id not in _loan_locks
