"""Mobile-money payment rail client implementations."""

import asyncio
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from uuid import uuid4

import httpx
import structlog

from loan_gateway.core.config import settings
from loan_gateway.core.metrics import record_payment_rail_failure, track_payment_rail_latency
from loan_gateway.domain.entities import CheckoutSession, RailEvent, RailEventStatus
from loan_gateway.domain.exceptions import PaymentRailException, PaymentRailTimeoutException
from loan_gateway.domain.interfaces import PaymentRailClient

logger = structlog.get_logger(__name__)


def parse_checkout_event(payload: dict[str, Any]) -> Optional[RailEvent]:
    """
    Decode a checkout status event.

    A checkout counts as paid only when the payment succeeded and the
    checkout completed; every other terminal combination is a failure.
    Events without a transaction id carry nothing to act on.
    """
    transaction_id = payload.get("id")
    if not transaction_id:
        return None

    succeeded = (
        payload.get("payment_status") == "successful"
        and payload.get("checkout_status") == "complete"
    )

    try:
        amount = Decimal(str(payload.get("amount", "0")))
    except InvalidOperation:
        amount = Decimal("0")

    return RailEvent(
        transaction_id=str(transaction_id),
        status=RailEventStatus.SUCCESS if succeeded else RailEventStatus.FAILED,
        amount=amount,
        currency=payload.get("currency") or settings.currency,
        client_reference=payload.get("client_reference"),
    )


class HttpPaymentRailClient(PaymentRailClient):
    """
    HTTP client for the payment rail's checkout API.

    Opens checkout sessions with retry logic and proper error handling.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int = 3,
    ):
        self._base_url = base_url or settings.payment_rail_url
        self._api_key = api_key or settings.payment_rail_api_key
        self._timeout = timeout or settings.payment_rail_timeout
        self._max_retries = max_retries

    async def initiate_checkout(
        self,
        amount: Decimal,
        currency: str,
        payer_ref: str,
        description: str,
        client_reference: str,
    ) -> CheckoutSession:
        """
        Open a checkout session.

        Retries timeouts with exponential backoff; error responses are
        raised immediately.
        """
        url = f"{self._base_url}/v1/checkout/sessions"
        callback_base = settings.payment_rail_callback_base_url
        payload = {
            "amount": str(amount),
            "currency": currency,
            "client_reference": client_reference,
            "merchant_id": settings.payment_rail_merchant_id,
            "customer_phone_number": payer_ref,
            "description": description,
            "success_url": f"{callback_base}/v1/payments/rail/success",
            "error_url": f"{callback_base}/v1/payments/rail/error",
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

        last_exception = None

        for attempt in range(self._max_retries):
            try:
                with track_payment_rail_latency():
                    async with httpx.AsyncClient(timeout=self._timeout) as client:
                        response = await client.post(url, json=payload, headers=headers)

                        if response.status_code >= 400:
                            record_payment_rail_failure("error")
                            raise PaymentRailException(
                                message=f"Payment rail error: {response.text}",
                                status_code=response.status_code,
                            )

                        data = response.json()
                        logger.info(
                            "checkout_session_created",
                            provider_reference=data.get("id"),
                            client_reference=client_reference,
                        )
                        return CheckoutSession(
                            provider_reference=str(data["id"]),
                            checkout_url=data.get("wave_launch_url") or data.get("checkout_url", ""),
                            amount=amount,
                            currency=currency,
                        )

            except httpx.TimeoutException:
                record_payment_rail_failure("timeout")
                last_exception = PaymentRailTimeoutException()
                logger.warning(
                    "payment_rail_timeout",
                    client_reference=client_reference,
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                )
            except PaymentRailException:
                raise
            except Exception as e:
                record_payment_rail_failure("error")
                last_exception = PaymentRailException(message=f"Unexpected error: {str(e)}")
                logger.error(
                    "payment_rail_error",
                    client_reference=client_reference,
                    attempt=attempt + 1,
                    error=str(e),
                )

            # Exponential backoff
            if attempt < self._max_retries - 1:
                await asyncio.sleep(2**attempt * 0.1)

        raise last_exception or PaymentRailException("Failed to open checkout session")

    def parse_event(self, payload: dict[str, Any]) -> Optional[RailEvent]:
        return parse_checkout_event(payload)


class MockPaymentRailClient(PaymentRailClient):
    """
    In-memory payment rail used in mock mode and tests.

    Every checkout succeeds immediately with a generated reference.
    """

    def __init__(self):
        self.checkouts: list[CheckoutSession] = []

    async def initiate_checkout(
        self,
        amount: Decimal,
        currency: str,
        payer_ref: str,
        description: str,
        client_reference: str,
    ) -> CheckoutSession:
        reference = f"mock_rail_{uuid4().hex[:12]}"
        session = CheckoutSession(
            provider_reference=reference,
            checkout_url=f"https://checkout.example/mock/{reference}",
            amount=amount,
            currency=currency,
        )
        self.checkouts.append(session)
        logger.info(
            "checkout_session_created",
            provider_reference=reference,
            client_reference=client_reference,
            mock=True,
        )
        return session

    def parse_event(self, payload: dict[str, Any]) -> Optional[RailEvent]:
        return parse_checkout_event(payload)
