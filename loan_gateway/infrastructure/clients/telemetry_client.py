"""Fleet telemetry client implementations."""

import asyncio
from typing import Any, Dict, List, Optional

import httpx
import structlog

from loan_gateway.core.config import settings
from loan_gateway.core.metrics import record_telemetry_failure, track_telemetry_latency
from loan_gateway.domain.entities import DriverPerformance
from loan_gateway.domain.exceptions import TelemetryException, TelemetryTimeoutException
from loan_gateway.domain.interfaces import TelemetryClient

logger = structlog.get_logger(__name__)

MOCK_PERFORMANCE = DriverPerformance(
    driver_id="mock_driver",
    average_rating=4.7,
    acceptance_rate=0.93,
    total_trips=450,
    completed_trips=420,
)


class HttpTelemetryClient(TelemetryClient):
    """
    HTTP client for the fleet telemetry API.

    Derives driver performance from the fleet's order list, with retry
    logic and proper error handling.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int = 3,
    ):
        self._base_url = base_url or settings.telemetry_api_url
        self._api_key = api_key or settings.telemetry_api_key
        self._timeout = timeout or settings.telemetry_timeout
        self._max_retries = max_retries

    async def get_performance(self, external_id: str) -> Optional[DriverPerformance]:
        """
        Fetch a driver's trips and summarize them.

        Implements retry logic with exponential backoff.
        """
        url = f"{self._base_url}/v1/parks/orders/list"
        payload = {
            "query": {
                "park": {
                    "id": settings.telemetry_partner_id,
                    "driver_profile": {"id": external_id},
                },
            },
        }
        headers = {
            "Content-Type": "application/json",
            "X-Client-ID": settings.telemetry_client_id or "",
            "X-Api-Key": self._api_key or "",
        }

        last_exception = None

        for attempt in range(self._max_retries):
            try:
                with track_telemetry_latency():
                    async with httpx.AsyncClient(timeout=self._timeout) as client:
                        response = await client.post(url, json=payload, headers=headers)

                        if response.status_code == 404:
                            return None

                        if response.status_code >= 400:
                            record_telemetry_failure("error")
                            raise TelemetryException(
                                message=f"Telemetry API error: {response.text}",
                                status_code=response.status_code,
                            )

                        return self._parse_performance(external_id, response.json())

            except httpx.TimeoutException:
                record_telemetry_failure("timeout")
                last_exception = TelemetryTimeoutException()
                logger.warning(
                    "telemetry_timeout",
                    external_id=external_id,
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                )
            except TelemetryException:
                raise
            except Exception as e:
                record_telemetry_failure("error")
                last_exception = TelemetryException(message=f"Unexpected error: {str(e)}")
                logger.error(
                    "telemetry_error",
                    external_id=external_id,
                    attempt=attempt + 1,
                    error=str(e),
                )

            # Exponential backoff
            if attempt < self._max_retries - 1:
                await asyncio.sleep(2**attempt * 0.1)

        raise last_exception or TelemetryException("Failed to fetch driver performance")

    def _parse_performance(
        self,
        external_id: str,
        data: Dict[str, Any],
    ) -> Optional[DriverPerformance]:
        """Summarize raw orders into DriverPerformance, or None if there are none."""
        orders: List[Dict[str, Any]] = data.get("orders") or []
        if not orders:
            return None

        completed = [o for o in orders if o.get("status") == "complete"]
        ratings = [float(o.get("rating") or 0) for o in completed]
        average_rating = sum(ratings) / len(ratings) if ratings else 0.0

        return DriverPerformance(
            driver_id=external_id,
            average_rating=average_rating,
            acceptance_rate=len(completed) / len(orders),
            total_trips=len(orders),
            completed_trips=len(completed),
        )


class MockTelemetryClient(TelemetryClient):
    """
    In-memory telemetry used in mock mode and tests.

    Known drivers get their registered performance; everyone else gets
    ``default``, which may be None to simulate an unmatched driver.
    """

    def __init__(
        self,
        performances: Dict[str, DriverPerformance] | None = None,
        default: Optional[DriverPerformance] = MOCK_PERFORMANCE,
    ):
        self._performances = dict(performances or {})
        self._default = default

    def register(self, external_id: str, performance: DriverPerformance) -> None:
        self._performances[external_id] = performance

    async def get_performance(self, external_id: str) -> Optional[DriverPerformance]:
        logger.info("telemetry_mock_lookup", external_id=external_id)
        return self._performances.get(external_id, self._default)
