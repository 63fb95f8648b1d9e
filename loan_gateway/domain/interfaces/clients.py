"""External client interfaces."""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Optional

from loan_gateway.domain.entities import (
    CheckoutSession,
    DriverPerformance,
    NotificationIntent,
    RailEvent,
)


class TelemetryClient(ABC):
    """
    Abstract client for the fleet telemetry provider.

    Supplies the driving performance used by the credit score.
    """

    @abstractmethod
    async def get_performance(self, external_id: str) -> Optional[DriverPerformance]:
        """
        Fetch performance metrics for a driver.

        Args:
            external_id: The driver identifier shared with the fleet

        Returns:
            The driver's metrics, or None when the fleet has no such driver

        Raises:
            TelemetryException: If the provider returns an error
            TelemetryTimeoutException: If the request times out
        """
        ...


class PaymentRailClient(ABC):
    """
    Abstract client for the mobile-money payment rail.

    Opens checkouts for repayments and decodes the rail's status events.
    """

    @abstractmethod
    async def initiate_checkout(
        self,
        amount: Decimal,
        currency: str,
        payer_ref: str,
        description: str,
        client_reference: str,
    ) -> CheckoutSession:
        """
        Open a checkout the borrower completes on their phone.

        Args:
            amount: Amount to collect
            currency: ISO currency code
            payer_ref: Payer identifier (phone number)
            description: Free-text shown to the payer
            client_reference: Our payment id, echoed back in events

        Returns:
            The checkout with the provider's transaction reference

        Raises:
            PaymentRailException: If the rail rejects the request
            PaymentRailTimeoutException: If the request times out
        """
        ...

    @abstractmethod
    def parse_event(self, payload: dict[str, Any]) -> Optional[RailEvent]:
        """
        Decode a status event pushed by the rail.

        Args:
            payload: The decoded JSON body

        Returns:
            The terminal event, or None for events that carry no outcome
        """
        ...


class NotificationSink(ABC):
    """
    Abstract destination for notification intents.

    Delivery is best effort: implementations never raise to the caller.
    """

    @abstractmethod
    async def send(self, intent: NotificationIntent) -> bool:
        """
        Deliver a notification intent.

        Args:
            intent: The intent to deliver

        Returns:
            True if the intent was delivered

        Note:
            Implementations should handle retries with backoff.
        """
        ...
