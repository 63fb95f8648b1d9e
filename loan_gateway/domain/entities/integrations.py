"""Normalized data returned by external providers."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class DriverPerformance:
    """
    Driver performance metrics from the fleet telemetry feed.

    Attributes:
        driver_id: Provider-side driver profile identifier
        average_rating: Mean passenger rating (0-5)
        acceptance_rate: Share of offered trips accepted (0-1)
        total_trips: Trips assigned over the reporting window
        completed_trips: Trips completed over the reporting window
    """

    driver_id: str
    average_rating: float
    acceptance_rate: float
    total_trips: int
    completed_trips: int

    @property
    def completion_rate(self) -> float:
        if self.total_trips <= 0:
            return 0.0
        return self.completed_trips / self.total_trips


@dataclass(frozen=True)
class CheckoutSession:
    """A checkout opened with the payment rail."""

    provider_reference: str
    checkout_url: str
    amount: Decimal
    currency: str


class RailEventStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class RailEvent:
    """Terminal payment status reported by the payment rail."""

    transaction_id: str
    status: RailEventStatus
    amount: Decimal
    currency: str
    client_reference: Optional[str] = None
