"""External API client implementations."""

from .telemetry_client import HttpTelemetryClient, MockTelemetryClient, MOCK_PERFORMANCE
from .payment_rail_client import (
    HttpPaymentRailClient,
    MockPaymentRailClient,
    parse_checkout_event,
)
from .notification_client import HttpNotificationSink, LoggingNotificationSink

__all__ = [
    "HttpTelemetryClient",
    "MockTelemetryClient",
    "MOCK_PERFORMANCE",
    "HttpPaymentRailClient",
    "MockPaymentRailClient",
    "parse_checkout_event",
    "HttpNotificationSink",
    "LoggingNotificationSink",
]
