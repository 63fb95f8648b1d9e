"""Exceptions raised by external provider clients."""

from .base import ExternalDependencyException


class TelemetryException(ExternalDependencyException):
    """Raised when the fleet telemetry provider returns an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message=message,
            provider="telemetry",
            status_code=status_code,
            code="TELEMETRY_ERROR",
        )


class TelemetryTimeoutException(TelemetryException):
    """Raised when the fleet telemetry provider times out."""

    def __init__(self):
        super().__init__(message="Telemetry request timed out")
        self.code = "TELEMETRY_TIMEOUT"


class PaymentRailException(ExternalDependencyException):
    """Raised when the payment rail returns an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message=message,
            provider="payment_rail",
            status_code=status_code,
            code="PAYMENT_RAIL_ERROR",
        )


class PaymentRailTimeoutException(PaymentRailException):
    """Raised when the payment rail times out."""

    def __init__(self):
        super().__init__(message="Payment rail request timed out")
        self.code = "PAYMENT_RAIL_TIMEOUT"
