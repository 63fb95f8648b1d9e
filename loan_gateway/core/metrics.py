"""Prometheus metrics for the Driver Loan Gateway.

Metrics are organized into two categories:

Business Metrics (for Product/Finance):
- loans_applications_total: Loan applications by outcome
- loans_decisions_total: Admin decisions by outcome
- loans_disbursed_total / loans_disbursed_amount: Disbursements
- loans_defaulted_total: Loans marked defaulted
- loans_payments_total: Payments by terminal status
- loans_payment_amount_allocated: Money applied to schedules
- loans_credit_score_recalculations_total: Recalculations by reason
- loans_credit_rating_assigned_total: Ratings assigned

Technical Metrics (for Engineering/SRE):
- loans_telemetry_latency_seconds: Telemetry provider latency
- loans_telemetry_failures_total: Telemetry provider failures
- loans_payment_rail_latency_seconds: Payment rail latency
- loans_payment_rail_failures_total: Payment rail failures
- loans_notification_*: Notification deliveries, retries and failures
- loans_http_requests_total: HTTP requests by endpoint/status
"""

import time
from contextlib import contextmanager
from decimal import Decimal
from typing import Generator

from prometheus_client import Counter, Histogram, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Business Metrics (Product/Finance dashboards)
# =============================================================================

loan_applications_total = Counter(
    "loans_applications_total",
    "Total number of loan applications",
    ["outcome"],  # submitted, ineligible, conflict, exceeds_limit
)

loan_decisions_total = Counter(
    "loans_decisions_total",
    "Total number of admin loan decisions",
    ["outcome"],  # approved, rejected
)

loans_disbursed_total = Counter(
    "loans_disbursed_total",
    "Total number of loans disbursed",
)

loans_disbursed_amount = Counter(
    "loans_disbursed_amount",
    "Total principal disbursed in the configured currency",
)

loans_defaulted_total = Counter(
    "loans_defaulted_total",
    "Total number of loans marked defaulted",
)

payments_total = Counter(
    "loans_payments_total",
    "Total number of payments by status",
    ["status"],  # SUCCESS, FAILED, REFUNDED
)

payment_amount_allocated = Counter(
    "loans_payment_amount_allocated",
    "Total payment amount applied to repayment schedules",
)

credit_score_recalculations = Counter(
    "loans_credit_score_recalculations_total",
    "Total number of credit score recalculations",
    ["reason"],
)

credit_rating_assigned = Counter(
    "loans_credit_rating_assigned_total",
    "Credit ratings assigned by recalculations",
    ["rating"],
)


# =============================================================================
# Technical Metrics (Engineering/SRE dashboards)
# =============================================================================

telemetry_latency = Histogram(
    "loans_telemetry_latency_seconds",
    "Telemetry provider latency in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

telemetry_failures = Counter(
    "loans_telemetry_failures_total",
    "Total number of telemetry provider failures",
    ["error_type"],  # timeout, error
)

payment_rail_latency = Histogram(
    "loans_payment_rail_latency_seconds",
    "Payment rail request latency in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

payment_rail_failures = Counter(
    "loans_payment_rail_failures_total",
    "Total number of payment rail failures",
    ["error_type"],  # timeout, error
)

notification_latency = Histogram(
    "loans_notification_latency_seconds",
    "Notification delivery latency in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

notification_success = Counter(
    "loans_notification_success_total",
    "Total number of delivered notifications",
    ["event"],
)

notification_retries = Counter(
    "loans_notification_retry_total",
    "Total number of notification delivery retries",
)

notification_failures = Counter(
    "loans_notification_failures_total",
    "Total number of notification deliveries that exhausted retries",
)

http_requests_total = Counter(
    "loans_http_requests_total",
    "Total HTTP requests by endpoint and status",
    ["method", "endpoint", "status"],
)

http_request_latency = Histogram(
    "loans_http_request_latency_seconds",
    "HTTP request latency by endpoint",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_loan_application(outcome: str) -> None:
    """Record the outcome of a loan application."""
    loan_applications_total.labels(outcome=outcome).inc()


def record_loan_decision(approved: bool) -> None:
    """Record an admin approval or rejection."""
    loan_decisions_total.labels(outcome="approved" if approved else "rejected").inc()


def record_disbursement(principal: Decimal) -> None:
    """Record a disbursed loan."""
    loans_disbursed_total.inc()
    loans_disbursed_amount.inc(float(principal))


def record_default() -> None:
    """Record a loan marked defaulted."""
    loans_defaulted_total.inc()


def record_payment(status: str, allocated: Decimal | None = None) -> None:
    """Record a payment reaching a terminal status."""
    payments_total.labels(status=status).inc()
    if allocated is not None and allocated > 0:
        payment_amount_allocated.inc(float(allocated))


def record_score_recalculation(reason: str, rating: str) -> None:
    """Record a credit score recalculation."""
    credit_score_recalculations.labels(reason=reason).inc()
    credit_rating_assigned.labels(rating=rating).inc()


@contextmanager
def track_telemetry_latency() -> Generator[None, None, None]:
    """Context manager to track telemetry provider latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        telemetry_latency.observe(duration)


def record_telemetry_failure(error_type: str) -> None:
    """Record a telemetry provider failure."""
    telemetry_failures.labels(error_type=error_type).inc()


@contextmanager
def track_payment_rail_latency() -> Generator[None, None, None]:
    """Context manager to track payment rail latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        payment_rail_latency.observe(duration)


def record_payment_rail_failure(error_type: str) -> None:
    """Record a payment rail failure."""
    payment_rail_failures.labels(error_type=error_type).inc()


@contextmanager
def track_notification_latency() -> Generator[None, None, None]:
    """Context manager to track notification delivery latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        notification_latency.observe(duration)


def record_notification_success(event: str) -> None:
    """Record a delivered notification."""
    notification_success.labels(event=event).inc()


def record_notification_retry() -> None:
    """Record a notification retry attempt."""
    notification_retries.inc()


def record_notification_failure() -> None:
    """Record a notification that exhausted its retries."""
    notification_failures.inc()


def record_http_request(method: str, endpoint: str, status: int, duration: float) -> None:
    """Record an HTTP request."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status)).inc()
    http_request_latency.labels(method=method, endpoint=endpoint).observe(duration)


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST
