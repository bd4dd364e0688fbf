"""Prometheus metrics for payment recording, scheme lifecycle and request latency"""

from typing import Iterable, Optional

from prometheus_client import Counter, Histogram

from scheme_tracker.domain.models import PaymentMode

# Payment metrics
payments_recorded_counter = Counter(
    "scheme_payments_recorded_total",
    "Installments recorded",
    ["mode"],  # PaymentMode value, or "unspecified"
)

payments_reversed_counter = Counter(
    "scheme_payments_reversed_total",
    "Recorded installments cleared again",
)

# Scheme lifecycle metrics
schemes_created_counter = Counter(
    "scheme_created_total",
    "Schemes created",
)

schemes_closed_counter = Counter(
    "scheme_closed_total",
    "Schemes closed by an operator",
)

schemes_archived_counter = Counter(
    "scheme_archived_total",
    "Schemes moved to the archive",
    ["trigger"],  # manual | auto
)

scheme_deletions_counter = Counter(
    "scheme_deletions_total",
    "Scheme deletion attempts",
    ["outcome"],  # deleted | rejected
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payment_modes(modes: Optional[Iterable[PaymentMode]]) -> None:
    """Count one recorded installment per payment channel used"""
    labels = sorted(m.value for m in modes) if modes else ["unspecified"]
    for label in labels:
        payments_recorded_counter.labels(mode=label).inc()
