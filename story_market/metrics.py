"""
Prometheus metrics for booking and search.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from story_market.metrics import booking_attempts
    >>> booking_attempts.labels(flow="traveller_pay_first", outcome="created").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Booking Metrics
# =============================================================================

booking_attempts = Counter(
    "story_market_booking_attempts_total",
    "Total booking attempts by flow and outcome",
    ["flow", "outcome"],
)
"""
Counter for booking attempts.

Labels:
    flow: Booking flow (host_immediate, traveller_pay_first)
    outcome: created, or the rejection reason (capacity_exceeded,
        duration_mismatch, ...), or internal_error
"""

booking_transaction_duration = Histogram(
    "story_market_booking_transaction_seconds",
    "Duration of the booking read-validate-write transaction in seconds",
    ["flow"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, float("inf")),
)
"""
Histogram for booking transaction duration, including time spent waiting on
the listing row lock held by concurrent attempts.

Labels:
    flow: Booking flow
"""

abandoned_bookings_released = Counter(
    "story_market_abandoned_bookings_released_total",
    "Pending-payment bookings released after the payment timeout",
)

host_rejections = Counter(
    "story_market_host_rejections_total",
    "Bookings cancelled by the host of the listing",
)

# =============================================================================
# Search Metrics
# =============================================================================

search_requests = Counter(
    "story_market_search_requests_total",
    "Total search requests by status",
    ["status"],
)
"""
Counter for search requests.

Labels:
    status: success, the validation reason (invalid_date, ...), or internal_error
"""

search_duration = Histogram(
    "story_market_search_duration_seconds",
    "Search request latency in seconds",
    buckets=(0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, float("inf")),
)

search_fallback_stages = Counter(
    "story_market_search_fallback_stages_total",
    "Search fallback stages executed",
    ["stage"],
)
"""
Counter for fallback stages.

Labels:
    stage: admin_boundary or same_state
"""

search_results_returned = Histogram(
    "story_market_search_results_returned",
    "Number of results returned per search",
    buckets=(0, 1, 5, 10, 20, 50, 100, float("inf")),
)
