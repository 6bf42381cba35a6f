"""Prometheus metrics for server-status.

Usage::

    from server_status.observability.metrics import POLL_CYCLES_TOTAL

    POLL_CYCLES_TOTAL.labels(outcome="running").inc()
"""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# ---------------------------------------------------------------------------
# Status poller
# ---------------------------------------------------------------------------

POLL_CYCLES_TOTAL = Counter(
    "status_page_poll_cycles_total",
    "Status poll cycles by outcome (running, stopped, no_token, failed, discarded).",
    labelnames=["outcome"],
    registry=REGISTRY,
)

# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

PHASE_TRANSITIONS_TOTAL = Counter(
    "status_page_phase_transitions_total",
    "Lifecycle phase transitions.",
    labelnames=["from_phase", "to_phase"],
    registry=REGISTRY,
)

INACTIVITY_ALERTS_TOTAL = Counter(
    "status_page_inactivity_alerts_total",
    "Inactivity alerts raised (running -> stopped without a user stop).",
    registry=REGISTRY,
)

STOP_REQUESTS_TOTAL = Counter(
    "status_page_stop_requests_total",
    "User-initiated stop requests by outcome (succeeded, no_token, rejected, failed, cancelled).",
    labelnames=["outcome"],
    registry=REGISTRY,
)

STOP_REQUEST_DURATION_SECONDS = Histogram(
    "status_page_stop_request_duration_seconds",
    "Time from confirm to the stop request's outcome.",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    registry=REGISTRY,
)

OPEN_STATUS_PAGES = Gauge(
    "status_page_open_pages",
    "Status pages currently open in the registry.",
    registry=REGISTRY,
)


def metrics_text() -> tuple[bytes, str]:
    """Return the exposition payload and its content type."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
