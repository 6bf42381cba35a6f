"""Logging and Prometheus metrics for server-status."""

from .logging import configure_logging, page_log_context, request_id_ctx
from .metrics import metrics_text

__all__ = [
    "configure_logging",
    "metrics_text",
    "page_log_context",
    "request_id_ctx",
]
