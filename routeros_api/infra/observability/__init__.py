"""Observability infrastructure for the RouterOS API client.

Provides structured logging and Prometheus metrics.
"""

from routeros_api.infra.observability.logging import (
    CorrelationIDFilter,
    JSONFormatter,
    correlation_id_var,
    get_correlation_id,
    set_correlation_id,
    setup_logging,
)
from routeros_api.infra.observability.metrics import (
    get_metrics_text,
    get_registry,
    record_bytes_received,
    record_command,
    record_connection_event,
    record_trap,
)

__all__ = [
    # Logging
    "correlation_id_var",
    "get_correlation_id",
    "set_correlation_id",
    "CorrelationIDFilter",
    "JSONFormatter",
    "setup_logging",
    # Metrics
    "get_registry",
    "get_metrics_text",
    "record_command",
    "record_trap",
    "record_connection_event",
    "record_bytes_received",
]
