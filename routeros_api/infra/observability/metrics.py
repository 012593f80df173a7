"""Prometheus metrics for the RouterOS API client.

Counts commands, traps, connection lifecycle events and received bytes per
device. Metrics live in a private registry so embedding applications decide
whether and how to expose them.
"""

import logging

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

# Global registry for metrics
_registry = CollectorRegistry()


commands_total = Counter(
    "routeros_api_commands_total",
    "Total number of RouterOS API commands",
    ["host", "command", "status"],
    registry=_registry,
)

command_duration_seconds = Histogram(
    "routeros_api_command_duration_seconds",
    "Duration of RouterOS API commands in seconds",
    ["host", "command"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    registry=_registry,
)

traps_total = Counter(
    "routeros_api_traps_total",
    "Total number of !trap replies received",
    ["host", "command"],
    registry=_registry,
)

connection_events_total = Counter(
    "routeros_api_connection_events_total",
    "Connection lifecycle events (connected, login_failed, error, closed)",
    ["host", "event"],
    registry=_registry,
)

bytes_received_total = Counter(
    "routeros_api_bytes_received_total",
    "Bytes received from RouterOS devices",
    ["host"],
    registry=_registry,
)


def get_registry() -> CollectorRegistry:
    """Get the metrics registry."""
    return _registry


def get_metrics_text() -> str:
    """Get metrics in Prometheus text format.

    Returns:
        Metrics in Prometheus exposition format
    """
    return generate_latest(_registry).decode("utf-8")


def record_command(host: str, command: str, duration: float, status: str) -> None:
    """Record metrics for a completed command.

    Args:
        host: Device host
        command: Command path (first word, e.g. "/interface/print")
        duration: Round-trip duration in seconds
        status: "success", "trap" or "error"
    """
    commands_total.labels(host=host, command=command, status=status).inc()
    command_duration_seconds.labels(host=host, command=command).observe(duration)


def record_trap(host: str, command: str) -> None:
    """Record a !trap reply for a command."""
    traps_total.labels(host=host, command=command).inc()


def record_connection_event(host: str, event: str) -> None:
    """Record a connection lifecycle event."""
    connection_events_total.labels(host=host, event=event).inc()


def record_bytes_received(host: str, count: int) -> None:
    """Record bytes received from a device."""
    bytes_received_total.labels(host=host).inc(count)
