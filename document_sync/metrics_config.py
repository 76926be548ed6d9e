"""Document Sync Metrics Configuration.

Local-only metrics collection using OpenTelemetry with a Prometheus reader.
Tracks store operations and the outcome of every provider sync attempt.
"""
from __future__ import annotations


import os
import socket
import time
from typing import Any

from opentelemetry import metrics
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.resources import Resource
from prometheus_client import CONTENT_TYPE_LATEST
from prometheus_client import generate_latest

# =============================================================================
# SERVICE CONFIGURATION
# =============================================================================

SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "document-sync")
SERVICE_VERSION = os.getenv("OTEL_SERVICE_VERSION", "1.0.0")
DEPLOYMENT_ENVIRONMENT = os.getenv("DEPLOYMENT_ENVIRONMENT", "local")


def is_test_environment() -> bool:
    """Detect if running in test environment."""
    return (
        "PYTEST_CURRENT_TEST" in os.environ
        or "DOCUMENT_STORE_DIR" in os.environ
        or "CI" in os.environ
        or "GITHUB_ACTIONS" in os.environ
    )


# Disable metrics in test/CI environments by default
default_metrics_enabled = "false" if is_test_environment() else "true"
METRICS_ENABLED = os.getenv("DOCUMENT_SYNC_METRICS_ENABLED", default_metrics_enabled).lower() == "true"

DEBUG_METRICS = os.getenv("DOCUMENT_SYNC_METRICS_DEBUG", "false").lower() == "true"

# Metrics instances
meter = None
operations_counter = None
sync_results_counter = None
prometheus_reader = None

# Global state
_active_operations: dict[str, float] = {}
_metrics_initialized = False


def get_resource() -> Resource:
    """Create OpenTelemetry resource with service information."""
    return Resource.create(
        {
            "service.name": SERVICE_NAME,
            "service.version": SERVICE_VERSION,
            "deployment.environment": DEPLOYMENT_ENVIRONMENT,
            "host.name": socket.gethostname(),
        }
    )


def initialize_metrics():
    """Initialize local metrics collection with a Prometheus reader."""
    global meter, operations_counter, sync_results_counter, prometheus_reader

    if not METRICS_ENABLED:
        if DEBUG_METRICS:
            print("[METRICS] Telemetry disabled")
        return

    try:
        prometheus_reader = PrometheusMetricReader()
        meter_provider = MeterProvider(
            resource=get_resource(),
            metric_readers=[prometheus_reader],
        )
        metrics.set_meter_provider(meter_provider)
        meter = metrics.get_meter(__name__)

        operations_counter = meter.create_counter(
            name="document_store_operations_total",
            description="Total number of document store operations",
            unit="1",
        )
        sync_results_counter = meter.create_counter(
            name="document_sync_results_total",
            description="Outcomes of cloud provider sync attempts",
            unit="1",
        )

        if DEBUG_METRICS:
            print(f"[METRICS] Initialized: {SERVICE_NAME} v{SERVICE_VERSION}")
    except Exception as e:
        if DEBUG_METRICS:
            print(f"[METRICS] Init failed: {e}")


def is_metrics_enabled() -> bool:
    """Check if metrics collection is enabled."""
    return METRICS_ENABLED and meter is not None


def record_operation_start(operation: str) -> float | None:
    """Record start of a store operation, return start time."""
    if not is_metrics_enabled():
        return None

    start_time = time.time()
    _active_operations[f"{operation}_{start_time}"] = start_time
    return start_time


def _record_operation_end(operation: str, start_time: float | None, status: str) -> None:
    if operations_counter:
        operations_counter.add(
            1, {"operation": operation, "status": status, "environment": DEPLOYMENT_ENVIRONMENT}
        )
    if start_time:
        _active_operations.pop(f"{operation}_{start_time}", None)


def record_operation_success(operation: str, start_time: float | None) -> None:
    """Record a successful store operation."""
    if not is_metrics_enabled():
        return

    try:
        _record_operation_end(operation, start_time, "success")
    except Exception as e:
        if DEBUG_METRICS:
            print(f"[METRICS] Record success failed: {e}")


def record_operation_error(operation: str, start_time: float | None, error: Exception) -> None:
    """Record a failed store operation."""
    if not is_metrics_enabled():
        return

    try:
        _record_operation_end(operation, start_time, "error")
    except Exception as e:
        if DEBUG_METRICS:
            print(f"[METRICS] Record error failed: {e}")


def record_sync_outcome(provider: str, outcome: str) -> None:
    """Record the outcome (synced, failed, skipped) of a provider sync."""
    if not is_metrics_enabled():
        return

    try:
        if sync_results_counter:
            sync_results_counter.add(1, {"provider": provider, "outcome": outcome})
    except Exception as e:
        if DEBUG_METRICS:
            print(f"[METRICS] Record sync outcome failed: {e}")


def get_metrics_export() -> tuple[str, str]:
    """Export metrics in Prometheus format."""
    if not is_metrics_enabled() or not prometheus_reader:
        return "# Metrics not available\n", "text/plain"

    try:
        return generate_latest().decode("utf-8"), CONTENT_TYPE_LATEST
    except Exception as e:
        return f"# Error: {e}\n", "text/plain"


def get_metrics_summary() -> dict[str, Any]:
    """Get metrics summary for debugging."""
    if not is_metrics_enabled():
        return {"status": "disabled"}

    return {
        "status": "active",
        "service_name": SERVICE_NAME,
        "service_version": SERVICE_VERSION,
        "environment": DEPLOYMENT_ENVIRONMENT,
        "active_operations": len(_active_operations),
        "prometheus_enabled": prometheus_reader is not None,
    }


def ensure_metrics_initialized():
    """Initialize metrics once per process."""
    global _metrics_initialized
    if _metrics_initialized:
        return

    if METRICS_ENABLED and not is_test_environment():
        initialize_metrics()
    _metrics_initialized = True
