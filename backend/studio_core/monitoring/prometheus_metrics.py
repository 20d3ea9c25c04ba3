"""
Prometheus metrics for the studio scheduling platform.

Service timings come from the ``@measure_operation`` decorator; booking
outcomes and generation counts are recorded by the services that own them.
"""

from threading import Lock
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry so repeated imports in tests do not collide with the default one
REGISTRY = CollectorRegistry()

http_request_duration_seconds = Histogram(
    "studio_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_requests_total = Counter(
    "studio_http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)

service_operation_duration_seconds = Histogram(
    "studio_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "studio_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "studio_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_outcomes_total = Counter(
    "studio_booking_outcomes_total",
    "Booking and cancellation attempts by result code",
    ["action", "code"],  # action: book | cancel; code: OK or an ErrorCode value
    registry=REGISTRY,
)

instances_generated_total = Counter(
    "studio_instances_generated_total",
    "Event instances materialized from series",
    registry=REGISTRY,
)

instances_skipped_total = Counter(
    "studio_instances_skipped_total",
    "Occurrences skipped during generation",
    ["reason"],  # existing | conflict
    registry=REGISTRY,
)

generation_sweep_failures_total = Counter(
    "studio_generation_sweep_failures_total",
    "Studios whose background generation failed",
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None

    @staticmethod
    def record_http_request(method: str, endpoint: str, duration: float, status_code: int) -> None:
        labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}
        http_request_duration_seconds.labels(**labels).observe(duration)
        http_requests_total.labels(**labels).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation name (e.g., 'create_booking')
            duration: Operation duration in seconds
            status: 'success' or 'error'
            error_type: Exception class name if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_booking_outcome(action: str, code: str) -> None:
        booking_outcomes_total.labels(action=action, code=code).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_generation(created: int, skipped_existing: int, skipped_conflict: int) -> None:
        if created:
            instances_generated_total.inc(created)
        if skipped_existing:
            instances_skipped_total.labels(reason="existing").inc(skipped_existing)
        if skipped_conflict:
            instances_skipped_total.labels(reason="conflict").inc(skipped_conflict)
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_sweep_failure() -> None:
        generation_sweep_failures_total.inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate metrics in Prometheus text exposition format."""
        with PrometheusMetrics._cache_lock:
            if PrometheusMetrics._cache_payload is None:
                PrometheusMetrics._cache_payload = cast(bytes, generate_latest(REGISTRY))
            return PrometheusMetrics._cache_payload

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_payload = None


prometheus_metrics = PrometheusMetrics()
