"""
Wide Events (Canonical Log Lines) - Structured Logging Utility

One JSON event per processing run instead of a trail of debug lines:
- dataset shape (trips received, kept, stationary, charges)
- outcome (hybrid detection, SoH estimate, calibration warnings)
- timings per stage and the error, if any

Successful fast runs are sampled; failures, slow runs and runs with data
quality problems are always kept.
"""

import random
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# Business metrics that force emission when truthy
ALWAYS_EMIT_METRICS = (
    "trips_dropped",
    "calibration_warning",
    "empty_result",
)


class WideEvent:
    """
    Collects context for one operation and emits it as a single log event.

    Usage:
        event = WideEvent("trip_processing", trace_id=dataset_id)
        event.add_context(locale="es", timezone="Europe/Madrid")
        event.add_business_metric("trips_received", 120)

        with event.timer("aggregate"):
            result = compute(trips, settings, charges)

        event.emit()
    """

    def __init__(self, operation: str, request_id: Optional[str] = None, trace_id: Optional[str] = None):
        """
        Args:
            operation: Name of the operation (e.g., "trip_processing")
            request_id: ID for this run (generated when omitted)
            trace_id: ID shared by related runs, such as a dataset or job ID
        """
        self.operation = operation
        self.context: Dict[str, Any] = {
            "operation": operation,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "start_time": time.time(),
            "request_id": request_id or str(uuid.uuid4()),
        }
        if trace_id:
            self.context["trace_id"] = trace_id

        self.logger = structlog.get_logger()

    def _section(self, name: str) -> Dict[str, Any]:
        return self.context.setdefault(name, {})

    def add_context(self, **kwargs) -> "WideEvent":
        """Add high-cardinality context fields (job_id, locale, strategy, ...)."""
        self.context.update(kwargs)
        return self

    def add_business_metric(self, key: str, value: Any) -> "WideEvent":
        """Add dataset metrics (trips kept, km, SoH, ...)."""
        self._section("business_metrics")[key] = value
        return self

    def add_technical_metric(self, key: str, value: Any) -> "WideEvent":
        """Add technical metrics (payload size, queue name, ...)."""
        self._section("technical_metrics")[key] = value
        return self

    def add_error(self, error: Exception, **kwargs) -> "WideEvent":
        self.context["error"] = {
            "type": type(error).__name__,
            "message": str(error),
            "details": kwargs,
        }
        self.context["success"] = False
        return self

    def mark_success(self) -> "WideEvent":
        self.context["success"] = True
        return self

    def mark_failure(self, reason: str) -> "WideEvent":
        self.context["success"] = False
        self.context["failure_reason"] = reason
        return self

    @contextmanager
    def timer(self, stage: str):
        """
        Time a stage of the operation.

        Outputs: {"performance_breakdown": {"aggregate_ms": 12.4}}
        """
        start = time.time()
        try:
            yield
        finally:
            duration_ms = (time.time() - start) * 1000
            self._section("performance_breakdown")[f"{stage}_ms"] = round(duration_ms, 2)

    def set_duration(self) -> "WideEvent":
        """Replace start_time with the elapsed duration."""
        start_time = self.context.pop("start_time", None)
        if start_time is not None:
            self.context["duration_ms"] = round((time.time() - start_time) * 1000, 2)
        return self

    def should_emit(self, sample_rate: float = 0.05, slow_threshold_ms: float = 1000) -> bool:
        """
        Tail sampling: keep failures, slow runs and runs flagged by
        ALWAYS_EMIT_METRICS; sample the rest at ``sample_rate``.
        """
        if not self.context.get("success", True):
            return True

        if self.context.get("duration_ms", 0) > slow_threshold_ms:
            return True

        business_metrics = self.context.get("business_metrics", {})
        if any(business_metrics.get(metric) for metric in ALWAYS_EMIT_METRICS):
            return True

        return random.random() < sample_rate

    def emit(self, level: str = "info", force: bool = False) -> None:
        """
        Emit the event as one log line.

        Args:
            level: Log level (info, warning, error)
            force: Emit even if sampling says no
        """
        self.set_duration()

        if not force and not self.should_emit():
            return

        log_method = getattr(self.logger, level, self.logger.info)
        log_method(f"{self.operation}_complete", **self.context)


@contextmanager
def track_operation(operation: str, trace_id: Optional[str] = None, **initial_context):
    """
    Track an operation with a wide event that is emitted on exit.

    Usage:
        with track_operation("trip_processing", job_id=job_id) as event:
            event.add_business_metric("trips_received", len(trips))
    """
    event = WideEvent(operation, trace_id=trace_id)
    event.add_context(**initial_context)

    try:
        yield event
        event.mark_success()
    except Exception as e:
        event.add_error(e)
        event.mark_failure(str(e))
        raise
    finally:
        event.emit(level="error" if not event.context.get("success", True) else "info", force=True)
