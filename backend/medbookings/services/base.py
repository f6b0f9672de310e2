# backend/medbookings/services/base.py
"""
Base Service Pattern for the MedBookings calendar core

Provides common functionality for service classes:
- Logging
- Performance measurement of named operations
- Per-instance metrics (services are constructed per request or at process
  start and passed explicitly; there is no module-level singleton state)
"""

from contextlib import contextmanager
from functools import wraps
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, cast

from ..core.config import settings

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class BaseService:
    """
    Base class for calendar service components.

    Provides common patterns for:
    - Timezone context
    - Logging
    - Performance monitoring
    """

    def __init__(self, timezone_str: Optional[str] = None):
        """
        Initialize base service.

        Args:
            timezone_str: Calendar timezone; defaults to settings.timezone
        """
        self.timezone_str = timezone_str or settings.timezone
        self.logger = logging.getLogger(self.__class__.__name__)
        self._metrics: Dict[str, Dict[str, Any]] = {}
        self._metrics_lock = threading.Lock()

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("build_view")
            def build_view(self, ...):
                ...

        Args:
            operation_name: Name of the operation for metrics

        Returns:
            Decorator function
        """

        def decorator(func: F) -> F:
            func._operation_name = operation_name  # type: ignore[attr-defined]
            func._is_measured = True  # type: ignore[attr-defined]

            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                with self.measure_operation_context(operation_name):
                    return func(self, *args, **kwargs)

            return cast(F, wrapper)

        return decorator

    @contextmanager
    def measure_operation_context(self, operation_name: str) -> Iterator[None]:
        """
        Context manager to measure operation performance.

        Usage:
            with self.measure_operation_context("complex_operation"):
                # Do work here
                pass
        """
        start_time = time.perf_counter()
        success = False

        try:
            yield
            success = True
        finally:
            elapsed = time.perf_counter() - start_time
            self._record_metric(operation_name, elapsed, success)

            # Log slow operations
            if elapsed > settings.slow_operation_seconds:
                self.logger.warning(
                    f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                )

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log an operation with context.

        Args:
            operation: Operation name
            **context: Additional context to log
        """
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        """
        Record performance metrics.

        Args:
            operation: Operation name
            elapsed: Time taken in seconds
            success: Whether operation succeeded
        """
        with self._metrics_lock:
            metric_data = self._metrics.setdefault(
                operation,
                {
                    "count": 0,
                    "total_time": 0.0,
                    "success_count": 0,
                    "failure_count": 0,
                    "min_time": float("inf"),
                    "max_time": 0.0,
                },
            )
            metric_data["count"] += 1
            metric_data["total_time"] += elapsed
            metric_data["min_time"] = min(metric_data["min_time"], elapsed)
            metric_data["max_time"] = max(metric_data["max_time"], elapsed)

            if success:
                metric_data["success_count"] += 1
            else:
                metric_data["failure_count"] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get performance metrics for this service instance.

        Returns:
            Dictionary with metrics for each measured operation
        """
        result = {}
        with self._metrics_lock:
            for operation, data in self._metrics.items():
                count = data["count"]
                if count == 0:
                    continue

                result[operation] = {
                    "count": count,
                    "avg_time": data["total_time"] / count,
                    "min_time": data["min_time"],
                    "max_time": data["max_time"],
                    "total_time": data["total_time"],
                    "success_rate": data["success_count"] / count,
                    "success_count": data["success_count"],
                    "failure_count": data["failure_count"],
                }

        return result

    def reset_metrics(self) -> None:
        """Reset all metrics for this service instance."""
        with self._metrics_lock:
            self._metrics.clear()
        self.logger.info(f"Metrics reset for {self.__class__.__name__}")
