"""Operation timing for reconciliation runs.

Tracks how long template reconciliations and per-group steps take so slow
catalogs can be spotted.
"""

import functools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class PerformanceMetrics:
    """Timing record of one operation."""

    operation_name: str
    start_time: float = field(default_factory=time.perf_counter)
    end_time: Optional[float] = None
    duration: Optional[float] = None
    success: bool = True
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def finish(self, success: bool = True, error: Optional[str] = None) -> None:
        """Mark the operation as finished."""
        self.end_time = time.perf_counter()
        self.duration = self.end_time - self.start_time
        self.success = success
        self.error = error


class PerformanceMonitor:
    """
    Collects per-operation timings.

    Safe to share between worker threads: each caller holds its own
    PerformanceMetrics and only the history is shared.
    """

    def __init__(self, slow_operation_threshold: float = 5.0):
        """
        Initialize the performance monitor.

        Args:
            slow_operation_threshold: Seconds after which a finished
                operation is logged as slow.
        """
        self.slow_operation_threshold = slow_operation_threshold
        self.metrics: Dict[str, List[PerformanceMetrics]] = {}
        self._lock = threading.Lock()

    def start_operation(self, operation_name: str, **metadata) -> PerformanceMetrics:
        """Start tracking an operation."""
        return PerformanceMetrics(operation_name=operation_name, metadata=metadata)

    def end_operation(
        self,
        metric: PerformanceMetrics,
        success: bool = True,
        error: Optional[str] = None,
    ) -> None:
        """
        Finish tracking an operation and store it in the history.

        Args:
            metric: The metric returned by ``start_operation``.
            success: Whether the operation succeeded.
            error: Optional error message.
        """
        metric.finish(success=success, error=error)
        with self._lock:
            self.metrics.setdefault(metric.operation_name, []).append(metric)

        if metric.duration is not None and metric.duration > self.slow_operation_threshold:
            logger.warning(
                f"Operation '{metric.operation_name}' took {metric.duration:.2f}s "
                f"(threshold {self.slow_operation_threshold}s)"
            )

    def get_operation_stats(self, operation_name: str) -> Dict[str, Any]:
        """
        Get statistics for a specific operation.

        Returns:
            Dictionary with count, average, min, max, total and success_rate,
            or an empty dict when the operation was never recorded.
        """
        with self._lock:
            recorded = list(self.metrics.get(operation_name, []))

        durations = [m.duration for m in recorded if m.duration is not None]
        if not durations:
            return {}

        return {
            "count": len(durations),
            "average": sum(durations) / len(durations),
            "min": min(durations),
            "max": max(durations),
            "total": sum(durations),
            "success_rate": sum(1 for m in recorded if m.success) / len(recorded),
        }

    def get_all_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get statistics for all tracked operations."""
        with self._lock:
            names = list(self.metrics.keys())
        return {name: self.get_operation_stats(name) for name in names}

    def reset(self) -> None:
        """Reset all metrics."""
        with self._lock:
            self.metrics.clear()


def timed_operation(operation_name: str):
    """
    Decorator that logs how long the wrapped call took.

    Example:
        @timed_operation("load_catalog")
        def load_catalog(path):
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = time.perf_counter() - start_time
                logger.error(f"{operation_name} failed after {duration:.3f}s: {e}")
                raise
            duration = time.perf_counter() - start_time
            logger.debug(f"{operation_name} completed in {duration:.3f}s")
            return result
        return wrapper
    return decorator
