"""Call timing for authentication and dispatch."""

from __future__ import annotations

import functools
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from nasdaq_rmc.core.constants import METRICS_HISTORY_SIZE, SLOW_CALL_WARNING_SEC
from nasdaq_rmc.core.logger import logger


@dataclass
class CallMetric:
    """One timed call to the RMC service."""

    operation: str
    elapsed: float
    success: bool
    status_code: int | None = None
    timestamp: datetime = field(default_factory=datetime.now)
    error_message: str | None = None


class MetricsCollector:
    """Process-wide collector shared by every session.

    Only the most recent ``METRICS_HISTORY_SIZE`` calls are kept for timing
    summaries; counters cover every call since the last reset.
    """

    _instance: "MetricsCollector | None" = None
    _instance_lock = threading.Lock()

    def __new__(cls: type["MetricsCollector"]) -> "MetricsCollector":
        with cls._instance_lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._lock = threading.Lock()
                instance._calls = deque(maxlen=METRICS_HISTORY_SIZE)
                instance._counters = defaultdict(int)
                cls._instance = instance
        return cls._instance

    def record(self, metric: CallMetric) -> None:
        with self._lock:
            self._calls.append(metric)
            self._counters[f"{metric.operation}_calls"] += 1
            if not metric.success:
                self._counters[f"{metric.operation}_errors"] += 1
            if metric.status_code is not None:
                self._counters[f"http_{metric.status_code}"] += 1

    def counter(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    def reset(self) -> None:
        """Forget every recorded call and counter."""
        with self._lock:
            self._calls.clear()
            self._counters.clear()

    def get_summary(self) -> dict[str, Any]:
        """Aggregate timings per operation over the retained calls, in milliseconds."""
        with self._lock:
            calls_snapshot = list(self._calls)
            counters = dict(self._counters)

        if not calls_snapshot:
            return {"total_calls": 0, "operations": {}, "counters": counters}

        grouped: dict[str, list[CallMetric]] = defaultdict(list)
        for metric in calls_snapshot:
            grouped[metric.operation].append(metric)

        operations: dict[str, Any] = {}
        for operation, calls in grouped.items():
            elapsed_ms = [c.elapsed * 1000 for c in calls]
            operations[operation] = {
                "calls": len(calls),
                "errors": sum(1 for c in calls if not c.success),
                "avg_time_ms": sum(elapsed_ms) / len(elapsed_ms),
                "max_time_ms": max(elapsed_ms),
                "min_time_ms": min(elapsed_ms),
            }

        return {
            "total_calls": len(calls_snapshot),
            "total_errors": sum(1 for c in calls_snapshot if not c.success),
            "operations": operations,
            "counters": counters,
        }


def timed(func: Callable[..., Any]) -> Callable[..., Any]:
    """Record elapsed time, outcome and HTTP status of each call."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start = time.perf_counter()
        result = None
        error_msg = None

        try:
            result = func(*args, **kwargs)
            return result
        except Exception as exc:  # noqa: BLE001
            error_msg = str(exc)
            raise
        finally:
            elapsed = time.perf_counter() - start
            MetricsCollector().record(
                CallMetric(
                    operation=func.__name__,
                    elapsed=elapsed,
                    success=error_msg is None,
                    status_code=getattr(result, "status_code", None),
                    error_message=error_msg,
                )
            )

            if elapsed > SLOW_CALL_WARNING_SEC:
                logger.warning("%s took %.2fs", func.__name__, elapsed)

    return wrapper
