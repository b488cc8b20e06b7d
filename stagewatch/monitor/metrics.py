"""DeliveryMetrics — running counters for the notification path.

Records what the dispatcher did with each trigger:
- received / filtered / malformed counts
- delivered vs. failed attempts, failures by error kind
- delivery latency samples

The counters are observability only; nothing reads them to make a
dispatch decision.
"""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass

from stagewatch.monitor.types import DeliveryResult


@dataclass
class FailureRecord:
    """Last observed delivery failure."""

    error: str
    detail: str
    timestamp: float


class DeliveryMetrics:
    """Collects counters from ``NotificationDispatcher``.

    Usage::

        metrics = DeliveryMetrics()
        dispatcher = NotificationDispatcher(channel, event_filter, metrics=metrics)

        # Query at any time:
        summary = metrics.summary()
    """

    def __init__(self, max_latency_samples: int = 10_000) -> None:
        self._received = 0
        self._filtered = 0
        self._malformed = 0
        self._delivered = 0
        self._failed = 0
        self._failures_by_kind: Counter[str] = Counter()
        self._last_failure: FailureRecord | None = None
        self._latency_samples: list[float] = []
        self._max_latency_samples = max_latency_samples

    # ── Recording ───────────────────────────────────────────────

    def record_received(self) -> None:
        self._received += 1

    def record_filtered(self) -> None:
        self._filtered += 1

    def record_malformed(self) -> None:
        self._malformed += 1

    def record_delivery(self, result: DeliveryResult) -> None:
        if result.succeeded:
            self._delivered += 1
        else:
            self._failed += 1
            kind = result.error.value if result.error else "unknown"
            self._failures_by_kind[kind] += 1
            self._last_failure = FailureRecord(
                error=kind,
                detail=result.error_detail or "",
                timestamp=time.time(),
            )

        self._latency_samples.append(result.elapsed_secs)
        if len(self._latency_samples) > self._max_latency_samples:
            self._latency_samples = self._latency_samples[-self._max_latency_samples:]

    # ── Query methods ───────────────────────────────────────────

    @property
    def delivered(self) -> int:
        return self._delivered

    @property
    def failed(self) -> int:
        return self._failed

    @property
    def filtered(self) -> int:
        return self._filtered

    @property
    def last_failure(self) -> FailureRecord | None:
        return self._last_failure

    def latency_percentiles(self) -> dict[str, float]:
        """Return delivery latency percentiles (p50, p90, p99) in seconds."""
        if not self._latency_samples:
            return {"p50": 0.0, "p90": 0.0, "p99": 0.0, "min": 0.0, "max": 0.0}

        values = sorted(self._latency_samples)
        n = len(values)
        return {
            "p50": values[int(n * 0.50)],
            "p90": values[min(int(n * 0.90), n - 1)],
            "p99": values[min(int(n * 0.99), n - 1)],
            "min": values[0],
            "max": values[-1],
        }

    def summary(self) -> dict[str, object]:
        attempts = self._delivered + self._failed
        return {
            "received": self._received,
            "filtered": self._filtered,
            "malformed": self._malformed,
            "delivered": self._delivered,
            "failed": self._failed,
            "success_rate": round(self._delivered / attempts, 4) if attempts else 0.0,
            "failures_by_kind": dict(self._failures_by_kind),
            "last_failure": (
                {
                    "error": self._last_failure.error,
                    "detail": self._last_failure.detail,
                    "timestamp": self._last_failure.timestamp,
                }
                if self._last_failure
                else None
            ),
            "latency": self.latency_percentiles(),
        }
