"""Notification delivery exceptions."""

from __future__ import annotations

from stagewatch.monitor.types import DeliveryResult


class MonitorError(Exception):
    """Base exception for notification errors."""


class DeliveryFailedError(MonitorError):
    """A delivery attempt failed and the caller asked for it to be raised."""

    def __init__(self, result: DeliveryResult) -> None:
        self.result = result
        kind = result.error.value if result.error else "unknown"
        super().__init__(f"{kind}: {result.error_detail or 'delivery failed'}")
