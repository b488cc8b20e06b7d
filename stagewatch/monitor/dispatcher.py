"""Notification dispatcher — filter, format and deliver stage events."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from stagewatch.core.config import InboundConfig
from stagewatch.core.types import StageExecutionEvent
from stagewatch.monitor.channels import NotificationChannel
from stagewatch.monitor.formatters import format_stage_event
from stagewatch.monitor.metrics import DeliveryMetrics
from stagewatch.monitor.types import DeliveryResult, ErrorKind, NotificationMessage
from stagewatch.pipeline.exceptions import MalformedInboundEventError
from stagewatch.pipeline.filters import EventFilter
from stagewatch.pipeline.inbound import parse_stage_event

# Dedicated structured logger for decision records.
decision_logger = structlog.get_logger("decision_log")

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    """Routes stage events through filter → format → channel.

    - Rejected events are dropped silently (debug log only).
    - Every accepted event is logged via *decision_logger* with its raw payload.
    - Each accepted event gets exactly one delivery attempt; the outcome is
      returned as a ``DeliveryResult`` and never raised.
    - Invocations share only read-only configuration and may run concurrently.
    """

    def __init__(
        self,
        channel: NotificationChannel,
        event_filter: EventFilter,
        metrics: DeliveryMetrics | None = None,
        inbound: InboundConfig | None = None,
    ) -> None:
        self._channel = channel
        self._filter = event_filter
        self._metrics = metrics
        self._inbound = inbound or InboundConfig()

    @property
    def metrics(self) -> DeliveryMetrics | None:
        return self._metrics

    # ── Entry points ────────────────────────────────────────────

    async def handle_trigger(self, payload: Mapping[str, Any]) -> DeliveryResult | None:
        """Map an inbound trigger and process it.

        Raises:
            MalformedInboundEventError: required fields are missing.
        """
        if self._metrics is not None:
            self._metrics.record_received()
        try:
            event = parse_stage_event(payload, self._inbound)
        except MalformedInboundEventError as exc:
            if self._metrics is not None:
                self._metrics.record_malformed()
            logger.warning("malformed_inbound_event", missing=exc.missing)
            raise
        return await self._process(event)

    async def on_stage_event(self, event: StageExecutionEvent) -> DeliveryResult | None:
        """Callback for ``PipelineRun.on_event()``.

        Returns None when the filter rejects the event.
        """
        if self._metrics is not None:
            self._metrics.record_received()
        return await self._process(event)

    async def handle_many(
        self, payloads: Iterable[Mapping[str, Any]]
    ) -> list[DeliveryResult | None | BaseException]:
        """Process triggers as independent concurrent invocations.

        Results come back in receipt order; a malformed trigger yields its
        exception in place without affecting the others.
        """
        return await asyncio.gather(
            *(self.handle_trigger(p) for p in payloads),
            return_exceptions=True,
        )

    async def dispatch(self, msg: NotificationMessage) -> DeliveryResult:
        """Make exactly one delivery attempt for *msg* and report the outcome."""
        started = time.monotonic()
        try:
            result = await self._channel.send(msg)
        except Exception as exc:
            logger.exception(
                "channel_dispatch_error",
                channel=type(self._channel).__name__,
                text=msg.text,
            )
            result = DeliveryResult(
                succeeded=False,
                error=ErrorKind.DELIVERY_TRANSPORT_ERROR,
                error_detail=str(exc) or type(exc).__name__,
                elapsed_secs=time.monotonic() - started,
                exception=exc,
            )

        if result.succeeded:
            logger.info(
                "notification_delivered",
                text=msg.text,
                status=result.status,
                elapsed_secs=round(result.elapsed_secs, 4),
            )
        else:
            logger.warning(
                "notification_failed",
                text=msg.text,
                error=result.error.value if result.error else None,
                detail=result.error_detail,
                status=result.status,
            )

        if self._metrics is not None:
            self._metrics.record_delivery(result)
        return result

    # ── Internal routing ────────────────────────────────────────

    async def _process(self, event: StageExecutionEvent) -> DeliveryResult | None:
        if not self._filter.accept(event):
            if self._metrics is not None:
                self._metrics.record_filtered()
            logger.debug(
                "event_filtered",
                source=event.source,
                state=event.state,
                pipeline=event.pipeline_name,
            )
            return None

        msg = format_stage_event(event)
        self._log_decision(event, msg)
        return await self.dispatch(msg)

    def _log_decision(self, event: StageExecutionEvent, msg: NotificationMessage) -> None:
        decision_logger.info(
            "decision",
            text=msg.text,
            pipeline=event.pipeline_name,
            stage=event.stage_name,
            state=event.state,
            source=event.source,
            execution_id=event.execution_id,
            raw=event.raw,
        )

    # ── Lifecycle ───────────────────────────────────────────────

    async def close(self) -> None:
        try:
            await self._channel.close()
        except Exception:
            logger.exception("channel_close_error", channel=type(self._channel).__name__)
