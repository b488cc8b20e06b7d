"""Notification channels — chat webhook delivery."""

from __future__ import annotations

import abc
import time

import aiohttp
import structlog

from stagewatch.core.config import WebhookConfig
from stagewatch.monitor.types import DeliveryResult, ErrorKind, NotificationMessage

logger = structlog.get_logger(__name__)

_JSON_HEADERS = {"Content-Type": "application/json"}


class NotificationChannel(abc.ABC):
    """Base class for message delivery channels."""

    @abc.abstractmethod
    async def send(self, msg: NotificationMessage) -> DeliveryResult:
        """Make one delivery attempt. Must not raise."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""


class DiscordWebhookChannel(NotificationChannel):
    """Posts plain ``content`` messages to a Discord-compatible webhook.

    One POST per call, no retries. The response body is returned verbatim;
    the status code is only judged when ``strict_status`` is set.
    """

    def __init__(self, config: WebhookConfig) -> None:
        self._webhook_url = config.url.get_secret_value()
        self._timeout = aiohttp.ClientTimeout(total=config.timeout_secs)
        self._strict_status = config.strict_status
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def send(self, msg: NotificationMessage) -> DeliveryResult:
        payload = {"content": msg.text}
        started = time.monotonic()

        try:
            session = self._get_session()
            async with session.post(
                self._webhook_url, json=payload, headers=_JSON_HEADERS
            ) as resp:
                body = await resp.text()
                status = resp.status
        except Exception as exc:
            logger.exception("webhook_send_error", error_type=type(exc).__name__)
            return DeliveryResult(
                succeeded=False,
                error=ErrorKind.DELIVERY_TRANSPORT_ERROR,
                error_detail=str(exc) or type(exc).__name__,
                elapsed_secs=time.monotonic() - started,
                exception=exc,
            )

        elapsed = time.monotonic() - started
        if 200 <= status < 300:
            return DeliveryResult(
                succeeded=True,
                response_body=body,
                status=status,
                elapsed_secs=elapsed,
            )

        logger.warning("webhook_non_2xx", status=status, body=body[:200])
        if self._strict_status:
            return DeliveryResult(
                succeeded=False,
                response_body=body,
                status=status,
                error=ErrorKind.DELIVERY_HTTP_STATUS_ERROR,
                error_detail=f"HTTP {status}",
                elapsed_secs=elapsed,
            )
        return DeliveryResult(
            succeeded=True,
            response_body=body,
            status=status,
            elapsed_secs=elapsed,
        )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
