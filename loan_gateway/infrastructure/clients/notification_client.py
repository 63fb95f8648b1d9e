"""Notification sink implementations."""

import asyncio
from typing import List

import httpx
import structlog

from loan_gateway.core.config import settings
from loan_gateway.core.metrics import (
    track_notification_latency,
    record_notification_retry,
    record_notification_success,
    record_notification_failure,
)
from loan_gateway.domain.entities import NotificationIntent
from loan_gateway.domain.interfaces import NotificationSink

logger = structlog.get_logger(__name__)


class HttpNotificationSink(NotificationSink):
    """
    Delivers notification intents to a webhook.

    Sends with retry logic and exponential backoff.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        max_retries: int = 5,
    ):
        self._url = url or settings.notification_webhook_url
        self._timeout = timeout or settings.notification_webhook_timeout
        self._max_retries = max_retries

    async def send(self, intent: NotificationIntent) -> bool:
        """
        Post the intent to the webhook.

        Uses exponential backoff: 0.1s, 0.2s, 0.4s, 0.8s, 1.6s
        """
        payload = intent.to_dict()
        event = intent.type.value

        for attempt in range(self._max_retries):
            try:
                with track_notification_latency():
                    async with httpx.AsyncClient(timeout=self._timeout) as client:
                        response = await client.post(
                            self._url,
                            json=payload,
                            headers={"Content-Type": "application/json"},
                        )

                        if response.status_code < 400:
                            logger.info(
                                "notification_sent",
                                notification=event,
                                status_code=response.status_code,
                            )
                            record_notification_success(event)
                            return True

                        logger.warning(
                            "notification_failed",
                            notification=event,
                            status_code=response.status_code,
                            attempt=attempt + 1,
                            response=response.text[:200],
                        )

            except httpx.TimeoutException:
                logger.warning(
                    "notification_timeout",
                    notification=event,
                    attempt=attempt + 1,
                )
            except Exception as e:
                logger.error(
                    "notification_error",
                    notification=event,
                    attempt=attempt + 1,
                    error=str(e),
                )

            # Record retry and exponential backoff
            if attempt < self._max_retries - 1:
                record_notification_retry()
                delay = 2 ** attempt * 0.1
                await asyncio.sleep(delay)

        logger.error(
            "notification_exhausted_retries",
            notification=event,
            max_retries=self._max_retries,
        )
        record_notification_failure()
        return False


class LoggingNotificationSink(NotificationSink):
    """
    Writes intents to the structured log.

    Used when no webhook is configured. Keeps the intents it saw, which
    tests inspect.
    """

    def __init__(self):
        self.sent: List[NotificationIntent] = []

    async def send(self, intent: NotificationIntent) -> bool:
        self.sent.append(intent)
        logger.info(
            "notification_intent",
            notification=intent.type.value,
            borrower_id=str(intent.borrower_id),
            data=intent.data,
        )
        record_notification_success(intent.type.value)
        return True
