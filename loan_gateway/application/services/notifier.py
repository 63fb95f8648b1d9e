"""Fire-and-forget delivery of notification intents."""

from typing import Any
from uuid import UUID

import structlog

from loan_gateway.domain.entities import NotificationIntent, NotificationType
from loan_gateway.domain.interfaces import NotificationSink

logger = structlog.get_logger(__name__)


class Notifier:
    """
    Emits notification intents after a business operation has committed.

    Delivery problems are logged and never reach the caller.
    """

    def __init__(self, sink: NotificationSink):
        self._sink = sink

    async def notify(
        self,
        borrower_id: UUID,
        notification_type: NotificationType,
        **data: Any,
    ) -> bool:
        intent = NotificationIntent(
            borrower_id=borrower_id,
            type=notification_type,
            data=data,
        )
        try:
            return await self._sink.send(intent)
        except Exception:
            logger.exception(
                "notification_dispatch_failed",
                notification=notification_type.value,
                borrower_id=str(borrower_id),
            )
            return False
