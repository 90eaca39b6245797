"""
Notification Sinks.

A sink records one notification item and reports whether it was saved.
Sinks return False instead of raising when an item could not be stored,
so one bad item never stops the rest of the batch.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

from database.db import Database
from models.notification import NotificationItem, RequestMetadata

logger = logging.getLogger(__name__)


class NotificationSink(ABC):
    """Interface for recording notification items."""

    name = "sink"

    @abstractmethod
    async def record(self, metadata: RequestMetadata, item: NotificationItem) -> bool:
        """
        Record a single notification item.

        Args:
            metadata: Details of the request the item arrived in
            item: Notification to record

        Returns:
            True if the item was recorded
        """


class LoggingNotificationSink(NotificationSink):
    """Writes every notification, with its request headers, to the log."""

    name = "log"

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    async def record(self, metadata: RequestMetadata, item: NotificationItem) -> bool:
        lines = [
            "***** Received Notification: "
            f"{metadata.received_at.strftime('%d-%m-%Y %H:%M:%S.%f')[:-3]}",
            "Headers:",
        ]
        for name, value in metadata.redacted_headers().items():
            lines.append(f"- {name}: {value}")
        lines.append("Parameters:")
        lines.append(item.to_json())

        self.log.info("\n".join(lines))
        return True


class DatabaseNotificationSink(NotificationSink):
    """
    Stores notifications in the notifications table.

    A notification the provider resends (same pspReference, eventCode and
    success) is ignored by the table's unique key and still counts as
    recorded. Items without a pspReference or success are always stored,
    since NULL never matches another row in the key.
    """

    name = "database"

    def __init__(self, db: Database):
        """
        Initialize the sink.

        Args:
            db: Connected database instance
        """
        self.db = db

    async def record(self, metadata: RequestMetadata, item: NotificationItem) -> bool:
        try:
            await self.db.save_notification(
                psp_reference=_text(item.psp_reference),
                event_code=item.raw_event_code,
                success=_text(item.success),
                original_reference=_text(item.original_reference),
                merchant_reference=_text(item.merchant_reference),
                merchant_account_code=_text(item.merchant_account_code),
                event_date=_text(item.event_date),
                live=_text(item.live),
                payment_method=_text(item.payment_method),
                reason=_text(item.reason),
                payload=item.to_json(),
                request_headers=json.dumps(metadata.redacted_headers()),
                received_at=metadata.received_at
            )
        except Exception as e:
            logger.error(
                f"Failed to store notification {item.short_reference()}: {e}",
                exc_info=True
            )
            return False

        logger.debug(f"Stored notification {item.short_reference()}")
        return True


def _text(value):
    """Render an opaque field value as text for storage."""
    if value is None:
        return None
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(',', ':'))
    return str(value)
