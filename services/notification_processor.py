"""
Notification Processor Service.

Classifies each notification in a batch and hands it to the configured
sink, counting how many items were recorded.
"""

import logging
from typing import Awaitable, Callable, Dict, List

from models.notification import (
    BatchResult,
    EventCode,
    NotificationBatch,
    NotificationItem,
    RequestMetadata,
)
from .notification_sink import NotificationSink

logger = logging.getLogger(__name__)

EventCallback = Callable[[NotificationItem, RequestMetadata], Awaitable[None]]


class NotificationProcessor:
    """
    Processes notification batches item by item.

    Items are recorded strictly in the order they appear in the batch.
    A failed item never stops the items after it; the batch outcome only
    reports how many were recorded.
    """

    def __init__(self, sink: NotificationSink):
        """
        Initialize the processor.

        Args:
            sink: Sink that records each notification item
        """
        self.sink = sink
        self._callbacks: Dict[EventCode, List[EventCallback]] = {}
        self._stats = {
            "batches_received": 0,
            "batches_accepted": 0,
            "batches_unacknowledged": 0,
            "items_received": 0,
            "items_saved": 0,
            "items_failed": 0,
            "unknown_event_codes": 0
        }

    def on_event(self, event_code: EventCode, callback: EventCallback) -> None:
        """
        Register a callback for notifications with the given event code.

        Callbacks run before the item is recorded. Their errors are logged
        and do not change whether the item counts as recorded.

        Args:
            event_code: Event code to react to (EventCode.UNKNOWN for unrecognised codes)
            callback: Async function called with the item and request metadata
        """
        event_code = EventCode(event_code)
        self._callbacks.setdefault(event_code, []).append(callback)
        logger.debug(
            f"Registered {event_code.value} callback: "
            f"{getattr(callback, '__name__', callback)!r}"
        )

    async def process(
        self,
        batch: NotificationBatch,
        metadata: RequestMetadata
    ) -> BatchResult:
        """
        Classify and record every item in a batch.

        Args:
            batch: Parsed notification batch
            metadata: Details of the request the batch arrived in

        Returns:
            BatchResult with total and recorded item counts
        """
        self._stats["batches_received"] += 1
        result = BatchResult(total=len(batch), saved=0)

        for item in batch:
            event_code = item.event_code
            result.event_codes.append(event_code)
            self._stats["items_received"] += 1

            if event_code is EventCode.UNKNOWN:
                self._stats["unknown_event_codes"] += 1
                logger.info(f"Unrecognised event code {item.raw_event_code!r}, recording as-is")

            await self._run_callbacks(event_code, item, metadata)

            if await self._record(item, metadata):
                result.saved += 1
                self._stats["items_saved"] += 1
            else:
                self._stats["items_failed"] += 1

        if result.acknowledged:
            self._stats["batches_accepted"] += 1
        else:
            self._stats["batches_unacknowledged"] += 1
            logger.warning(
                f"Recorded {result.saved} of {result.total} notifications, "
                f"batch will not be acknowledged"
            )

        return result

    async def _record(self, item: NotificationItem, metadata: RequestMetadata) -> bool:
        """Record one item, treating a sink error as a failed save."""
        try:
            saved = await self.sink.record(metadata, item)
        except Exception as e:
            logger.error(
                f"Sink {self.sink.name} raised while recording "
                f"{item.short_reference()}: {e}",
                exc_info=True
            )
            return False

        if not saved:
            logger.warning(f"Sink {self.sink.name} did not record {item.short_reference()}")
        return bool(saved)

    async def _run_callbacks(
        self,
        event_code: EventCode,
        item: NotificationItem,
        metadata: RequestMetadata
    ) -> None:
        for callback in self._callbacks.get(event_code, []):
            try:
                await callback(item, metadata)
            except Exception as e:
                logger.error(f"Error in {event_code.value} callback: {e}", exc_info=True)

    def get_stats(self) -> Dict[str, int]:
        """
        Get processing statistics.

        Returns:
            Statistics dictionary
        """
        return self._stats.copy()

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        for key in self._stats:
            self._stats[key] = 0
