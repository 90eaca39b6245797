"""
Notification data models.

Represents the batched payment notifications sent by the payment provider
and the acknowledgment returned once every item has been recorded.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from .errors import MalformedPayload


ACCEPTED = "[accepted]"

REDACTED_HEADERS = ('authorization',)


class EventCode(str, Enum):
    """Payment event categories reported by the provider."""
    AUTHORISATION = "AUTHORISATION"
    CANCELLATION = "CANCELLATION"
    REFUND = "REFUND"
    CANCEL_OR_REFUND = "CANCEL_OR_REFUND"
    CAPTURE = "CAPTURE"
    REFUNDED_REVERSED = "REFUNDED_REVERSED"
    CAPTURE_FAILED = "CAPTURE_FAILED"
    REQUEST_FOR_INFORMATION = "REQUEST_FOR_INFORMATION"
    NOTIFICATION_OF_CHARGEBACK = "NOTIFICATION_OF_CHARGEBACK"
    CHARGEBACK = "CHARGEBACK"
    CHARGEBACK_REVERSED = "CHARGEBACK_REVERSED"
    REPORT_AVAILABLE = "REPORT_AVAILABLE"
    UNKNOWN = "UNKNOWN"

    @property
    def description(self) -> str:
        """Human-readable meaning of the event code."""
        return EVENT_DESCRIPTIONS[self]


EVENT_DESCRIPTIONS = {
    EventCode.AUTHORISATION: "Payment authorisation result; see success and reason",
    EventCode.CANCELLATION: "Payment was cancelled",
    EventCode.REFUND: "Payment was refunded",
    EventCode.CANCEL_OR_REFUND: "Payment was cancelled or refunded",
    EventCode.CAPTURE: "Payment was captured",
    EventCode.REFUNDED_REVERSED: "Refund was reversed",
    EventCode.CAPTURE_FAILED: "Capture of the authorised payment failed",
    EventCode.REQUEST_FOR_INFORMATION: "Information requested for this payment",
    EventCode.NOTIFICATION_OF_CHARGEBACK: "Chargeback is pending and can still be defended",
    EventCode.CHARGEBACK: "Payment was charged back",
    EventCode.CHARGEBACK_REVERSED: "Chargeback was reversed",
    EventCode.REPORT_AVAILABLE: "New report available; the URL is in reason",
    EventCode.UNKNOWN: "Unrecognised event code",
}


def classify_event_code(value: Any) -> EventCode:
    """
    Map a raw eventCode value to an EventCode.

    Unrecognised values map to EventCode.UNKNOWN instead of raising.
    """
    try:
        return EventCode(str(value))
    except ValueError:
        return EventCode.UNKNOWN


@dataclass
class NotificationItem:
    """
    A single notification from a batch.

    Wraps the mapping found under NotificationRequestItem. Field values are
    kept exactly as the provider sent them.
    """

    data: Dict[str, Any]

    @classmethod
    def from_entry(cls, entry: Any, position: int) -> 'NotificationItem':
        """
        Create a NotificationItem from one notificationItems entry.

        Args:
            entry: Element of the notificationItems array
            position: Index of the entry, used in error messages

        Returns:
            NotificationItem instance

        Raises:
            MalformedPayload: If the entry does not hold an item with an eventCode
        """
        if not isinstance(entry, dict):
            raise MalformedPayload(f"notificationItems[{position}] is not an object")

        item = entry.get('NotificationRequestItem')
        if not isinstance(item, dict):
            raise MalformedPayload(
                f"notificationItems[{position}] has no NotificationRequestItem object"
            )

        if item.get('eventCode') is None:
            raise MalformedPayload(f"notificationItems[{position}] has no eventCode")

        return cls(data=item)

    @property
    def raw_event_code(self) -> str:
        return str(self.data['eventCode'])

    @property
    def event_code(self) -> EventCode:
        return classify_event_code(self.data['eventCode'])

    @property
    def live(self) -> Any:
        return self.data.get('live')

    @property
    def psp_reference(self) -> Optional[str]:
        return self.data.get('pspReference')

    @property
    def original_reference(self) -> Optional[str]:
        return self.data.get('originalReference')

    @property
    def merchant_reference(self) -> Optional[str]:
        return self.data.get('merchantReference')

    @property
    def merchant_account_code(self) -> Optional[str]:
        return self.data.get('merchantAccountCode')

    @property
    def event_date(self) -> Any:
        return self.data.get('eventDate')

    @property
    def success(self) -> Any:
        return self.data.get('success')

    @property
    def payment_method(self) -> Optional[str]:
        return self.data.get('paymentMethod')

    @property
    def operations(self) -> Any:
        return self.data.get('operations')

    @property
    def reason(self) -> Optional[str]:
        return self.data.get('reason')

    @property
    def currency(self) -> Any:
        # Newer payloads nest the currency inside amount
        if 'currency' in self.data:
            return self.data['currency']
        amount = self.data.get('amount')
        if isinstance(amount, dict):
            return amount.get('currency')
        return None

    @property
    def amount(self) -> Any:
        return self.data.get('amount')

    def short_reference(self) -> str:
        """Get a short label for log lines."""
        return f"{self.raw_event_code}/{self.psp_reference or '-'}"

    def to_dict(self) -> Dict[str, Any]:
        """Return a copy of the item fields."""
        return dict(self.data)

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.data, separators=(',', ':'), default=str)


@dataclass
class NotificationBatch:
    """Ordered notification items delivered in one request."""

    items: List[NotificationItem] = field(default_factory=list)

    @classmethod
    def from_json(cls, body: str) -> 'NotificationBatch':
        """
        Parse a request body into a batch.

        Args:
            body: Raw request body text

        Returns:
            NotificationBatch with items in request order

        Raises:
            MalformedPayload: If the body is not a notification batch
        """
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise MalformedPayload(f"Request body is not valid JSON: {e}") from e

        return cls.from_dict(payload)

    @classmethod
    def from_dict(cls, payload: Any) -> 'NotificationBatch':
        """Create a batch from an already decoded JSON document."""
        if not isinstance(payload, dict):
            raise MalformedPayload("Request body is not a JSON object")

        entries = payload.get('notificationItems')
        if not isinstance(entries, list):
            raise MalformedPayload("notificationItems array is missing")

        return cls(items=[
            NotificationItem.from_entry(entry, position)
            for position, entry in enumerate(entries)
        ])

    def __iter__(self) -> Iterator[NotificationItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class AcknowledgmentResponse:
    """Response body telling the provider not to resend the batch."""

    notification_response: str = ACCEPTED

    def to_dict(self) -> Dict[str, str]:
        return {'notificationResponse': self.notification_response}


@dataclass
class RequestMetadata:
    """
    Details of the inbound request, passed to sinks with every item.

    Attributes:
        headers: Request headers as received
        remote: Peer address reported by the server
        path: Request path
        received_at: When the request reached the endpoint (UTC)
    """

    headers: Dict[str, str]
    remote: Optional[str] = None
    path: Optional[str] = None
    received_at: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def from_request(cls, request) -> 'RequestMetadata':
        """Create metadata from an aiohttp request."""
        return cls(
            headers=dict(request.headers),
            remote=request.remote,
            path=request.path
        )

    def redacted_headers(self) -> Dict[str, str]:
        """Headers with credential values masked."""
        return {
            name: '***' if name.lower() in REDACTED_HEADERS else value
            for name, value in self.headers.items()
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (credentials masked)."""
        return {
            'headers': self.redacted_headers(),
            'remote': self.remote,
            'path': self.path,
            'received_at': self.received_at.isoformat()
        }


@dataclass
class BatchResult:
    """Outcome of processing one batch."""

    total: int
    saved: int
    event_codes: List[EventCode] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return self.total - self.saved

    @property
    def acknowledged(self) -> bool:
        """True when every item was recorded."""
        return self.saved == self.total

