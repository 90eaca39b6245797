"""Data models for the Payment Notification Receiver."""

from .errors import Forbidden, MalformedPayload, NotificationError, Unauthenticated
from .notification import (
    AcknowledgmentResponse,
    BatchResult,
    EventCode,
    NotificationBatch,
    NotificationItem,
    RequestMetadata,
    classify_event_code,
)

__all__ = [
    'AcknowledgmentResponse',
    'BatchResult',
    'EventCode',
    'Forbidden',
    'MalformedPayload',
    'NotificationBatch',
    'NotificationError',
    'NotificationItem',
    'RequestMetadata',
    'Unauthenticated',
    'classify_event_code'
]
