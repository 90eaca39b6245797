"""Services module for the Payment Notification Receiver."""

from .notification_processor import NotificationProcessor
from .notification_sink import (
    DatabaseNotificationSink,
    LoggingNotificationSink,
    NotificationSink
)

__all__ = [
    'NotificationProcessor',
    'NotificationSink',
    'LoggingNotificationSink',
    'DatabaseNotificationSink'
]
