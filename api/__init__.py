"""API module for the Payment Notification Receiver."""

from .notification_api import create_app, NotificationAPI

__all__ = ['create_app', 'NotificationAPI']
