"""
Errors raised while handling a notification request.

Each error carries the HTTP status it maps to. A record that could not be
saved is not an error: sinks report that by returning False.
"""


class NotificationError(Exception):
    """Base class for notification request failures."""

    status = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__)


class Unauthenticated(NotificationError):
    """No usable credentials in the Authorization header."""

    status = 401


class Forbidden(NotificationError):
    """Credentials supplied but they do not match."""

    status = 403


class MalformedPayload(NotificationError):
    """Request body is not a valid notification batch."""

    status = 500
