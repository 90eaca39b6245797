"""
Authorization header checks for the notification endpoint.

The provider sends the configured username and password as HTTP Basic
credentials on every notification request.
"""

import base64
import binascii
import hmac
from typing import Optional, Tuple

from config import NotificationCredentials
from models.errors import Forbidden, Unauthenticated


def parse_basic_auth(header: str) -> Tuple[str, str]:
    """
    Extract username and password from an Authorization header value.

    The token after the first space is base64-decoded and split on the
    first colon, so passwords may contain colons. Missing '=' padding is
    tolerated.

    Args:
        header: Authorization header value

    Returns:
        Tuple of (username, password)

    Raises:
        Unauthenticated: If the header cannot be decoded
    """
    parts = header.strip().split(' ', 1)
    if len(parts) != 2 or not parts[1].strip():
        raise Unauthenticated("Authorization header has no credentials")

    token = parts[1].strip()
    # Some senders drop the trailing '=' padding
    token += '=' * (-len(token) % 4)

    try:
        decoded = base64.b64decode(token, validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError):
        raise Unauthenticated("Authorization credentials are not valid base64") from None

    if ':' not in decoded:
        raise Unauthenticated("Authorization credentials have no password")

    username, password = decoded.split(':', 1)
    return username, password


def _matches(supplied: str, expected: str) -> bool:
    return hmac.compare_digest(supplied.encode('utf-8'), expected.encode('utf-8'))


def authenticate(header: Optional[str], credentials: NotificationCredentials) -> str:
    """
    Check an Authorization header against the configured credentials.

    Args:
        header: Authorization header value, or None when absent
        credentials: Expected username and password

    Returns:
        The authenticated username

    Raises:
        Unauthenticated: If the header is missing or malformed
        Forbidden: If the username or password does not match
    """
    if header is None:
        raise Unauthenticated("Authorization header is missing")

    username, password = parse_basic_auth(header)

    # Compare both fields so timing does not reveal which one differs
    user_ok = _matches(username, credentials.username)
    password_ok = _matches(password, credentials.password)

    if not (user_ok and password_ok):
        raise Forbidden("Invalid notification credentials")

    return username
