"""Database module for the Payment Notification Receiver."""

from .db import Database, get_db, close_db

__all__ = ['Database', 'get_db', 'close_db']
