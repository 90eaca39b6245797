"""
Configuration module for the Payment Notification Receiver service.

Loads settings from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


SINK_KINDS = ('log', 'database')


@dataclass(frozen=True)
class NotificationCredentials:
    """Username/password pair the provider sends in the Authorization header."""
    username: str
    password: str

    def __repr__(self) -> str:
        return f"NotificationCredentials(username={self.username!r}, password='***')"


@dataclass
class NotificationConfig:
    """Notification endpoint configuration."""
    credentials: NotificationCredentials
    path: str
    sink: str


@dataclass
class DatabaseConfig:
    """Database connection configuration."""
    url: str


@dataclass
class APIConfig:
    """API server configuration."""
    host: str
    port: int


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str
    file: Optional[str]


@dataclass
class ServiceConfig:
    """Service-level configuration."""
    name: str
    shutdown_timeout: int


class Config:
    """
    Main configuration class that aggregates all config sections.

    Usage:
        from config import config

        print(config.notification.path)
        print(config.database.url)
    """

    def __init__(self):
        self._load_config()

    def _load_config(self):
        """Load all configuration from environment variables."""

        # Notification endpoint configuration
        self.notification = NotificationConfig(
            credentials=NotificationCredentials(
                username=os.getenv('NOTIFICATION_USERNAME', ''),
                password=os.getenv('NOTIFICATION_PASSWORD', '')
            ),
            path=os.getenv('NOTIFICATION_PATH', '/notifications/json'),
            sink=os.getenv('NOTIFICATION_SINK', 'log').strip().lower()
        )

        # Database configuration
        self.database = DatabaseConfig(
            url=os.getenv('DATABASE_URL', 'sqlite:///./notifications.db')
        )

        # API configuration
        self.api = APIConfig(
            host=os.getenv('API_HOST', '0.0.0.0'),
            port=int(os.getenv('API_PORT', '8000'))
        )

        # Logging configuration
        self.logging = LoggingConfig(
            level=os.getenv('LOG_LEVEL', 'INFO'),
            file=os.getenv('LOG_FILE')
        )

        # Service configuration
        self.service = ServiceConfig(
            name=os.getenv('SERVICE_NAME', 'PaymentNotificationReceiver'),
            shutdown_timeout=int(os.getenv('SHUTDOWN_TIMEOUT', '30'))
        )

    def validate(self) -> List[str]:
        """
        Validate required configuration values.

        Returns:
            List of validation error messages (empty if all valid)
        """
        errors = []

        if not self.notification.credentials.username:
            errors.append("NOTIFICATION_USERNAME is required")

        if not self.notification.credentials.password:
            errors.append("NOTIFICATION_PASSWORD is required")

        if not self.notification.path.startswith('/'):
            errors.append("NOTIFICATION_PATH must start with '/'")

        if self.notification.sink not in SINK_KINDS:
            errors.append(
                f"NOTIFICATION_SINK must be one of: {', '.join(SINK_KINDS)}"
            )

        if self.notification.sink == 'database' and not self.database.url:
            errors.append("DATABASE_URL is required for the database sink")

        return errors

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0


# Global configuration instance
config = Config()
