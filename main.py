#!/usr/bin/env python3
"""
Payment Notification Receiver Service.

Main entry point that wires the notification endpoint together:
- Credential check for the payment provider
- Notification processor and sink (log or database)
- aiohttp server for the notification, health and stats endpoints

Usage:
    python main.py

Environment variables:
    See .env.example for all configuration options.
"""

import asyncio
import logging
import os
import signal
import sys
from typing import Optional

from aiohttp import web

from config import config
from database.db import Database, close_db, get_db
from services.notification_processor import NotificationProcessor
from services.notification_sink import (
    DatabaseNotificationSink,
    LoggingNotificationSink,
    NotificationSink,
)
from api.notification_api import create_app


# Configure logging
def setup_logging():
    """Configure logging based on config."""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]

    if config.logging.file:
        # Ensure log directory exists
        log_dir = os.path.dirname(config.logging.file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(config.logging.file))

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers
    )

    # Reduce noise from third-party libraries
    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


class NotificationReceiverService:
    """
    Main service orchestrator.

    Coordinates all components of the receiver:
    - Database connection (database sink only)
    - Notification sink and processor
    - HTTP server
    """

    def __init__(self):
        self.db: Optional[Database] = None
        self.sink: Optional[NotificationSink] = None
        self.processor: Optional[NotificationProcessor] = None
        self.api_app: Optional[web.Application] = None
        self.api_runner: Optional[web.AppRunner] = None
        self._shutdown_event = asyncio.Event()

    async def start(self) -> None:
        """Start all services."""
        logger.info("=" * 60)
        logger.info(f"Starting {config.service.name}")
        logger.info("=" * 60)

        # Validate configuration
        errors = config.validate()
        if errors:
            for error in errors:
                logger.error(f"Configuration error: {error}")
            raise ValueError("Invalid configuration")

        self.sink = await self._create_sink()
        self.processor = NotificationProcessor(self.sink)

        # Start API server
        logger.info("Starting API server...")
        self.api_app = create_app(
            credentials=config.notification.credentials,
            processor=self.processor,
            notification_path=config.notification.path,
            service_name=config.service.name
        )

        self.api_runner = web.AppRunner(
            self.api_app,
            shutdown_timeout=config.service.shutdown_timeout
        )
        await self.api_runner.setup()

        site = web.TCPSite(
            self.api_runner,
            config.api.host,
            config.api.port
        )
        await site.start()

        logger.info("=" * 60)
        logger.info("Service started successfully!")
        logger.info(
            f"Receiving notifications at "
            f"http://{config.api.host}:{config.api.port}{config.notification.path}"
        )
        logger.info(f"Notification sink: {self.sink.name}")
        logger.info("=" * 60)

    async def _create_sink(self) -> NotificationSink:
        """Create the sink selected by NOTIFICATION_SINK."""
        if config.notification.sink == 'database':
            logger.info("Initializing database...")
            self.db = await get_db()
            await self.db.init_schema()
            return DatabaseNotificationSink(self.db)

        return LoggingNotificationSink()

    async def stop(self) -> None:
        """Stop all services gracefully."""
        logger.info("Initiating graceful shutdown...")

        # Stop accepting new requests
        if self.api_runner:
            await self.api_runner.cleanup()

        # Close database
        await close_db()

        if self.processor:
            logger.info(f"Final stats: {self.processor.get_stats()}")

        logger.info("Shutdown complete")
        self._shutdown_event.set()

    async def run(self) -> None:
        """Run the service until shutdown signal."""
        await self.start()

        # Wait for shutdown signal
        await self._shutdown_event.wait()

    def request_shutdown(self) -> None:
        """Request service shutdown."""
        asyncio.create_task(self.stop())


def handle_signal(service: NotificationReceiverService, sig: signal.Signals) -> None:
    """Handle shutdown signals."""
    logger.info(f"Received signal {sig.name}, initiating shutdown...")
    service.request_shutdown()


async def main() -> None:
    """Main entry point."""
    setup_logging()

    service = NotificationReceiverService()

    # Set up signal handlers
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda s=sig: handle_signal(service, s)
        )

    try:
        await service.run()
    except Exception as e:
        logger.error(f"Service error: {e}", exc_info=True)
        await service.stop()
        sys.exit(1)


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == '__main__':
    run()
