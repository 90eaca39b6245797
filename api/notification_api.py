"""
Notification Endpoint.

Receives batched payment notifications from the payment provider and
acknowledges them once every item has been recorded.
"""

import logging
from typing import Optional

from aiohttp import web

from config import config, NotificationCredentials
from models.errors import NotificationError, Unauthenticated, Forbidden
from models.notification import (
    AcknowledgmentResponse,
    NotificationBatch,
    RequestMetadata,
)
from services.notification_processor import NotificationProcessor
from .auth import authenticate

logger = logging.getLogger(__name__)


class NotificationAPI:
    """
    HTTP API for the payment provider's notifications.

    Endpoints:
    - POST {notification_path} - Receive a notification batch
    - GET /api/health - Health check
    - GET /api/stats - Processing statistics

    The provider resends a batch until it gets {"notificationResponse":
    "[accepted]"} back. When any item fails to record, the response is
    left empty so the whole batch is delivered again later.
    """

    def __init__(
        self,
        credentials: NotificationCredentials,
        processor: NotificationProcessor,
        notification_path: Optional[str] = None,
        service_name: Optional[str] = None
    ):
        """
        Initialize the API.

        Args:
            credentials: Username and password the provider must send
            processor: Processor that classifies and records items
            notification_path: Path the provider posts to
            service_name: Name reported by the health check
        """
        self.credentials = credentials
        self.processor = processor
        self.notification_path = notification_path or config.notification.path
        self.service_name = service_name or config.service.name

    def setup_routes(self, app: web.Application) -> None:
        """
        Set up API routes.

        Args:
            app: aiohttp web application
        """
        app.router.add_post(self.notification_path, self.handle_notification)
        app.router.add_get('/api/health', self.health_check)
        app.router.add_get('/api/stats', self.get_stats)

    async def handle_notification(self, request: web.Request) -> web.Response:
        """
        Handle a notification batch.

        Request body:
        {
            "notificationItems": [
                {"NotificationRequestItem": {"eventCode": "AUTHORISATION", ...}},
                ...
            ]
        }

        Responses:
        - 401 when the Authorization header is missing or unreadable
        - 403 when the credentials do not match
        - 500 when the body is not a notification batch
        - 200 {"notificationResponse": "[accepted]"} when every item was recorded
        - 200 with an empty body otherwise
        """
        try:
            authenticate(request.headers.get('Authorization'), self.credentials)
        except (Unauthenticated, Forbidden) as e:
            logger.warning(f"Rejected notification from {request.remote}: {e}")
            return web.Response(status=e.status)

        body = await self._read_body(request)
        batch = NotificationBatch.from_json(body)
        metadata = RequestMetadata.from_request(request)

        result = await self.processor.process(batch, metadata)

        if not result.acknowledged:
            return web.Response()

        logger.info(f"Accepted {result.total} notification(s) from {request.remote}")
        return web.json_response(AcknowledgmentResponse().to_dict())

    async def _read_body(self, request: web.Request) -> str:
        return await request.text()

    async def health_check(self, request: web.Request) -> web.Response:
        """Health check endpoint."""
        return web.json_response({
            "status": "healthy",
            "service": self.service_name
        })

    async def get_stats(self, request: web.Request) -> web.Response:
        """Get processing statistics."""
        return web.json_response(self.processor.get_stats())


def create_app(
    credentials: NotificationCredentials,
    processor: NotificationProcessor,
    notification_path: Optional[str] = None,
    service_name: Optional[str] = None
) -> web.Application:
    """
    Create and configure the aiohttp web application.

    Args:
        credentials: Username and password the provider must send
        processor: Processor that classifies and records items
        notification_path: Path the provider posts to
        service_name: Name reported by the health check

    Returns:
        Configured aiohttp Application
    """
    app = web.Application()

    api = NotificationAPI(
        credentials=credentials,
        processor=processor,
        notification_path=notification_path,
        service_name=service_name
    )

    api.setup_routes(app)

    # Error handling middleware
    @web.middleware
    async def error_middleware(request, handler):
        try:
            return await handler(request)
        except web.HTTPException:
            raise
        except NotificationError as e:
            logger.error(f"Notification request failed: {e}", exc_info=True)
            return web.json_response(
                {"error": "Internal server error"},
                status=e.status
            )
        except Exception as e:
            logger.error(f"Unhandled error: {e}", exc_info=True)
            return web.json_response(
                {"error": "Internal server error"},
                status=500
            )

    app.middlewares.append(error_middleware)

    return app
