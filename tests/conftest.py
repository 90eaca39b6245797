"""Shared fixtures for the notification receiver tests."""

import base64

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from api.notification_api import create_app
from config import NotificationCredentials
from services.notification_processor import NotificationProcessor
from services.notification_sink import NotificationSink

NOTIFICATION_PATH = '/notifications/json'


class RecordingSink(NotificationSink):
    """Sink that remembers every call and fails at chosen positions."""

    name = "recording"

    def __init__(self, fail_at=(), raise_at=()):
        self.calls = []
        self.fail_at = set(fail_at)
        self.raise_at = set(raise_at)

    async def record(self, metadata, item):
        position = len(self.calls)
        self.calls.append((metadata, item))
        if position in self.raise_at:
            raise RuntimeError("storage unavailable")
        return position not in self.fail_at

    @property
    def psp_references(self):
        return [item.psp_reference for _, item in self.calls]


def basic_auth(username: str, password: str, scheme: str = 'Basic') -> str:
    token = base64.b64encode(f"{username}:{password}".encode('utf-8')).decode('ascii')
    return f"{scheme} {token}"


def make_item(event_code: str = 'AUTHORISATION', psp_reference: str = '8535296650153317', **fields):
    item = {
        'live': 'false',
        'eventCode': event_code,
        'pspReference': psp_reference,
        'originalReference': '',
        'merchantReference': 'order-1001',
        'merchantAccountCode': 'TestMerchant',
        'eventDate': '2024-01-01T12:00:00+01:00',
        'success': 'true',
        'paymentMethod': 'visa',
        'operations': ['CANCEL', 'CAPTURE', 'REFUND'],
        'reason': '1234:7777:12/2028',
        'amount': {'value': 1500, 'currency': 'EUR'},
    }
    item.update(fields)
    return item


def build_notification_request(items):
    """Wrap item mappings the way the provider batches them in one request."""
    return {
        'live': 'false',
        'notificationItems': [
            {'NotificationRequestItem': dict(item)} for item in items
        ],
    }


@pytest.fixture
def credentials():
    return NotificationCredentials(username='TestUser', password='TestPassword')


@pytest.fixture
def auth_header(credentials):
    return basic_auth(credentials.username, credentials.password)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def processor(sink):
    return NotificationProcessor(sink)


@pytest_asyncio.fixture
async def client(credentials, processor):
    app = create_app(
        credentials=credentials,
        processor=processor,
        notification_path=NOTIFICATION_PATH,
        service_name='TestReceiver'
    )
    async with TestClient(TestServer(app)) as test_client:
        yield test_client
