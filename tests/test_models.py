"""
Unit tests for notification models.

Run with: pytest tests/test_models.py -v
"""

import json
from datetime import datetime

import pytest

from models.errors import MalformedPayload
from models.notification import (
    AcknowledgmentResponse,
    BatchResult,
    EventCode,
    NotificationBatch,
    NotificationItem,
    RequestMetadata,
    classify_event_code,
)
from conftest import build_notification_request, make_item


class TestEventCode:
    """Tests for event code classification."""

    @pytest.mark.parametrize('raw', [
        'AUTHORISATION', 'CANCELLATION', 'REFUND', 'CANCEL_OR_REFUND', 'CAPTURE',
        'REFUNDED_REVERSED', 'CAPTURE_FAILED', 'REQUEST_FOR_INFORMATION',
        'NOTIFICATION_OF_CHARGEBACK', 'CHARGEBACK', 'CHARGEBACK_REVERSED',
        'REPORT_AVAILABLE',
    ])
    def test_known_codes(self, raw):
        assert classify_event_code(raw) == EventCode(raw)
        assert classify_event_code(raw).value == raw

    @pytest.mark.parametrize('raw', ['PAYOUT_THIRDPARTY', 'authorisation', '', 42])
    def test_unrecognised_codes_map_to_unknown(self, raw):
        assert classify_event_code(raw) is EventCode.UNKNOWN

    def test_every_code_has_description(self):
        for code in EventCode:
            assert code.description

    def test_report_available_description_mentions_reason(self):
        assert 'reason' in EventCode.REPORT_AVAILABLE.description


class TestNotificationItem:
    """Tests for NotificationItem."""

    def test_fields_pass_through_untyped(self):
        item = NotificationItem(data=make_item(success='false', live='true'))

        assert item.success == 'false'
        assert item.live == 'true'
        assert item.event_date == '2024-01-01T12:00:00+01:00'
        assert item.operations == ['CANCEL', 'CAPTURE', 'REFUND']
        assert item.psp_reference == '8535296650153317'
        assert item.merchant_account_code == 'TestMerchant'

    def test_currency_from_amount(self):
        item = NotificationItem(data=make_item())
        assert item.currency == 'EUR'

    def test_top_level_currency_wins(self):
        item = NotificationItem(data=make_item(currency='USD'))
        assert item.currency == 'USD'

    def test_missing_optional_fields(self):
        item = NotificationItem(data={'eventCode': 'CAPTURE'})

        assert item.psp_reference is None
        assert item.currency is None
        assert item.short_reference() == 'CAPTURE/-'

    def test_to_dict_is_a_copy(self):
        data = make_item()
        item = NotificationItem(data=data)

        copied = item.to_dict()
        copied['eventCode'] = 'REFUND'

        assert item.raw_event_code == 'AUTHORISATION'

    def test_from_entry_requires_event_code(self):
        with pytest.raises(MalformedPayload, match=r"notificationItems\[3\] has no eventCode"):
            NotificationItem.from_entry({'NotificationRequestItem': {'pspReference': '1'}}, 3)


class TestNotificationBatch:
    """Tests for batch parsing."""

    def test_parse_preserves_order(self):
        body = json.dumps(build_notification_request([
            make_item('AUTHORISATION', 'a'),
            make_item('CAPTURE', 'b'),
            make_item('REFUND', 'c'),
        ]))

        batch = NotificationBatch.from_json(body)

        assert len(batch) == 3
        assert [item.psp_reference for item in batch] == ['a', 'b', 'c']
        assert [item.event_code for item in batch] == [
            EventCode.AUTHORISATION, EventCode.CAPTURE, EventCode.REFUND
        ]

    def test_parse_empty_batch(self):
        batch = NotificationBatch.from_json('{"notificationItems": []}')
        assert len(batch) == 0

    def test_invalid_json_is_chained(self):
        with pytest.raises(MalformedPayload) as exc_info:
            NotificationBatch.from_json('{"notificationItems": [')

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert exc_info.value.status == 500

    @pytest.mark.parametrize('payload', [
        [],
        {},
        {'notificationItems': None},
        {'notificationItems': 'nope'},
        {'notificationItems': [None]},
        {'notificationItems': [{'NotificationRequestItem': 'nope'}]},
    ])
    def test_wrong_structure(self, payload):
        with pytest.raises(MalformedPayload):
            NotificationBatch.from_dict(payload)


class TestResponses:
    """Tests for acknowledgment and batch results."""

    def test_acknowledgment_body(self):
        assert AcknowledgmentResponse().to_dict() == {'notificationResponse': '[accepted]'}

    def test_batch_result(self):
        assert BatchResult(total=0, saved=0).acknowledged
        assert BatchResult(total=3, saved=3).acknowledged

        partial = BatchResult(total=3, saved=2)
        assert not partial.acknowledged
        assert partial.failed == 1


class TestRequestMetadata:
    """Tests for RequestMetadata."""

    def test_authorization_header_is_redacted(self):
        metadata = RequestMetadata(
            headers={'Authorization': 'Basic secret', 'Content-Type': 'application/json'},
            remote='127.0.0.1',
            path='/notifications/json',
            received_at=datetime(2024, 1, 1, 12, 0, 0)
        )

        data = metadata.to_dict()

        assert data['headers'] == {'Authorization': '***', 'Content-Type': 'application/json'}
        assert data['received_at'] == '2024-01-01T12:00:00'
        # Original headers are left intact for sinks that need them
        assert metadata.headers['Authorization'] == 'Basic secret'


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
