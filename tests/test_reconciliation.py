"""
Tests for the failed-writeback reconciliation log.
"""

import json
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from common.models import ReconciliationRecord
from common.reconciliation import LOGGED, QUEUED, record_failed_writeback

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/survey-writeback"


def _record():
    return ReconciliationRecord(
        record_id="222",
        record_type="contacts",
        properties={"idnps": "abc", "fechaencuesta": "05-MAR-26"},
        idnps="abc",
        error="HubSpot API error 500",
        deal_id="111",
    )


@patch("common.reconciliation.get_sqs_client")
def test_record_is_queued_when_queue_configured(mock_get_client):
    sqs = MagicMock()
    sqs.send_message.return_value = {"MessageId": "m-1"}
    mock_get_client.return_value = sqs
    record = _record()

    assert record_failed_writeback(record, QUEUE_URL) == QUEUED

    kwargs = sqs.send_message.call_args.kwargs
    assert kwargs["QueueUrl"] == QUEUE_URL
    body = json.loads(kwargs["MessageBody"])
    assert body["record_id"] == "222"
    assert body["properties"]["idnps"] == "abc"
    assert kwargs["MessageAttributes"]["idnps"]["StringValue"] == "abc"


@patch("common.reconciliation.get_sqs_client")
def test_record_is_logged_without_queue(mock_get_client, caplog):
    record = _record()

    with caplog.at_level("ERROR", logger="common.reconciliation"):
        assert record_failed_writeback(record, None) == LOGGED

    mock_get_client.assert_not_called()
    assert "WRITEBACK_RECONCILIATION" in caplog.text
    assert record.reconciliation_id in caplog.text


@patch("common.reconciliation.get_sqs_client")
def test_sqs_failure_falls_back_to_log(mock_get_client, caplog):
    sqs = MagicMock()
    sqs.send_message.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "SendMessage"
    )
    mock_get_client.return_value = sqs

    with caplog.at_level("ERROR", logger="common.reconciliation"):
        assert record_failed_writeback(_record(), QUEUE_URL) == LOGGED

    assert "WRITEBACK_RECONCILIATION" in caplog.text


def test_record_survives_sqs_round_trip():
    record = _record()
    message = record.to_sqs_message()

    restored = ReconciliationRecord.from_sqs_message({"body": message["MessageBody"]})

    assert restored.reconciliation_id == record.reconciliation_id
    assert restored.created_at == record.created_at
    assert restored.properties == record.properties
