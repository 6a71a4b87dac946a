"""
Reconciliation log for writebacks that fail after a survey was submitted.

The survey API has already accepted the payload at that point, so the
HubSpot record must be patched later rather than the request replayed.
Records go to the RECONCILIATION_QUEUE_URL SQS queue when configured, and
to the error log otherwise.
"""

import logging
from functools import lru_cache
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from common.models import ReconciliationRecord

logger = logging.getLogger(__name__)

QUEUED = "queued"
LOGGED = "logged"


@lru_cache(maxsize=1)
def get_sqs_client():
    """SQS client, created once per container."""
    return boto3.client("sqs")


def record_failed_writeback(
    record: ReconciliationRecord, queue_url: Optional[str] = None
) -> str:
    """
    Persist a failed writeback for later replay.

    Returns:
        "queued" if the record reached SQS, "logged" if it was only logged
    """
    if queue_url:
        try:
            response = get_sqs_client().send_message(
                QueueUrl=queue_url, **record.to_sqs_message()
            )
            logger.warning(
                "Queued writeback reconciliation %s for %s %s (MessageId %s)",
                record.reconciliation_id,
                record.record_type,
                record.record_id,
                response.get("MessageId"),
            )
            return QUEUED
        except (BotoCoreError, ClientError) as e:
            logger.error("Could not enqueue reconciliation record: %s", e, exc_info=True)

    logger.error("WRITEBACK_RECONCILIATION %s", record.model_dump_json())
    return LOGGED
