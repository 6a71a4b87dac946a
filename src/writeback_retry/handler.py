"""
Writeback Retry Handler - Replays failed HubSpot writebacks from SQS.

When the survey API accepted a survey but the HubSpot writeback failed,
the pipeline queues a ReconciliationRecord. This handler:
1. Receives records from the reconciliation queue (batch size = 1)
2. Patches the HubSpot record with the stored properties
3. Raises on failure so SQS retries (DLQ after maxReceiveCount)

The PATCH only sets idnps and the survey dates, so replaying it is safe.
"""

from typing import Any, Dict

from common.base_handler import BaseLambdaHandler
from common.models import ReconciliationRecord


class WritebackRetryHandler(BaseLambdaHandler):
    """Replays queued writebacks."""

    reraise_errors = True

    def _execute(self, event: Dict[str, Any], context: Any) -> Dict[str, Any]:
        records = event.get("Records", [])

        if not records:
            self.logger.warning("No records in SQS event")
            return self._success_response({"message": "No records to process"})

        results = []
        for record in records:
            try:
                results.append(self._process_record(record))
            except Exception as exc:
                self.logger.error(
                    f"Error replaying writeback: {exc}",
                    exc_info=True,
                    extra={"messageId": record.get("messageId")},
                )
                raise  # Trigger retry

        return self._success_response(
            {
                "message": "Writebacks replayed",
                "processed": len(results),
                "results": results,
            }
        )

    def _process_record(self, record: Dict[str, Any]) -> Dict[str, Any]:
        reconciliation = ReconciliationRecord.from_sqs_message(record)
        attempt = int(
            record.get("attributes", {}).get("ApproximateReceiveCount")
            or reconciliation.attempt_count + 1
        )

        self.logger.info(
            f"Replaying writeback {reconciliation.reconciliation_id} for "
            f"{reconciliation.record_type} {reconciliation.record_id} "
            f"(idnps {reconciliation.idnps}, attempt {attempt})"
        )

        self.hubspot_client.write_back(
            reconciliation.record_id,
            reconciliation.record_type,
            reconciliation.properties,
        )

        return {
            "reconciliationId": reconciliation.reconciliation_id,
            "recordId": reconciliation.record_id,
            "idnps": reconciliation.idnps,
            "attempt": attempt,
        }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Lambda entry point for the reconciliation queue."""
    handler = WritebackRetryHandler()
    return handler.handle(event, context)
