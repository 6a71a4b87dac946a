"""
Lambda handler: diagnostic lookups

    POST /test/deal-data     {"dealId": "123"}
    POST /test/contact-data  {"contactId": "456"}
    POST /test/payload       {"dealId": "123", "contactId": "456"}

Runs the fetch (and, for /test/payload, compose) steps of the survey
pipeline without authenticating, submitting or writing anything back.
"""

from common.base_handler import BaseLambdaHandler, request_path
from common.exceptions import ValidationException
from common.models import WebhookRequest

DEAL_DATA_PATH = "/test/deal-data"
CONTACT_DATA_PATH = "/test/contact-data"
PAYLOAD_PATH = "/test/payload"


class RecordLookupHandler(BaseLambdaHandler):
    """Handler exposing individual pipeline steps for troubleshooting."""

    def _execute(self, event: dict, context) -> dict:
        path = request_path(event)
        request = self._validate_body(WebhookRequest, event)

        if path.endswith(DEAL_DATA_PATH):
            self._require(dealId=request.deal_id)
            data = self.hubspot_client.get_deal_data(request.deal_id)
            return self._success_response({"success": True, "data": data})

        if path.endswith(CONTACT_DATA_PATH):
            self._require(contactId=request.contact_id)
            data = self.hubspot_client.get_contact_data(request.contact_id)
            return self._success_response({"success": True, "data": data})

        if path.endswith(PAYLOAD_PATH):
            self._require(dealId=request.deal_id, contactId=request.contact_id)
            payload = self._build_compose_pipeline().compose(
                request.deal_id, request.contact_id
            )
            return self._success_response({"success": True, "payload": payload.to_dict()})

        return self._error_response(f"Unknown lookup route: {path}", 404)

    def _build_compose_pipeline(self):
        """Pipeline for fetch + compose only; no survey credentials needed."""
        from common.pipeline import SurveyPipeline

        return SurveyPipeline(
            hubspot_client=self.hubspot_client,
            survey_client=None,
            mapping=self.field_mapping,
        )

    @staticmethod
    def _require(**fields) -> None:
        missing = [name for name, value in fields.items() if not value]
        if missing:
            raise ValidationException(
                "Missing required fields: " + ", ".join(missing),
                details={"missing": missing},
            )


def lambda_handler(event: dict, context) -> dict:
    """Lambda entry point."""
    handler = RecordLookupHandler()
    return handler.handle(event, context)
