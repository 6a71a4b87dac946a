"""
Lambda handler: NPS survey webhook (POST /api/webhook)

Triggered by a HubSpot workflow webhook once a contact answers the NPS
survey. Body:

    {"dealId": "123", "contactId": "456"}

Fetches the deal and contact, composes the survey payload, sends it to the
survey-intake API and stores the idnps correlation id back in HubSpot.
"""

from common.base_handler import BaseLambdaHandler, utc_timestamp
from common.models import WebhookRequest
from common.pipeline import SurveyPipeline


class SurveyWebhookHandler(BaseLambdaHandler):
    """Handler relaying one survey from HubSpot to the survey API."""

    def _execute(self, event: dict, context) -> dict:
        request = self._validate_body(WebhookRequest, event)

        SurveyPipeline.validate_ids(request.deal_id, request.contact_id)

        # Fail on missing HubSpot credentials before any outbound call
        self.settings.require_hubspot_token()

        pipeline = self.build_pipeline()
        outcome = pipeline.run(request.deal_id, request.contact_id)

        self.logger.info(
            "Survey %s processed for deal %s / contact %s",
            outcome.payload.idnps,
            request.deal_id,
            request.contact_id,
        )

        return self._success_response(
            {
                "success": True,
                "message": "Survey processed and submitted",
                "dealId": request.deal_id,
                "contactId": request.contact_id,
                "idnps": outcome.payload.idnps,
                "processedAt": utc_timestamp(),
                "steps": outcome.steps,
                "result": outcome.result,
            }
        )


def lambda_handler(event: dict, context) -> dict:
    """Lambda entry point."""
    handler = SurveyWebhookHandler()
    return handler.handle(event, context)
