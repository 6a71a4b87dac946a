"""
Lambda handler: HubSpot property passthrough (POST /api/hubspot)

Patches properties on a HubSpot record as-is:

    {"id": "456", "data": {"idnps": "..."}, "objectType": "contacts"}

objectType defaults to contacts.
"""

from common.base_handler import BaseLambdaHandler
from common.exceptions import ValidationException
from common.models import HubSpotUpdateRequest


class HubSpotUpdateHandler(BaseLambdaHandler):
    """Handler for direct HubSpot property updates."""

    def _execute(self, event: dict, context) -> dict:
        request = self._validate_body(HubSpotUpdateRequest, event)

        missing = request.missing_fields()
        if missing:
            raise ValidationException(
                "Missing required fields: " + ", ".join(missing),
                details={
                    "missing": missing,
                    "required": {"id": "string", "data": "object"},
                },
            )

        result = self.hubspot_client.update_record(
            request.object_type, request.record_id, request.data
        )

        return self._success_response(
            {
                "success": True,
                "id": request.record_id,
                "objectType": request.object_type,
                "result": result,
            }
        )


def lambda_handler(event: dict, context) -> dict:
    """Lambda entry point."""
    handler = HubSpotUpdateHandler()
    return handler.handle(event, context)
