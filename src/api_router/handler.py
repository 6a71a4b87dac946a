"""
API Router Handler

Single Lambda entry point for deployments that put every route behind one
function (API Gateway {proxy+}). Dispatches by method and path to the
per-route handlers, answers CORS preflights and returns a 404 listing the
available routes otherwise.
"""

from common.base_handler import (
    CORS_HEADERS,
    BaseLambdaHandler,
    request_method,
    request_path,
)
from hubspot_update.handler import HubSpotUpdateHandler
from record_lookup.handler import RecordLookupHandler
from service_status.handler import ENDPOINTS, ServiceStatusHandler
from survey_webhook.handler import SurveyWebhookHandler

ROUTES = {
    ("GET", "/"): ServiceStatusHandler,
    ("GET", "/health"): ServiceStatusHandler,
    ("POST", "/api/webhook"): SurveyWebhookHandler,
    ("POST", "/api/hubspot"): HubSpotUpdateHandler,
    ("POST", "/test/deal-data"): RecordLookupHandler,
    ("POST", "/test/contact-data"): RecordLookupHandler,
    ("POST", "/test/payload"): RecordLookupHandler,
}


class ApiRouterHandler(BaseLambdaHandler):
    """Dispatches API Gateway proxy events to route handlers."""

    def handle(self, event: dict, context) -> dict:
        method = request_method(event)
        path = request_path(event)

        if method == "OPTIONS":
            return {"statusCode": 204, "headers": dict(CORS_HEADERS), "body": ""}

        handler_cls = ROUTES.get((method, path))
        if handler_cls is None:
            return super().handle(event, context)

        self.logger.info(f"{method} {path} -> {handler_cls.__name__}")
        return handler_cls().handle(event, context)

    def _execute(self, event: dict, context) -> dict:
        """Only reached for unknown routes."""
        method = request_method(event)
        path = request_path(event)
        self.logger.warning(f"No route for {method} {path}")
        return self._error_response(
            "Route not found",
            404,
            {"method": method, "path": path, "availableRoutes": list(ENDPOINTS)},
        )


def lambda_handler(event: dict, context) -> dict:
    """Lambda entry point."""
    return ApiRouterHandler().handle(event, context)
