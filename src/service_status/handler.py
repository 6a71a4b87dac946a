"""Service status: GET / (endpoint listing) and GET /health (uptime)."""

import time

from common.base_handler import BaseLambdaHandler, request_path, utc_timestamp

# Container start; uptime resets on cold start
_STARTED_AT = time.monotonic()

ENDPOINTS = {
    "GET /": "Service status",
    "GET /health": "Health check",
    "POST /api/webhook": "Relay an NPS survey from HubSpot to the survey API",
    "POST /api/hubspot": "Update HubSpot record properties",
    "POST /test/deal-data": "Fetch deal survey properties",
    "POST /test/contact-data": "Fetch contact survey properties",
    "POST /test/payload": "Compose a survey payload without submitting it",
}


class ServiceStatusHandler(BaseLambdaHandler):
    """Handler for status and health checks."""

    def _execute(self, event: dict, context) -> dict:
        if request_path(event).endswith("/health"):
            return self._success_response(
                {
                    "status": "healthy",
                    "uptime": round(time.monotonic() - _STARTED_AT, 3),
                    "timestamp": utc_timestamp(),
                }
            )

        return self._success_response(
            {
                "status": "OK",
                "message": "HubSpot survey proxy is running",
                "timestamp": utc_timestamp(),
                "endpoints": ENDPOINTS,
            }
        )


def lambda_handler(event: dict, context) -> dict:
    """Lambda handler entry point."""
    handler = ServiceStatusHandler()
    return handler.handle(event, context)
