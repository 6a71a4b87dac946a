"""
Shared base for the survey proxy Lambdas.

handle() wraps each subclass's _execute() and turns ProxyException
subclasses into the JSON error envelope with their HTTP status. Clients
and settings are built lazily from the environment.
"""

from abc import ABC, abstractmethod
import base64
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Optional

from common.exceptions import ProxyException, ValidationException

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def request_path(event: dict) -> str:
    """Route path for API Gateway v1 (path) and v2 (rawPath) events"""
    path = event.get("rawPath") or event.get("path") or "/"
    if len(path) > 1:
        path = path.rstrip("/")
    return path


def request_method(event: dict) -> str:
    """HTTP method for API Gateway v1 and v2 events"""
    method = event.get("httpMethod") or (
        event.get("requestContext", {}).get("http", {}).get("method")
    )
    return (method or "GET").upper()


class BaseLambdaHandler(ABC):
    """
    Base class for the proxy's API Gateway and SQS handlers.

    Subclasses implement _execute(); handle() owns logging and error mapping.
    """

    # SQS-triggered handlers re-raise so the message is retried
    reraise_errors = False

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))
        self._settings = None
        self._field_mapping = None
        self._hubspot_client = None
        self._survey_client = None

    @property
    def settings(self):
        """Lazy load of environment settings"""
        if self._settings is None:
            from common.config import load_settings

            self._settings = load_settings()
        return self._settings

    @property
    def field_mapping(self):
        """Field mapping with deployment overrides applied"""
        if self._field_mapping is None:
            from common.field_mapping import load_field_mapping

            self._field_mapping = load_field_mapping(self.settings.field_mapping_override)
        return self._field_mapping

    @property
    def hubspot_client(self):
        """Lazy initialization of HubSpot client"""
        if self._hubspot_client is None:
            from common.field_mapping import CONTACT, DEAL, properties_for
            from common.hubspot_client import HubSpotClient

            settings = self.settings
            self._hubspot_client = HubSpotClient(
                access_token=settings.require_hubspot_token(),
                api_base=settings.hubspot_api_base,
                timeout=settings.request_timeout_seconds,
                deal_properties=properties_for(
                    self.field_mapping, DEAL, settings.extra_deal_properties
                ),
                contact_properties=properties_for(
                    self.field_mapping, CONTACT, settings.extra_contact_properties
                ),
            )
        return self._hubspot_client

    @property
    def survey_client(self):
        """Lazy initialization of survey API client"""
        if self._survey_client is None:
            from common.survey_api_client import SurveyApiClient

            settings = self.settings
            username, password = settings.require_survey_credentials()
            self._survey_client = SurveyApiClient(
                base_url=settings.survey_api_base_url,
                username=username,
                password=password,
                timeout=settings.request_timeout_seconds,
                token_ttl=settings.survey_token_ttl_seconds,
            )
        return self._survey_client

    def build_pipeline(self):
        """Survey pipeline wired to this handler's clients and settings"""
        from common.pipeline import SurveyPipeline

        settings = self.settings
        return SurveyPipeline(
            hubspot_client=self.hubspot_client,
            survey_client=self.survey_client,
            mapping=self.field_mapping,
            writeback_enabled=settings.writeback_enabled,
            writeback_object_type=settings.writeback_object_type,
            writeback_fields=settings.writeback_fields,
            reconciliation_queue_url=settings.reconciliation_queue_url,
        )

    def handle(self, event: dict, context: Any) -> dict:
        """
        Main entry point for Lambda handler (Template Method).

        Args:
            event: Lambda event dict
            context: Lambda context

        Returns:
            HTTP response dict with statusCode and body
        """
        try:
            self.logger.info(f"Received event: {json.dumps(event, default=str)}")
            result = self._execute(event, context)
            self.logger.info("Handler completed successfully")
            return result
        except ProxyException as e:
            self.logger.error(f"Handler error ({e.status_code}): {e} {e.details}")
            if self.reraise_errors:
                raise
            return self._error_response(str(e), e.status_code, e.details)
        except Exception as e:
            self.logger.error(f"Handler error: {e}", exc_info=True)
            if self.reraise_errors:
                raise
            return self._error_response(str(e), 500)

    @abstractmethod
    def _execute(self, event: dict, context: Any) -> dict:
        """
        Subclasses implement their specific business logic here.

        Args:
            event: Lambda event dict
            context: Lambda context

        Returns:
            HTTP response dict
        """
        pass

    def _success_response(self, data: Any, status_code: int = 200) -> dict:
        """Standard success response format"""
        return {
            "statusCode": status_code,
            "headers": {"Content-Type": "application/json", **CORS_HEADERS},
            "body": json.dumps(data, default=str),
        }

    def _error_response(
        self, message: str, status_code: int, details: Optional[dict] = None
    ) -> dict:
        """Standard error envelope: error, details, timestamp"""
        return {
            "statusCode": status_code,
            "headers": {"Content-Type": "application/json", **CORS_HEADERS},
            "body": json.dumps(
                {
                    "error": message,
                    "details": details or {},
                    "timestamp": utc_timestamp(),
                },
                default=str,
            ),
        }

    def _parse_webhook_body(self, event: dict) -> Any:
        """Parse webhook body handling base64 encoding"""
        body = event.get("body") or ""

        if event.get("isBase64Encoded") and isinstance(body, str):
            body = base64.b64decode(body).decode("utf-8")

        if isinstance(body, str):
            if body:  # Only parse non-empty strings
                try:
                    return json.loads(body)
                except json.JSONDecodeError as e:
                    raise ValidationException(
                        "Request body is not valid JSON", details={"reason": str(e)}
                    ) from e
            return {}

        return body

    def _parse_json_object(self, event: dict) -> dict:
        """Parse the body and require a JSON object"""
        body = self._parse_webhook_body(event)
        if not isinstance(body, dict):
            raise ValidationException("Request body must be a JSON object")
        return body

    def _validate_body(self, model_cls, event: dict):
        """Parse the body into a pydantic request model, 400 on bad input"""
        from pydantic import ValidationError

        body = self._parse_json_object(event)
        try:
            return model_cls.model_validate(body)
        except ValidationError as e:
            raise ValidationException(
                "Invalid request body",
                details={
                    "errors": [
                        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                        for err in e.errors()
                    ]
                },
            ) from e
