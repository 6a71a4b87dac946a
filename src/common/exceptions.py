"""
Custom exception classes for the survey proxy.
Provides structured error handling across all handlers.

Each exception carries the HTTP status the handlers answer with.
"""


class ProxyException(Exception):
    """Base exception for all proxy operations"""

    status_code = 500

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


class ValidationException(ProxyException):
    """Raised when required request input is missing or malformed"""

    status_code = 400


class ConfigException(ProxyException):
    """Raised when a credential or setting is not configured"""

    status_code = 500


class RecordNotFoundException(ProxyException):
    """Raised when a HubSpot search returns no results"""

    status_code = 404

    def __init__(self, record_type: str, record_id: str):
        super().__init__(
            f"No {record_type} record found with id {record_id}",
            details={"recordType": record_type, "recordId": record_id},
        )
        self.record_type = record_type
        self.record_id = record_id


class AuthException(ProxyException):
    """Raised when the survey API token cannot be obtained"""

    status_code = 502


class UpstreamException(ProxyException):
    """Raised when a downstream HTTP call fails"""

    status_code = 502

    def __init__(self, message: str, status: int = None, body=None, details: dict = None):
        merged = dict(details or {})
        if status is not None:
            merged["status"] = status
        if body is not None:
            merged["body"] = body
        super().__init__(message, merged)
        self.status = status
        self.body = body


class HubSpotAPIException(UpstreamException):
    """Raised when HubSpot API calls fail"""

    pass


class SurveyApiException(UpstreamException):
    """Raised when the external survey API rejects a submission"""

    pass
