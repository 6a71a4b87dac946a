"""
Runtime configuration read from Lambda environment variables.

Settings are loaded per invocation so a missing credential surfaces as a
request error instead of a cold-start failure.
"""

import os
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from common.exceptions import ConfigException

logger = logging.getLogger(__name__)

HUBSPOT_API_BASE = "https://api.hubapi.com"
SURVEY_API_BASE_URL = "https://apihubspot.cloudvolution.com.ec:8001"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_TOKEN_TTL = 300
DEFAULT_WRITEBACK_FIELDS = ["idnps", "fechaencuesta", "fecha_encuesta"]

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    """Snapshot of the proxy configuration."""

    hubspot_token: Optional[str] = None
    hubspot_api_base: str = HUBSPOT_API_BASE
    survey_api_base_url: str = SURVEY_API_BASE_URL
    survey_api_username: Optional[str] = None
    survey_api_password: Optional[str] = None
    survey_token_ttl_seconds: int = Field(default=DEFAULT_TOKEN_TTL, ge=0)
    request_timeout_seconds: float = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0)
    writeback_enabled: bool = True
    writeback_object_type: str = "contacts"
    writeback_fields: List[str] = Field(
        default_factory=lambda: list(DEFAULT_WRITEBACK_FIELDS)
    )
    field_mapping_override: Optional[str] = None
    extra_deal_properties: List[str] = Field(default_factory=list)
    extra_contact_properties: List[str] = Field(default_factory=list)
    reconciliation_queue_url: Optional[str] = None

    @field_validator("hubspot_api_base", "survey_api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "Settings":
        """Build settings from environment variables."""
        env = os.environ if environ is None else environ

        values = {
            "hubspot_token": env.get("HUBSPOT_TOKEN") or None,
            "survey_api_username": env.get("SURVEY_API_USERNAME") or None,
            "survey_api_password": env.get("SURVEY_API_PASSWORD") or None,
            "field_mapping_override": env.get("SURVEY_FIELD_MAPPING") or None,
            "reconciliation_queue_url": env.get("RECONCILIATION_QUEUE_URL") or None,
            "extra_deal_properties": _split_csv(env.get("HUBSPOT_EXTRA_DEAL_PROPERTIES")),
            "extra_contact_properties": _split_csv(
                env.get("HUBSPOT_EXTRA_CONTACT_PROPERTIES")
            ),
        }
        if env.get("HUBSPOT_API_BASE"):
            values["hubspot_api_base"] = env["HUBSPOT_API_BASE"]
        if env.get("SURVEY_API_BASE_URL"):
            values["survey_api_base_url"] = env["SURVEY_API_BASE_URL"]
        if env.get("SURVEY_TOKEN_TTL_SECONDS"):
            values["survey_token_ttl_seconds"] = env["SURVEY_TOKEN_TTL_SECONDS"]
        if env.get("REQUEST_TIMEOUT_SECONDS"):
            values["request_timeout_seconds"] = env["REQUEST_TIMEOUT_SECONDS"]
        if env.get("WRITEBACK_ENABLED"):
            values["writeback_enabled"] = (
                env["WRITEBACK_ENABLED"].strip().lower() in _TRUE_VALUES
            )
        if env.get("WRITEBACK_OBJECT_TYPE"):
            values["writeback_object_type"] = env["WRITEBACK_OBJECT_TYPE"].strip()
        if env.get("WRITEBACK_FIELDS"):
            values["writeback_fields"] = _split_csv(env["WRITEBACK_FIELDS"])

        try:
            return cls(**values)
        except ValueError as e:
            raise ConfigException(f"Invalid proxy configuration: {e}") from e

    def require_hubspot_token(self) -> str:
        if not self.hubspot_token:
            raise ConfigException(
                "HubSpot token not configured",
                details={"variable": "HUBSPOT_TOKEN"},
            )
        return self.hubspot_token

    def require_survey_credentials(self) -> tuple:
        missing = [
            name
            for name, value in (
                ("SURVEY_API_USERNAME", self.survey_api_username),
                ("SURVEY_API_PASSWORD", self.survey_api_password),
            )
            if not value
        ]
        if missing:
            raise ConfigException(
                "Survey API credentials not configured",
                details={"variables": missing},
            )
        return self.survey_api_username, self.survey_api_password


def load_settings() -> Settings:
    """Factory used by handlers."""
    return Settings.from_env()
