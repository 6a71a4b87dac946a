"""
Tests for environment-driven settings.
"""

import pytest

from common.config import (
    DEFAULT_WRITEBACK_FIELDS,
    HUBSPOT_API_BASE,
    SURVEY_API_BASE_URL,
    Settings,
    load_settings,
)
from common.exceptions import ConfigException


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})

    assert settings.hubspot_token is None
    assert settings.hubspot_api_base == HUBSPOT_API_BASE
    assert settings.survey_api_base_url == SURVEY_API_BASE_URL
    assert settings.request_timeout_seconds == 10.0
    assert settings.survey_token_ttl_seconds == 300
    assert settings.writeback_enabled is True
    assert settings.writeback_object_type == "contacts"
    assert settings.writeback_fields == DEFAULT_WRITEBACK_FIELDS
    assert settings.reconciliation_queue_url is None


def test_values_from_environment():
    settings = Settings.from_env(
        {
            "HUBSPOT_TOKEN": "pat-123",
            "SURVEY_API_BASE_URL": "https://survey.example.com/",
            "REQUEST_TIMEOUT_SECONDS": "2.5",
            "SURVEY_TOKEN_TTL_SECONDS": "60",
            "WRITEBACK_ENABLED": "false",
            "WRITEBACK_OBJECT_TYPE": "deals",
            "WRITEBACK_FIELDS": "idnps, fechaencuesta",
            "HUBSPOT_EXTRA_CONTACT_PROPERTIES": "hs_language,city",
        }
    )

    assert settings.hubspot_token == "pat-123"
    assert settings.survey_api_base_url == "https://survey.example.com"
    assert settings.request_timeout_seconds == 2.5
    assert settings.survey_token_ttl_seconds == 60
    assert settings.writeback_enabled is False
    assert settings.writeback_object_type == "deals"
    assert settings.writeback_fields == ["idnps", "fechaencuesta"]
    assert settings.extra_contact_properties == ["hs_language", "city"]
    assert settings.extra_deal_properties == []


def test_invalid_timeout_is_config_error():
    with pytest.raises(ConfigException, match="Invalid proxy configuration"):
        Settings.from_env({"REQUEST_TIMEOUT_SECONDS": "soon"})


def test_require_hubspot_token():
    with pytest.raises(ConfigException, match="HubSpot token not configured"):
        Settings.from_env({}).require_hubspot_token()

    assert Settings.from_env({"HUBSPOT_TOKEN": "t"}).require_hubspot_token() == "t"


def test_require_survey_credentials_lists_missing_variables():
    with pytest.raises(ConfigException) as exc_info:
        Settings.from_env({"SURVEY_API_USERNAME": "user"}).require_survey_credentials()

    assert exc_info.value.details == {"variables": ["SURVEY_API_PASSWORD"]}


def test_load_settings_reads_os_environ(monkeypatch):
    monkeypatch.setenv("HUBSPOT_TOKEN", "from-env")
    assert load_settings().hubspot_token == "from-env"
