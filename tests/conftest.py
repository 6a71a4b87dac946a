"""
Pytest configuration: adds src/ to the path so all modules can be imported.
"""

import sys
import os

import pytest

# Add the src directory so Lambda modules can be imported without packaging
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

# Pre-import handler modules so @patch decorators can resolve dotted paths
import survey_webhook.handler  # noqa: F401,E402
import record_lookup.handler  # noqa: F401,E402
import writeback_retry.handler  # noqa: F401,E402

from common.survey_api_client import token_cache  # noqa: E402

PROXY_ENV_VARS = (
    "HUBSPOT_TOKEN",
    "HUBSPOT_API_BASE",
    "SURVEY_API_BASE_URL",
    "SURVEY_API_USERNAME",
    "SURVEY_API_PASSWORD",
    "SURVEY_TOKEN_TTL_SECONDS",
    "REQUEST_TIMEOUT_SECONDS",
    "WRITEBACK_ENABLED",
    "WRITEBACK_OBJECT_TYPE",
    "WRITEBACK_FIELDS",
    "SURVEY_FIELD_MAPPING",
    "HUBSPOT_EXTRA_DEAL_PROPERTIES",
    "HUBSPOT_EXTRA_CONTACT_PROPERTIES",
    "RECONCILIATION_QUEUE_URL",
)

HUBSPOT_API_BASE = "https://api.hubapi.com"
SURVEY_API_BASE = "https://survey.example.com:8001"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate every test from the host environment and the token cache."""
    for name in PROXY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    token_cache.clear()
    yield
    token_cache.clear()


@pytest.fixture
def proxy_env(monkeypatch):
    """A fully configured proxy environment."""
    monkeypatch.setenv("HUBSPOT_TOKEN", "hs-test-token")
    monkeypatch.setenv("SURVEY_API_BASE_URL", SURVEY_API_BASE)
    monkeypatch.setenv("SURVEY_API_USERNAME", "npsuser")
    monkeypatch.setenv("SURVEY_API_PASSWORD", "secret")


@pytest.fixture
def sample_deal():
    """HubSpot deal properties as returned by the search API."""
    return {
        "hs_object_id": "111",
        "concepto": "Outlet",
        "local": "Local 7",
        "centro": "CC Quicentro",
        "provincia": "pichincha",
        "provincia_homologada": "PICHINCHA",
        "region": "SIERRA",
    }


@pytest.fixture
def sample_contact():
    """HubSpot contact properties carrying survey answers."""
    return {
        "hs_object_id": "222",
        "contact_id": "1712345678",
        "firstname": "Jane",
        "lastname": "Doe",
        "phone": "+593999999999",
        "email": "jane@example.com",
        "email_principal": "jane.alt@example.com",
        "fechamail": "01-OCT-26",
        "fechaencuesta": None,
        "valornps": "9",
        "mejoras": "Más cajas abiertas",
        "comentario": "Buena atención",
        "genero": " Femenino ",
        "edadnps": "35",
        "ropa": "Si",
        "zapatos": "",
        "talla_ropa": "M",
        "adolecentes_adultos": None,
        "infantes": "No",
        "ninos": "  ",
        "talla_zapatos": "38",
        "actividad": "Running",
        "actividad_otros": None,
        "idnps": "",
    }
