"""
HubSpot property -> survey payload field mapping.

This module is the single source of truth for which HubSpot object holds
which survey field. Deployments where a field lives on the deal instead of
the contact (or under another property name) override individual rules via
the SURVEY_FIELD_MAPPING environment variable, e.g.:

    {"valornps": {"kind": "integer", "sources": [["deal", "valornps"]]}}

Sources are tried in order; the first non-blank value wins.
"""

import json
import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from common.exceptions import ConfigException
from common.models import SurveyPayload

logger = logging.getLogger(__name__)

DEAL = "deal"
CONTACT = "contact"
OBJECT_TYPES = (DEAL, CONTACT)


class FieldKind(str, Enum):
    """How a resolved source value is turned into a payload value."""

    RAW = "raw"  # value as-is, "" when absent
    TEXT = "text"  # sanitize_text
    STRING = "string"  # sanitize_string
    INTEGER = "integer"  # sanitize_integer
    CORRELATION_ID = "correlation_id"  # reuse or generate uuid4
    SURVEY_DATE = "survey_date"  # value or today as DD-MMM-YY
    DISPLAY_DATE = "display_date"  # value or today as DD/MM/YYYY


class FieldRule(BaseModel):
    """Sources for a single payload field, in priority order."""

    model_config = ConfigDict(frozen=True)

    kind: FieldKind = FieldKind.RAW
    sources: Tuple[Tuple[str, str], ...] = Field(default_factory=tuple)


def _rule(kind: FieldKind, *sources: Tuple[str, str]) -> FieldRule:
    return FieldRule(kind=kind, sources=tuple(sources))


# ---------------------------------------------------------------------------
# Default mapping (contact holds the survey answers, deal holds the store)
# ---------------------------------------------------------------------------

DEFAULT_FIELD_MAPPING: Dict[str, FieldRule] = {
    "idnps": _rule(FieldKind.CORRELATION_ID, (CONTACT, "idnps")),
    "fechaencuesta": _rule(FieldKind.SURVEY_DATE, (CONTACT, "fechaencuesta")),
    "fecha_encuesta": _rule(FieldKind.DISPLAY_DATE),
    "valornps": _rule(FieldKind.INTEGER, (CONTACT, "valornps")),
    "concepto": _rule(FieldKind.RAW, (DEAL, "concepto")),
    "local": _rule(FieldKind.RAW, (DEAL, "centro"), (DEAL, "local")),
    "provincia": _rule(
        FieldKind.RAW, (DEAL, "provincia_homologada"), (DEAL, "provincia")
    ),
    "region": _rule(FieldKind.RAW, (DEAL, "region")),
    "centro": _rule(FieldKind.RAW, (DEAL, "centro")),
    "identificacion": _rule(FieldKind.RAW, (CONTACT, "contact_id")),
    "nombres": _rule(FieldKind.RAW, (CONTACT, "firstname")),
    "apellidos": _rule(FieldKind.RAW, (CONTACT, "lastname")),
    "mejoras": _rule(FieldKind.TEXT, (CONTACT, "mejoras")),
    "comentario": _rule(FieldKind.TEXT, (CONTACT, "comentario")),
    "telefono": _rule(FieldKind.RAW, (CONTACT, "phone")),
    "email": _rule(FieldKind.RAW, (CONTACT, "email"), (CONTACT, "email_principal")),
    "fechaenvio": _rule(FieldKind.SURVEY_DATE, (CONTACT, "fechamail")),
    "genero": _rule(FieldKind.TEXT, (CONTACT, "genero")),
    "edad": _rule(FieldKind.STRING, (CONTACT, "edadnps")),
    "ropa": _rule(FieldKind.TEXT, (CONTACT, "ropa")),
    "zapatos": _rule(FieldKind.TEXT, (CONTACT, "zapatos")),
    "talla_ropa": _rule(FieldKind.TEXT, (CONTACT, "talla_ropa")),
    "adolecentes_adultos": _rule(FieldKind.TEXT, (CONTACT, "adolecentes_adultos")),
    "infantes": _rule(FieldKind.TEXT, (CONTACT, "infantes")),
    "ninos": _rule(FieldKind.TEXT, (CONTACT, "ninos")),
    "talla_zapatos": _rule(FieldKind.STRING, (CONTACT, "talla_zapatos")),
    "actividad": _rule(FieldKind.TEXT, (CONTACT, "actividad")),
    "actividad_otros": _rule(FieldKind.TEXT, (CONTACT, "actividad_otros")),
}

# Fetched for reference even though no default rule reads them
_ALWAYS_FETCHED: Dict[str, List[str]] = {
    DEAL: [],
    CONTACT: ["fecha_encuesta"],
}


def load_field_mapping(raw: Optional[str] = None) -> Dict[str, FieldRule]:
    """
    Return the default mapping with an optional JSON override applied.

    Args:
        raw: JSON object of payload field -> {"kind", "sources"}

    Raises:
        ConfigException: If the override is not valid JSON, names an unknown
            payload field or object type, or uses an unknown kind
    """
    mapping = dict(DEFAULT_FIELD_MAPPING)
    if not raw:
        return mapping

    try:
        overrides = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigException(f"SURVEY_FIELD_MAPPING is not valid JSON: {e}") from e

    if not isinstance(overrides, dict):
        raise ConfigException("SURVEY_FIELD_MAPPING must be a JSON object")

    known_fields = set(SurveyPayload.model_fields)
    for field_name, rule_data in overrides.items():
        if field_name not in known_fields:
            raise ConfigException(
                f"Unknown survey payload field in mapping: {field_name}",
                details={"field": field_name},
            )
        try:
            rule = FieldRule.model_validate(rule_data)
        except ValidationError as e:
            raise ConfigException(
                f"Invalid mapping rule for {field_name}: {e}",
                details={"field": field_name},
            ) from e

        for object_type, _ in rule.sources:
            if object_type not in OBJECT_TYPES:
                raise ConfigException(
                    f"Unknown object type '{object_type}' in mapping for {field_name}",
                    details={"field": field_name, "objectType": object_type},
                )
        mapping[field_name] = rule

    logger.info("Applied field mapping overrides for: %s", ", ".join(overrides))
    return mapping


def properties_for(
    mapping: Dict[str, FieldRule], object_type: str, extra: Optional[List[str]] = None
) -> List[str]:
    """
    List the HubSpot properties to request for a deal or contact search.

    Order is stable (first appearance) so search bodies are deterministic.
    """
    properties: List[str] = []
    for rule in mapping.values():
        for source_type, prop in rule.sources:
            if source_type == object_type and prop not in properties:
                properties.append(prop)

    for prop in _ALWAYS_FETCHED.get(object_type, []) + list(extra or []):
        if prop not in properties:
            properties.append(prop)

    return properties
