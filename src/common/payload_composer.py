"""
HubSpot deal + contact -> survey payload composition.

compose_payload is pure apart from the clock and the id factory, both of
which can be injected so the result is reproducible in tests.
"""

import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from common.field_mapping import (
    CONTACT,
    DEAL,
    DEFAULT_FIELD_MAPPING,
    FieldKind,
    FieldRule,
)
from common.models import SurveyPayload
from common.sanitizers import sanitize_integer, sanitize_string, sanitize_text

# Fixed English abbreviations; strftime("%b") follows the process locale
MONTH_ABBREVIATIONS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)


def format_survey_date(moment: datetime) -> str:
    """Format as DD-MMM-YY, e.g. 05-MAR-25."""
    return f"{moment.day:02d}-{MONTH_ABBREVIATIONS[moment.month - 1]}-{moment.year % 100:02d}"


def format_display_date(moment: datetime) -> str:
    """Format as DD/MM/YYYY, e.g. 05/03/2025."""
    return f"{moment.day:02d}/{moment.month:02d}/{moment.year:04d}"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _resolve(rule: FieldRule, records: Dict[str, Dict[str, Any]]) -> Any:
    """Return the first non-blank source value, or None."""
    for object_type, prop in rule.sources:
        value = records.get(object_type, {}).get(prop)
        if not _is_blank(value):
            return value
    return None


def compose_payload(
    deal_data: Optional[Dict[str, Any]],
    contact_data: Optional[Dict[str, Any]],
    now: Optional[datetime] = None,
    mapping: Optional[Dict[str, FieldRule]] = None,
    id_factory: Optional[Callable[[], str]] = None,
) -> SurveyPayload:
    """
    Merge deal and contact properties into a SurveyPayload.

    Args:
        deal_data: HubSpot deal properties
        contact_data: HubSpot contact properties
        now: Reference time for default dates (server local time if omitted)
        mapping: Field mapping table (DEFAULT_FIELD_MAPPING if omitted)
        id_factory: Generator for new idnps values (uuid4 if omitted)

    Returns:
        SurveyPayload with every field populated ("" or None when absent)
    """
    now = now or datetime.now()
    mapping = mapping or DEFAULT_FIELD_MAPPING
    id_factory = id_factory or (lambda: str(uuid.uuid4()))
    records = {DEAL: deal_data or {}, CONTACT: contact_data or {}}

    values: Dict[str, Any] = {}
    for field_name, rule in mapping.items():
        value = _resolve(rule, records)
        kind = rule.kind

        if kind == FieldKind.CORRELATION_ID:
            values[field_name] = str(value).strip() if value is not None else id_factory()
        elif kind == FieldKind.SURVEY_DATE:
            values[field_name] = str(value) if value is not None else format_survey_date(now)
        elif kind == FieldKind.DISPLAY_DATE:
            values[field_name] = str(value) if value is not None else format_display_date(now)
        elif kind == FieldKind.INTEGER:
            values[field_name] = sanitize_integer(value)
        elif kind == FieldKind.TEXT:
            values[field_name] = sanitize_text(value)
        elif kind == FieldKind.STRING:
            values[field_name] = sanitize_string(value)
        else:
            values[field_name] = "" if value is None else str(value)

    return SurveyPayload(**_fit_to_schema(values))


def _fit_to_schema(values: Dict[str, Any]) -> Dict[str, Any]:
    """
    Coerce values into the SurveyPayload field types.

    A deployment override may point a string field at an integer or text
    rule; None goes to "" for required-string fields and ints become strings.
    """
    fitted = {}
    for name, value in values.items():
        field = SurveyPayload.model_fields[name]
        if field.annotation is str:
            fitted[name] = "" if value is None else str(value)
        elif field.annotation == Optional[int] and not (
            value is None or isinstance(value, int)
        ):
            fitted[name] = sanitize_integer(value)
        elif field.annotation == Optional[str] and value is not None:
            fitted[name] = str(value)
        else:
            fitted[name] = value
    return fitted
