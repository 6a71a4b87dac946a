"""
Pydantic models for inbound requests, the outbound survey payload and
reconciliation messages.
"""

import json
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# HubSpot object ids are numeric; object types are names like "contacts" or "2-1234"
HUBSPOT_ID_PATTERN = re.compile(r"^\d+$")
OBJECT_TYPE_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")


def _coerce_identifier(v):
    """HubSpot workflows send ids as numbers or strings; blanks count as missing."""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return str(v)
    if isinstance(v, float):
        # Fractional ids are left for the str field to reject
        return str(int(v)) if v.is_integer() else v
    if isinstance(v, str):
        return v.strip() or None
    return v


class WebhookRequest(BaseModel):
    """Body of POST /api/webhook."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    deal_id: Optional[str] = Field(default=None, alias="dealId")
    contact_id: Optional[str] = Field(default=None, alias="contactId")

    @field_validator("deal_id", "contact_id", mode="before")
    @classmethod
    def coerce_ids(cls, v):
        return _coerce_identifier(v)


class HubSpotUpdateRequest(BaseModel):
    """Body of POST /api/hubspot."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    record_id: Optional[str] = Field(default=None, alias="id")
    data: Optional[Dict[str, Any]] = None
    object_type: str = Field(default="contacts", alias="objectType")

    @field_validator("record_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        v = _coerce_identifier(v)
        if v is not None and not (isinstance(v, str) and HUBSPOT_ID_PATTERN.match(v)):
            raise ValueError("id must be numeric")
        return v

    @field_validator("object_type")
    @classmethod
    def check_object_type(cls, v):
        if not OBJECT_TYPE_PATTERN.match(v):
            raise ValueError("objectType contains invalid characters")
        return v

    @field_validator("data", mode="before")
    @classmethod
    def reject_non_mapping(cls, v):
        # An empty or non-object body counts as missing
        if not isinstance(v, dict) or not v:
            return None
        return v

    def missing_fields(self) -> List[str]:
        missing = []
        if not self.record_id:
            missing.append("id")
        if self.data is None:
            missing.append("data")
        return missing


class SurveyPayload(BaseModel):
    """
    Flat record accepted by the external survey-intake API.

    Every field is always serialized; absent source values are "" or None.
    """

    model_config = ConfigDict(extra="forbid")

    idnps: str = ""
    fechaencuesta: str = ""
    fecha_encuesta: str = ""
    valornps: Optional[int] = None
    concepto: str = ""
    local: str = ""
    provincia: str = ""
    region: str = ""
    centro: str = ""
    identificacion: str = ""
    nombres: str = ""
    apellidos: str = ""
    mejoras: str = ""
    comentario: str = ""
    telefono: str = ""
    email: str = ""
    fechaenvio: str = ""
    genero: Optional[str] = None
    edad: Optional[str] = None
    ropa: Optional[str] = None
    zapatos: Optional[str] = None
    talla_ropa: Optional[str] = None
    adolecentes_adultos: Optional[str] = None
    infantes: Optional[str] = None
    ninos: Optional[str] = None
    talla_zapatos: Optional[str] = None
    actividad: Optional[str] = None
    actividad_otros: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    def pick(self, field_names: List[str]) -> Dict[str, Any]:
        """Subset of the payload used for the HubSpot writeback."""
        data = self.to_dict()
        return {name: data[name] for name in field_names if name in data}


class ReconciliationRecord(BaseModel):
    """
    A writeback that failed after the survey was already submitted.

    Serialized to SQS so the writeback_retry Lambda can replay it.
    """

    record_id: str
    record_type: str
    properties: Dict[str, Any]
    idnps: str
    error: str = ""
    deal_id: Optional[str] = None
    reconciliation_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    attempt_count: int = 0

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_timestamp(cls, v):
        """Parse timestamp from string if needed."""
        if isinstance(v, str):
            return datetime.fromisoformat(v.replace("Z", "+00:00"))
        return v

    def to_sqs_message(self) -> Dict[str, Any]:
        """
        Convert to SQS SendMessage arguments.

        Returns:
            Dict with MessageBody and MessageAttributes
        """
        return {
            "MessageBody": self.model_dump_json(),
            "MessageAttributes": {
                "idnps": {"DataType": "String", "StringValue": self.idnps},
                "recordType": {"DataType": "String", "StringValue": self.record_type},
            },
        }

    @classmethod
    def from_sqs_message(cls, message: Dict[str, Any]) -> "ReconciliationRecord":
        """
        Create a record from an SQS Lambda event record.

        Args:
            message: SQS record dict with 'body' (Lambda) or 'Body' (API) field
        """
        body = message.get("body", message.get("Body", "{}"))
        if isinstance(body, str):
            data = json.loads(body)
        else:
            data = body
        return cls(**data)
